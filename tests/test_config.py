from pathlib import Path

import pytest

from symforge.config import ForgeSettings, find_settings, load_settings
from symforge.errors import SettingsError
from symforge.models import SymbolType


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "symforge.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults() -> None:
    settings = load_settings(None)
    assert settings == ForgeSettings()
    assert settings.pixels.ink_threshold == 128
    assert settings.morph.out_of_range == "extrapolate"
    assert settings.validation.chain == ("structure", "template", "density", "contrast")
    assert (settings.validation.density_min, settings.validation.density_max) == (0.03, 0.50)
    assert settings.lineage.strict_links is True
    assert settings.governance.confidence_threshold == 0.90
    assert settings.governance.audit_tag == "symforge"


def test_full_file(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "\n".join(
            [
                'contributor = "lab-7"',
                "",
                "[pixels]",
                "ink_threshold = 100",
                "",
                "[morph]",
                'out_of_range = "clamp"',
                "",
                "[validation]",
                'chain = ["structure", "Symmetry"]',
                "density_min = 0.1",
                "density_max = 0.4",
                "symmetry_min_score = 0.75",
                "",
                "[lineage]",
                "strict_links = false",
                "",
                "[governance]",
                "confidence_threshold = 0.8",
                "ambiguity_margin = 0.05",
                'critical_types = ["double_sharp"]',
                'audit_tag = "phase-10"',
                "",
            ]
        ),
    )

    settings = load_settings(path)
    assert settings.source == path
    assert settings.contributor == "lab-7"
    assert settings.pixels.ink_threshold == 100
    assert settings.morph.out_of_range == "clamp"
    assert settings.validation.chain == ("structure", "symmetry")
    assert settings.validation.symmetry_min_score == 0.75
    assert settings.lineage.strict_links is False
    assert settings.governance.required_confidence == pytest.approx(0.85)
    assert settings.governance.critical_types == frozenset({SymbolType.DOUBLE_SHARP})
    assert settings.governance.audit_tag == "phase-10"


@pytest.mark.parametrize(
    ("text", "match"),
    [
        ("[pixels]\nink_threshold = 300\n", "ink_threshold"),
        ("[pixels]\nink_threshold = true\n", "ink_threshold"),
        ('[morph]\nout_of_range = "wrap"\n', "out_of_range"),
        ("[validation]\ndensity_min = 0.6\ndensity_max = 0.5\n", "cannot exceed"),
        ('[validation]\ndensity_max = "half"\n', "must be a number"),
        ("[validation]\nchain = \"structure\"\n", "list of validator names"),
        ("[lineage]\nstrict_links = 1\n", "strict_links"),
        ("[governance]\nconfidence_threshold = 1.2\n", r"\[0.0, 1.0\]"),
        ('[governance]\ncritical_types = ["quarter_flat"]\n', "unknown symbol type"),
        ('[governance]\naudit_tag = ""\n', "audit_tag"),
        ("pixels = 3\n", "must be a table"),
        ("[pixels\n", "Invalid TOML"),
    ],
)
def test_invalid_values(tmp_path: Path, text: str, match: str) -> None:
    with pytest.raises(SettingsError, match=match):
        load_settings(_write(tmp_path, text))


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SettingsError, match="not found"):
        load_settings(tmp_path / "nope.toml")


def test_find_settings(tmp_path: Path) -> None:
    assert find_settings(tmp_path) is None
    path = _write(tmp_path, "")
    assert find_settings(tmp_path) == path
