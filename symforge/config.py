"""
Settings loaded from symforge.toml.

Settings are data: every section parses into a frozen dataclass, and bad
values raise SettingsError naming the offending key. A missing file means
defaults.
"""

from __future__ import annotations

import logging
import math
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import SettingsError
from .governance.proposer import GovernancePolicy
from .models import SymbolType
from .raster.morph import OUT_OF_RANGE_MODES, MorphPolicy
from .raster.pixels import DEFAULT_INK_THRESHOLD

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = "symforge.toml"
DEFAULT_CONTRIBUTOR = "symforge"


@dataclass(frozen=True)
class PixelSettings:
    ink_threshold: int = DEFAULT_INK_THRESHOLD


@dataclass(frozen=True)
class ValidationSettings:
    chain: tuple[str, ...] = ("structure", "template", "density", "contrast")
    density_min: float = 0.03
    density_max: float = 0.50
    contrast_min_ratio: float = 0.10
    symmetry_min_score: float = 0.60


@dataclass(frozen=True)
class LineageSettings:
    strict_links: bool = True


@dataclass(frozen=True)
class ForgeSettings:
    pixels: PixelSettings = field(default_factory=PixelSettings)
    morph: MorphPolicy = field(default_factory=MorphPolicy)
    validation: ValidationSettings = field(default_factory=ValidationSettings)
    lineage: LineageSettings = field(default_factory=LineageSettings)
    governance: GovernancePolicy = field(default_factory=GovernancePolicy)
    contributor: str = DEFAULT_CONTRIBUTOR
    source: Path | None = None


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise SettingsError(f"[{name}] must be a table")
    return value


def _fraction(section: str, raw: dict[str, Any], key: str, default: float) -> float:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SettingsError(f"{section}.{key} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value) or not 0.0 <= value <= 1.0:
        raise SettingsError(f"{section}.{key} must be in [0.0, 1.0], got {value}")
    return value


def _parse_pixels(raw: dict[str, Any]) -> PixelSettings:
    threshold = raw.get("ink_threshold", DEFAULT_INK_THRESHOLD)
    if isinstance(threshold, bool) or not isinstance(threshold, int) or not 0 <= threshold <= 256:
        raise SettingsError(f"pixels.ink_threshold must be an integer in [0, 256], got {threshold!r}")
    return PixelSettings(ink_threshold=threshold)


def _parse_morph(raw: dict[str, Any]) -> MorphPolicy:
    mode = str(raw.get("out_of_range", "extrapolate")).strip().lower()
    if mode not in OUT_OF_RANGE_MODES:
        raise SettingsError(f"morph.out_of_range must be one of: {', '.join(OUT_OF_RANGE_MODES)}")
    return MorphPolicy(out_of_range=mode)  # type: ignore[arg-type]


def _parse_validation(raw: dict[str, Any]) -> ValidationSettings:
    defaults = ValidationSettings()

    chain_raw = raw.get("chain", list(defaults.chain))
    if not isinstance(chain_raw, list) or not all(isinstance(v, str) for v in chain_raw):
        raise SettingsError("validation.chain must be a list of validator names")
    chain = tuple(v.strip().lower() for v in chain_raw if v.strip())

    density_min = _fraction("validation", raw, "density_min", defaults.density_min)
    density_max = _fraction("validation", raw, "density_max", defaults.density_max)
    if density_min > density_max:
        raise SettingsError(
            f"validation.density_min ({density_min}) cannot exceed validation.density_max ({density_max})"
        )

    return ValidationSettings(
        chain=chain,
        density_min=density_min,
        density_max=density_max,
        contrast_min_ratio=_fraction("validation", raw, "contrast_min_ratio", defaults.contrast_min_ratio),
        symmetry_min_score=_fraction("validation", raw, "symmetry_min_score", defaults.symmetry_min_score),
    )


def _parse_lineage(raw: dict[str, Any]) -> LineageSettings:
    strict = raw.get("strict_links", True)
    if not isinstance(strict, bool):
        raise SettingsError(f"lineage.strict_links must be true or false, got {strict!r}")
    return LineageSettings(strict_links=strict)


def _parse_governance(raw: dict[str, Any]) -> GovernancePolicy:
    defaults = GovernancePolicy()

    critical_raw = raw.get("critical_types", [])
    if not isinstance(critical_raw, list):
        raise SettingsError("governance.critical_types must be a list of symbol types")
    critical: set[SymbolType] = set()
    for value in critical_raw:
        try:
            critical.add(SymbolType(str(value).strip().lower()))
        except ValueError:
            allowed = ", ".join(t.value for t in SymbolType)
            raise SettingsError(f"governance.critical_types: unknown symbol type {value!r} (expected: {allowed})") from None

    audit_tag = str(raw.get("audit_tag", defaults.audit_tag)).strip()
    if not audit_tag:
        raise SettingsError("governance.audit_tag cannot be empty")

    return GovernancePolicy(
        confidence_threshold=_fraction("governance", raw, "confidence_threshold", defaults.confidence_threshold),
        ambiguity_margin=_fraction("governance", raw, "ambiguity_margin", defaults.ambiguity_margin),
        critical_types=frozenset(critical),
        audit_tag=audit_tag,
    )


def parse_settings(data: dict[str, Any], *, source: Path | None = None) -> ForgeSettings:
    """Build settings from an already-parsed TOML document."""
    contributor = str(data.get("contributor", DEFAULT_CONTRIBUTOR)).strip()
    if not contributor:
        raise SettingsError("contributor cannot be empty")

    return ForgeSettings(
        pixels=_parse_pixels(_section(data, "pixels")),
        morph=_parse_morph(_section(data, "morph")),
        validation=_parse_validation(_section(data, "validation")),
        lineage=_parse_lineage(_section(data, "lineage")),
        governance=_parse_governance(_section(data, "governance")),
        contributor=contributor,
        source=source,
    )


def load_settings(path: Path | None = None) -> ForgeSettings:
    """
    Load settings from a TOML file.

    Args:
        path: Settings file, or None for defaults

    Raises:
        SettingsError: if the file is missing, not valid TOML, or holds bad values
    """
    if path is None:
        return ForgeSettings()
    if not path.is_file():
        raise SettingsError(f"Settings file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise SettingsError(f"Invalid TOML in {path}: {e}") from e

    settings = parse_settings(data, source=path)
    logger.debug("loaded settings from %s", path)
    return settings


def find_settings(start: Path) -> Path | None:
    """Return ./symforge.toml under start, if present."""
    candidate = start / DEFAULT_SETTINGS_FILE
    return candidate if candidate.is_file() else None
