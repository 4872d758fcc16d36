import json
from dataclasses import replace
from pathlib import Path

import pytest

from symforge.errors import ExportError
from symforge.export import export_capsule
from symforge.models import ProvenanceMetadata, SymbolCapsule
from symforge.raster.buffer import RasterBuffer
from symforge.validation import DensityValidator, ValidationChain


def test_export_writes_png_and_sidecar(tmp_path: Path, capsule: SymbolCapsule) -> None:
    report = ValidationChain([DensityValidator()]).run(capsule)
    exported = export_capsule(capsule, tmp_path / "out", "Base", report)

    assert exported.image_path == tmp_path / "out" / "flat-base.png"
    assert exported.json_path == tmp_path / "out" / "flat-base.json"
    assert RasterBuffer.load(exported.image_path) == capsule.raster

    data = json.loads(exported.json_path.read_text(encoding="utf-8"))
    assert data["computed_hash"] == capsule.identity
    assert data["capsule"]["identity"] == capsule.identity
    assert data["metrics"]["ink_pixels"] == 256
    assert data["validation"][0]["validator"] == "density"
    assert data["passed"] is True


def test_export_without_report(tmp_path: Path, capsule: SymbolCapsule) -> None:
    exported = export_capsule(capsule, tmp_path, "raw")
    data = json.loads(exported.json_path.read_text(encoding="utf-8"))
    assert data["metrics"] is None
    assert data["validation"] == []


@pytest.mark.parametrize(
    ("changes", "match"),
    [
        ({"template_name": " "}, "template name"),
        ({"contributor": ""}, "contributor"),
        ({"identity": "f" * 64}, "does not match"),
        ({"provenance": ProvenanceMetadata(source_image="")}, "source image"),
        ({"provenance": ProvenanceMetadata(source_image="scan.png")}, "validated_by"),
    ],
)
def test_incomplete_capsules_are_refused(tmp_path: Path, capsule: SymbolCapsule, changes: dict, match: str) -> None:
    with pytest.raises(ExportError, match=match):
        export_capsule(replace(capsule, **changes), tmp_path, "base")
    assert list(tmp_path.iterdir()) == []
