"""
Capsule export: a PNG of the raster plus a JSON sidecar.

The sidecar carries the capsule metadata, the quality metrics and
validation results of its last chain run, and the hash recomputed at
export time so a reader can verify the PNG independently.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import ExportError, MissingRasterError
from .models import SymbolCapsule
from .raster.hashing import compute_hash
from .validation.chain import ChainReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportedCapsule:
    image_path: Path
    json_path: Path
    computed_hash: str


def check_exportable(capsule: SymbolCapsule) -> str:
    """
    Verify a capsule is complete enough to export.

    Returns:
        The recomputed canonical hash

    Raises:
        MissingRasterError: if the capsule or its raster is None
        ExportError: if metadata is incomplete or the identity does not match the raster
    """
    if capsule is None or capsule.raster is None:
        raise MissingRasterError("Cannot export a capsule without a raster")
    if not (capsule.template_name or "").strip():
        raise ExportError("Cannot export capsule: template name is missing or empty.")
    if not (capsule.contributor or "").strip():
        raise ExportError("Cannot export capsule: contributor is missing or empty.")

    computed = compute_hash(capsule.raster)
    if capsule.identity != computed:
        raise ExportError(
            f"Cannot export capsule: identity {capsule.identity[:12]} does not match raster hash {computed[:12]}."
        )

    provenance = capsule.provenance
    if provenance is not None:
        if not provenance.source_image.strip():
            raise ExportError("Cannot export capsule: provenance source image is missing.")
        if not provenance.validated_by.strip():
            raise ExportError("Cannot export capsule: provenance validated_by is missing.")
    return computed


def export_capsule(
    capsule: SymbolCapsule,
    out_dir: Path,
    form: str,
    report: ChainReport | None = None,
) -> ExportedCapsule:
    """
    Write <template>-<form>.png and <template>-<form>.json into out_dir.

    File names are lower-cased. Existing files are overwritten.
    """
    computed = check_exportable(capsule)
    form = (form or "").strip()
    if not form:
        raise ExportError("Cannot export capsule: form is missing or empty.")

    base = f"{capsule.template_name}-{form}".lower()
    image_path = out_dir / f"{base}.png"
    json_path = out_dir / f"{base}.json"

    capsule.raster.save(image_path)

    payload = {
        "capsule": capsule.to_dict(),
        "metrics": report.metrics.to_dict() if report and report.metrics else None,
        "validation": report.to_dict()["results"] if report else [],
        "passed": report.passed if report else None,
        "computed_hash": computed,
    }
    json_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    logger.info("exported %s to %s", capsule.short_id, image_path)
    return ExportedCapsule(image_path=image_path, json_path=json_path, computed_hash=computed)
