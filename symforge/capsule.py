"""
Capsule construction.

Generators and the morph engine only produce rasters; this module assigns
identities and wraps them into immutable SymbolCapsules.
"""

from __future__ import annotations

import logging
from datetime import datetime

from .errors import MissingRasterError
from .models import PreprocessingMethod, ProvenanceMetadata, SymbolCapsule, SymbolType
from .raster.buffer import RasterBuffer
from .raster.hashing import compute_hash
from .raster.morph import MorphEngine, PixelBlendMorphEngine

logger = logging.getLogger(__name__)


def wrap_raster(
    raster: RasterBuffer,
    symbol_type: SymbolType | str,
    template_name: str,
    contributor: str,
    *,
    generation_seed: int | None = None,
    provenance: ProvenanceMetadata | None = None,
    audit_tag: str | None = None,
    governance_critical: bool = False,
    generated_on: datetime | None = None,
) -> SymbolCapsule:
    """Hash a raster and wrap it with its generation metadata."""
    if raster is None:
        raise MissingRasterError("Cannot wrap a missing raster")

    kwargs = {}
    if generated_on is not None:
        kwargs["generated_on"] = generated_on

    capsule = SymbolCapsule(
        identity=compute_hash(raster),
        symbol_type=SymbolType(symbol_type),
        template_name=template_name,
        contributor=contributor,
        raster=raster,
        generation_seed=generation_seed,
        audit_tag=audit_tag,
        provenance=provenance,
        governance_critical=governance_critical,
        **kwargs,
    )
    logger.debug("wrapped capsule %s", capsule.short_id)
    return capsule


def morph_capsules(
    a: SymbolCapsule,
    b: SymbolCapsule,
    factor: float,
    *,
    contributor: str,
    engine: MorphEngine | None = None,
    audit_tag: str | None = None,
) -> SymbolCapsule:
    """
    Blend capsule a toward capsule b and wrap the result.

    The derived capsule keeps a's symbol type, records the requested factor
    and a lineage string naming both parents. It is governance-critical if
    either parent is.
    """
    if a is None or b is None:
        raise MissingRasterError("Both parent capsules are required for a morph")

    engine = engine or PixelBlendMorphEngine()
    raster = engine.morph(a.raster, b.raster, factor)

    lineage = f"{a.symbol_type.value}:{a.template_name} -> {b.symbol_type.value}:{b.template_name}"
    capsule = SymbolCapsule(
        identity=compute_hash(raster),
        symbol_type=a.symbol_type,
        template_name=f"{a.symbol_type.value}_morph_{a.template_name}_to_{b.template_name}",
        contributor=contributor,
        raster=raster,
        interpolation_factor=float(factor),
        morph_lineage=lineage,
        audit_tag=audit_tag,
        provenance=ProvenanceMetadata(
            source_image=f"{a.identity} + {b.identity}",
            method=PreprocessingMethod.MORPHED,
            validated_by=contributor,
            notes=f"Morphed interpolation (factor: {float(factor)}) via {getattr(engine, 'name', type(engine).__name__)}",
        ),
        governance_critical=a.governance_critical or b.governance_critical,
    )
    logger.info("morphed %s + %s -> %s (factor %s)", a.short_id, b.short_id, capsule.short_id, factor)
    return capsule
