"""Quality metrics, computed once per validation pass."""

from __future__ import annotations

import logging

import numpy as np

from ..models import DensityStatus, QualityMetrics, SymbolCapsule
from ..raster.pixels import DEFAULT_INK_THRESHOLD, ink_mask, to_luminance

logger = logging.getLogger(__name__)

DEFAULT_DENSITY_MIN = 0.03
DEFAULT_DENSITY_MAX = 0.50


def density_status(fraction: float, ink_pixels: int, density_min: float, density_max: float) -> DensityStatus:
    if ink_pixels == 0 or fraction < density_min:
        return DensityStatus.TOO_LOW
    if fraction > density_max:
        return DensityStatus.TOO_HIGH
    return DensityStatus.VALID


def symmetry_score(mask: np.ndarray) -> float | None:
    """
    Left/right mirror symmetry of an ink mask.

    Intersection over union of the mask and its horizontal mirror:
    1.0 for a perfectly symmetric glyph. None when there is no ink.
    """
    mirrored = np.fliplr(mask)
    union = np.count_nonzero(mask | mirrored)
    if union == 0:
        return None
    return float(np.count_nonzero(mask & mirrored)) / union


def compute_quality_metrics(
    capsule: SymbolCapsule,
    *,
    ink_threshold: int = DEFAULT_INK_THRESHOLD,
    density_min: float = DEFAULT_DENSITY_MIN,
    density_max: float = DEFAULT_DENSITY_MAX,
) -> QualityMetrics:
    """Measure a capsule's raster. Raises TypeError when the capsule has no raster."""
    if capsule is None or capsule.raster is None:
        raise TypeError("Cannot measure a capsule without a raster")

    raster = capsule.raster
    total = raster.width * raster.height
    mask = ink_mask(to_luminance(raster), ink_threshold)
    ink = int(np.count_nonzero(mask))
    fraction = ink / total if total else 0.0

    metrics = QualityMetrics(
        width=raster.width,
        height=raster.height,
        aspect_ratio=raster.height / raster.width if raster.width else 0.0,
        ink_pixels=ink,
        density_fraction=fraction,
        density_percent=fraction * 100.0,
        density_status=density_status(fraction, ink, density_min, density_max),
        dark_ratio=fraction,
        symmetry_score=symmetry_score(mask),
    )
    logger.debug("metrics for %s: density=%.4f symmetry=%s", capsule.short_id, fraction, metrics.symmetry_score)
    return metrics
