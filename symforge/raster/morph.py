"""
Pixel-wise morphing between two rasters.

The morph engine is stateless: every call reads two immutable buffers and
returns a new one. Interpolation is computed in float64 and rounded half
away from zero, then saturated to the sample range of the pixel format.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Literal, Protocol

import numpy as np

from ..errors import DimensionMismatchError, MissingRasterError
from .buffer import RasterBuffer

logger = logging.getLogger(__name__)

OutOfRange = Literal["extrapolate", "clamp", "reject"]
OUT_OF_RANGE_MODES: tuple[str, ...] = ("extrapolate", "clamp", "reject")


class MorphEngine(Protocol):
    name: str

    def morph(self, a: RasterBuffer, b: RasterBuffer, factor: float) -> RasterBuffer:
        ...


@dataclass(frozen=True)
class MorphPolicy:
    # extrapolate: use factor as given; clamp: pin to [0, 1]; reject: raise ValueError
    out_of_range: OutOfRange = "extrapolate"

    def __post_init__(self) -> None:
        if self.out_of_range not in OUT_OF_RANGE_MODES:
            raise ValueError(f"out_of_range must be one of: {', '.join(OUT_OF_RANGE_MODES)}")

    def resolve(self, factor: float) -> float:
        factor = float(factor)
        if not math.isfinite(factor):
            raise ValueError(f"Morph factor must be finite, got {factor}")
        if 0.0 <= factor <= 1.0:
            return factor
        if self.out_of_range == "clamp":
            return min(1.0, max(0.0, factor))
        if self.out_of_range == "reject":
            raise ValueError(f"Morph factor must be in [0.0, 1.0], got {factor}")
        return factor


def round_half_away_from_zero(values: np.ndarray) -> np.ndarray:
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def _check_pair(a: RasterBuffer | None, b: RasterBuffer | None) -> None:
    if a is None or b is None:
        raise MissingRasterError("Both rasters are required for a blend")
    if a.shape_key() != b.shape_key():
        raise DimensionMismatchError(a.shape_key(), b.shape_key())


def _to_raster(values: np.ndarray, like: RasterBuffer) -> RasterBuffer:
    fmt = like.pixel_format
    saturated = np.clip(round_half_away_from_zero(values), 0, fmt.max_value)
    return RasterBuffer(samples=saturated.astype(fmt.dtype), pixel_format=fmt)


def lerp(a: RasterBuffer, b: RasterBuffer, factor: float) -> RasterBuffer:
    """Per-sample a*(1-factor) + b*factor. The factor is used exactly as given."""
    _check_pair(a, b)
    fa = a.samples.astype(np.float64)
    fb = b.samples.astype(np.float64)
    return _to_raster(fa * (1.0 - factor) + fb * factor, like=a)


class PixelBlendMorphEngine:
    """Linear interpolation morph engine."""

    name = "pixel_blend"

    def __init__(self, policy: MorphPolicy | None = None):
        self.policy = policy or MorphPolicy()

    def morph(self, a: RasterBuffer, b: RasterBuffer, factor: float) -> RasterBuffer:
        """
        Blend a toward b.

        Args:
            a: Source raster (factor 0.0)
            b: Target raster (factor 1.0), same dimensions and format as a
            factor: Blend weight toward b

        Raises:
            MissingRasterError: if either raster is None
            DimensionMismatchError: if the rasters differ in width, height or format
            ValueError: if the factor is not finite, or out of range under the reject policy
        """
        _check_pair(a, b)
        resolved = self.policy.resolve(factor)
        if resolved != factor:
            logger.debug("morph factor %s clamped to %s", factor, resolved)
        out = lerp(a, b, resolved)
        logger.debug("morphed %r with factor %s", out, resolved)
        return out


# ----------------------------------------------------------------------------
# Compositing blends
# ----------------------------------------------------------------------------


def _alpha(a: RasterBuffer, b: RasterBuffer, amount: float) -> np.ndarray:
    if not 0.0 <= amount <= 1.0:
        raise ValueError(f"Alpha must be in [0.0, 1.0], got {amount}")
    return b.samples.astype(np.float64) * amount + a.samples.astype(np.float64) * (1.0 - amount)


def _additive(a: RasterBuffer, b: RasterBuffer, amount: float) -> np.ndarray:
    return a.samples.astype(np.float64) + b.samples.astype(np.float64)


def _multiply(a: RasterBuffer, b: RasterBuffer, amount: float) -> np.ndarray:
    top = float(a.pixel_format.max_value)
    return a.samples.astype(np.float64) * b.samples.astype(np.float64) / top


def _screen(a: RasterBuffer, b: RasterBuffer, amount: float) -> np.ndarray:
    top = float(a.pixel_format.max_value)
    inv = (top - a.samples.astype(np.float64)) * (top - b.samples.astype(np.float64)) / top
    return top - inv


def _overlay(a: RasterBuffer, b: RasterBuffer, amount: float) -> np.ndarray:
    top = float(a.pixel_format.max_value)
    base = a.samples.astype(np.float64)
    over = b.samples.astype(np.float64)
    dark = 2.0 * base * over / top
    light = top - 2.0 * (top - base) * (top - over) / top
    return np.where(base < (top + 1) / 2, dark, light)


BLEND_MODES: dict[str, Callable[[RasterBuffer, RasterBuffer, float], np.ndarray]] = {
    "alpha": _alpha,
    "additive": _additive,
    "multiply": _multiply,
    "screen": _screen,
    "overlay": _overlay,
}


def blend(mode: str, a: RasterBuffer, b: RasterBuffer, amount: float = 0.5) -> RasterBuffer:
    """
    Composite b onto a with the named blend mode.

    "linear" is the morph interpolation with the factor rejected outside
    [0, 1]; "alpha" weights b by amount. The remaining modes ignore amount.
    """
    mode = (mode or "").strip().lower()
    if mode == "linear":
        return PixelBlendMorphEngine(MorphPolicy(out_of_range="reject")).morph(a, b, amount)
    fn = BLEND_MODES.get(mode)
    if fn is None:
        raise ValueError(f"mode must be one of: linear, {', '.join(BLEND_MODES)}")
    _check_pair(a, b)
    return _to_raster(fn(a, b, amount), like=a)
