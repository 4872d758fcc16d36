"""Pixel-level ink/background classification."""

from __future__ import annotations

import numpy as np

from .buffer import PixelFormat, RasterBuffer

# Samples strictly below this value in an 8-bit luminance image are ink.
DEFAULT_INK_THRESHOLD = 128


def is_ink(sample: int, threshold: int = DEFAULT_INK_THRESHOLD) -> bool:
    """Return True if the sample is ink. A sample equal to the threshold is background."""
    return sample < threshold


def ink_mask(samples: np.ndarray, threshold: int = DEFAULT_INK_THRESHOLD) -> np.ndarray:
    """Vectorized is_ink over a luminance array."""
    return np.asarray(samples) < threshold


def to_luminance(raster: RasterBuffer) -> np.ndarray:
    """
    Reduce a raster to an 8-bit luminance array of shape (height, width).

    Alpha is dropped. Colour uses the fixed-point ITU-R 601-2 transform that
    Pillow applies in convert("L"), so results agree with Pillow output.
    16-bit samples keep their high byte.
    """
    fmt = raster.pixel_format
    samples = raster.samples
    if fmt is PixelFormat.L8:
        return samples
    if fmt is PixelFormat.L16:
        return (samples >> 8).astype(np.uint8)
    if fmt is PixelFormat.LA16:
        return samples[..., 0]

    rgb = samples[..., :3].astype(np.uint32)
    luma = (rgb[..., 0] * 19595 + rgb[..., 1] * 38470 + rgb[..., 2] * 7471 + 0x8000) >> 16
    return luma.astype(np.uint8)


def count_ink(raster: RasterBuffer, threshold: int = DEFAULT_INK_THRESHOLD) -> int:
    return int(np.count_nonzero(ink_mask(to_luminance(raster), threshold)))
