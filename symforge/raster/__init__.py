"""
Raster layer: immutable sample buffers, ink classification, canonical
hashing and morphing.
"""

from .buffer import PixelFormat, RasterBuffer
from .hashing import HASH_VERSION, compute_hash, verify_hash
from .morph import BLEND_MODES, MorphEngine, MorphPolicy, PixelBlendMorphEngine, blend
from .pixels import DEFAULT_INK_THRESHOLD, count_ink, ink_mask, is_ink, to_luminance

__all__ = [
    # Buffers
    "PixelFormat",
    "RasterBuffer",
    # Pixels
    "DEFAULT_INK_THRESHOLD",
    "is_ink",
    "ink_mask",
    "to_luminance",
    "count_ink",
    # Identity
    "HASH_VERSION",
    "compute_hash",
    "verify_hash",
    # Morphing
    "MorphEngine",
    "MorphPolicy",
    "PixelBlendMorphEngine",
    "BLEND_MODES",
    "blend",
]
