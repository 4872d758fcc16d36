"""
Canonical content hashing for raster buffers.

The canonical hash is the capsule identity. It is a sha256 digest over a
small versioned header followed by the raw samples in row-major order:

    b"SL" | version (u8) | pixel format code (u8) | width (i32 LE) | height (i32 LE) | samples

Samples are copied into a private scratch buffer before digesting, so a
source that is being viewed elsewhere can never change the digest input
half-way through.
"""

from __future__ import annotations

import hashlib
import logging
import struct

import numpy as np

from ..errors import MissingRasterError
from .buffer import RasterBuffer

logger = logging.getLogger(__name__)

HASH_VERSION = 1
_MAGIC = b"SL"
_HEADER = struct.Struct("<BBii")


def canonical_header(raster: RasterBuffer) -> bytes:
    return _MAGIC + _HEADER.pack(HASH_VERSION, raster.pixel_format.code, raster.width, raster.height)


def _copy_samples(raster: RasterBuffer) -> bytearray:
    """Copy samples into a scratch region sized exactly to the image's byte length."""
    scratch = bytearray(raster.nbytes)
    view = np.frombuffer(scratch, dtype=raster.pixel_format.dtype).reshape(raster.samples.shape)
    np.copyto(view, raster.samples)
    return scratch


def compute_hash(raster: RasterBuffer | None) -> str:
    """
    Compute the canonical identity of a raster.

    Args:
        raster: Buffer to hash

    Returns:
        Hex-encoded sha256 digest (64 chars)

    Raises:
        MissingRasterError: if raster is None
    """
    if raster is None:
        raise MissingRasterError("Cannot compute canonical hash of a missing raster")

    scratch = _copy_samples(raster)
    digest = hashlib.sha256()
    digest.update(canonical_header(raster))
    digest.update(scratch)
    identity = digest.hexdigest()
    logger.debug("hashed %r -> %s", raster, identity[:12])
    return identity


def verify_hash(raster: RasterBuffer, expected: str) -> bool:
    """Recompute the canonical hash and compare to an expected identity."""
    return compute_hash(raster) == (expected or "").strip().lower()
