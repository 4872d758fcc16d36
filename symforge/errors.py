"""
Error taxonomy for symforge.

Contract violations raise immediately and are never retried. Validator
failures are not errors: they are reported as failing ValidationResults.
"""

from __future__ import annotations


class ForgeError(Exception):
    """Base class for all symforge errors."""


class MissingRasterError(ForgeError, TypeError):
    """A raster buffer was required but None was given."""


class RasterFormatError(ForgeError, ValueError):
    """Array shape or dtype does not match any supported pixel format."""


class DimensionMismatchError(ForgeError, ValueError):
    """Two rasters that must share width, height and format do not."""

    def __init__(self, a_shape: tuple[int, int, str], b_shape: tuple[int, int, str]):
        self.a_shape = a_shape
        self.b_shape = b_shape
        super().__init__(
            "Rasters must have identical dimensions and format. "
            f"a: {a_shape[0]}x{a_shape[1]} {a_shape[2]}, b: {b_shape[0]}x{b_shape[1]} {b_shape[2]}"
        )


class UnknownCapsuleError(ForgeError, LookupError):
    """A lineage edge references an identity that is not a node."""

    def __init__(self, identity: str, role: str):
        self.identity = identity
        self.role = role
        super().__init__(f"Unknown {role} capsule: {identity}")


class SettingsError(ForgeError, ValueError):
    """Configuration value has the wrong type or is out of range."""


class ExportError(ForgeError, ValueError):
    """Capsule is incomplete and cannot be exported."""
