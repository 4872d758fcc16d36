"""Raster generators for the built-in symbol types."""

from .generators import (
    BUILTIN_GENERATORS,
    DOUBLE_SHARP,
    FLAT,
    NATURAL,
    SHARP,
    ShapeGenerator,
    SymbolGenerator,
)

__all__ = [
    "SymbolGenerator",
    "ShapeGenerator",
    "FLAT",
    "SHARP",
    "NATURAL",
    "DOUBLE_SHARP",
    "BUILTIN_GENERATORS",
]
