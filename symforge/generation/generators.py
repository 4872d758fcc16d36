"""
Built-in symbol generators.

Generators are drawing collaborators: they only produce a raw L8 raster.
Hashing, validation and lineage happen downstream. Shapes are described as
fractions of the canvas and rasterized with Pillow's ImageDraw, without
antialiasing, on a white background.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import numpy as np
from PIL import Image, ImageDraw

from ..models import SymbolType
from ..raster.buffer import PixelFormat, RasterBuffer

INK = 0
PAPER = 255

# Maximum seeded displacement of a shape, as a fraction of the canvas.
SEED_JITTER = 0.02

Point = tuple[float, float]


class SymbolGenerator(Protocol):
    supported_type: SymbolType

    def generate(self, width: int, height: int, seed: int | None = None) -> RasterBuffer:
        ...


def _rect(x0: float, y0: float, x1: float, y1: float) -> tuple[Point, ...]:
    return ((x0, y0), (x1, y0), (x1, y1), (x0, y1))


@dataclass(frozen=True)
class ShapeGenerator:
    """Draws filled polygons and ellipses given in canvas fractions."""

    supported_type: SymbolType
    polygons: tuple[tuple[Point, ...], ...] = ()
    # (center_x, center_y, radius_x, radius_y)
    ellipses: tuple[tuple[float, float, float, float], ...] = field(default_factory=tuple)

    def generate(self, width: int, height: int, seed: int | None = None) -> RasterBuffer:
        if width <= 0 or height <= 0:
            raise ValueError(f"Dimensions must be positive, got {width}x{height}")

        rng = np.random.default_rng(seed) if seed is not None else None

        def offset() -> tuple[float, float]:
            if rng is None:
                return (0.0, 0.0)
            dx, dy = rng.uniform(-SEED_JITTER, SEED_JITTER, size=2)
            return (float(dx), float(dy))

        image = Image.new("L", (width, height), PAPER)
        draw = ImageDraw.Draw(image)

        for polygon in self.polygons:
            dx, dy = offset()
            draw.polygon([((x + dx) * width, (y + dy) * height) for x, y in polygon], fill=INK)

        for cx, cy, rx, ry in self.ellipses:
            dx, dy = offset()
            box = (
                (cx + dx - rx) * width,
                (cy + dy - ry) * height,
                (cx + dx + rx) * width,
                (cy + dy + ry) * height,
            )
            draw.ellipse(box, fill=INK)

        # Binarize so downstream ink classification is unambiguous.
        binary = image.point(lambda v: INK if v < 128 else PAPER)
        return RasterBuffer(samples=np.array(binary, dtype=np.uint8), pixel_format=PixelFormat.L8)


FLAT = ShapeGenerator(
    supported_type=SymbolType.FLAT,
    polygons=(_rect(0.4, 0.1, 0.5, 0.9),),  # stem
    ellipses=((0.6, 0.75, 0.25, 0.2),),  # bowl
)

SHARP = ShapeGenerator(
    supported_type=SymbolType.SHARP,
    polygons=(
        _rect(0.4, 0.1, 0.5, 0.9),
        _rect(0.6, 0.1, 0.7, 0.9),
        _rect(0.2, 0.4, 0.8, 0.5),
        _rect(0.2, 0.7, 0.8, 0.8),
    ),
)

NATURAL = ShapeGenerator(
    supported_type=SymbolType.NATURAL,
    polygons=(
        _rect(0.3, 0.1, 0.4, 0.9),
        _rect(0.6, 0.1, 0.7, 0.9),
        _rect(0.2, 0.4, 0.8, 0.5),
        _rect(0.2, 0.7, 0.8, 0.8),
    ),
)

DOUBLE_SHARP = ShapeGenerator(
    supported_type=SymbolType.DOUBLE_SHARP,
    polygons=(
        ((0.2, 0.2), (0.3, 0.2), (0.8, 0.7), (0.7, 0.8)),
        ((0.2, 0.7), (0.3, 0.8), (0.8, 0.3), (0.7, 0.2)),
    ),
)

BUILTIN_GENERATORS: tuple[ShapeGenerator, ...] = (FLAT, SHARP, NATURAL, DOUBLE_SHARP)
