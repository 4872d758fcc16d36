"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from symforge.capsule import wrap_raster
from symforge.config import ForgeSettings
from symforge.models import SymbolCapsule, SymbolType
from symforge.raster.buffer import PixelFormat, RasterBuffer


@pytest.fixture
def settings() -> ForgeSettings:
    return ForgeSettings()


@pytest.fixture
def gray42() -> RasterBuffer:
    """16x16 L8 buffer filled with 42 (the golden hash fixture)."""
    return RasterBuffer.filled(16, 16, 42)


@pytest.fixture
def striped() -> RasterBuffer:
    """32x32 L8 with a dark vertical band covering a quarter of the columns."""
    samples = np.full((32, 32), 255, dtype=np.uint8)
    samples[:, 12:20] = 0
    return RasterBuffer(samples=samples, pixel_format=PixelFormat.L8)


def make_capsule(raster: RasterBuffer, **kwargs) -> SymbolCapsule:
    kwargs.setdefault("symbol_type", SymbolType.FLAT)
    kwargs.setdefault("template_name", "flat")
    kwargs.setdefault("contributor", "tester")
    return wrap_raster(raster, **kwargs)


@pytest.fixture
def capsule(striped: RasterBuffer) -> SymbolCapsule:
    return make_capsule(striped)


@pytest.fixture
def png_pair(tmp_path: Path) -> tuple[Path, Path]:
    """Two 8x8 L8 PNGs: all black and all white."""
    a = RasterBuffer.filled(8, 8, 0).save(tmp_path / "black.png")
    b = RasterBuffer.filled(8, 8, 255).save(tmp_path / "white.png")
    return a, b
