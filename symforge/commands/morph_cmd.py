"""Morph command - blend two image files."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..config import ForgeSettings
from ..errors import ForgeError
from ..raster.buffer import RasterBuffer
from ..raster.hashing import compute_hash
from ..raster.morph import PixelBlendMorphEngine


def run_morph(settings: ForgeSettings, a_path: Path, b_path: Path, *, factor: float, out: Path) -> int:
    """Blend A toward B by factor and save the result as PNG."""
    console = Console()
    err = Console(stderr=True)

    try:
        a = RasterBuffer.load(a_path)
        b = RasterBuffer.load(b_path)
        result = PixelBlendMorphEngine(settings.morph).morph(a, b, factor)
        result.save(out)
    except (ForgeError, ValueError, OSError) as e:
        err.print(str(e), style="bold red")
        return 1

    console.print(f"Wrote {out}", style="green")
    print(compute_hash(result))
    return 0
