"""Hash command - print canonical hashes of image files."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..errors import ForgeError
from ..raster.buffer import RasterBuffer
from ..raster.hashing import compute_hash


def run_hash(paths: list[Path]) -> int:
    """Print "<hash>  <path>" per image, sha256sum style. Exit 1 if any image fails to load."""
    err = Console(stderr=True)
    exit_code = 0

    for path in paths:
        try:
            raster = RasterBuffer.load(path)
        except (ForgeError, OSError) as e:
            err.print(f"{path}: {e}", style="bold red")
            exit_code = 1
            continue
        print(f"{compute_hash(raster)}  {path}")

    return exit_code
