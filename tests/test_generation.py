import numpy as np
import pytest

from symforge import registry
from symforge.generation import BUILTIN_GENERATORS, FLAT, NATURAL
from symforge.models import SymbolType
from symforge.raster.buffer import PixelFormat
from symforge.raster.pixels import count_ink


@pytest.mark.parametrize("generator", BUILTIN_GENERATORS, ids=lambda g: g.supported_type.value)
def test_builtin_generators_draw_binary_glyphs(generator) -> None:
    raster = generator.generate(64, 64)

    assert raster.pixel_format is PixelFormat.L8
    assert (raster.width, raster.height) == (64, 64)
    assert set(np.unique(raster.samples).tolist()) == {0, 255}

    density = count_ink(raster) / (64 * 64)
    assert 0.03 <= density <= 0.50


def test_every_symbol_type_has_a_generator() -> None:
    assert {g.supported_type for g in BUILTIN_GENERATORS} == set(SymbolType)
    assert registry.list_tags("generator") == sorted(t.value for t in SymbolType)


def test_seed_makes_jitter_deterministic() -> None:
    assert FLAT.generate(48, 48, seed=3) == FLAT.generate(48, 48, seed=3)
    assert FLAT.generate(48, 48) == FLAT.generate(48, 48)


def test_natural_is_mirror_symmetric_without_jitter() -> None:
    raster = NATURAL.generate(60, 60)
    ink = raster.samples < 128
    assert np.count_nonzero(ink & np.fliplr(ink)) / np.count_nonzero(ink | np.fliplr(ink)) > 0.8


def test_rejects_empty_canvas() -> None:
    with pytest.raises(ValueError, match="positive"):
        FLAT.generate(0, 10)
