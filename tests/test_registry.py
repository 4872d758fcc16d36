import pytest

from symforge import registry
from symforge.config import ForgeSettings
from symforge.raster.morph import MorphPolicy, PixelBlendMorphEngine
from symforge.validation import DensityValidator


@pytest.fixture(autouse=True)
def _restore_builtins():
    yield
    registry.clear()
    registry.register_builtins()


def test_builtin_tags() -> None:
    assert registry.list_tags("validator") == ["contrast", "density", "structure", "symmetry", "template"]
    assert registry.list_tags("morph") == ["pixel_blend"]


def test_create_uses_settings() -> None:
    settings = ForgeSettings(morph=MorphPolicy(out_of_range="clamp"))
    engine = registry.create("morph", "pixel_blend", settings)
    assert isinstance(engine, PixelBlendMorphEngine)
    assert engine.policy.out_of_range == "clamp"

    assert isinstance(registry.create("validator", "Density"), DensityValidator)


def test_register_and_clear() -> None:
    registry.register("validator", "always", lambda settings: object())
    assert "always" in registry.list_tags("validator")

    registry.clear("validator")
    assert registry.list_tags("validator") == []
    assert registry.get("validator", "density") is None
    assert registry.list_tags("morph") == ["pixel_blend"]


def test_unknown_lookups() -> None:
    with pytest.raises(KeyError, match="known"):
        registry.create("generator", "quarter_tone")
    with pytest.raises(ValueError, match="Unknown capability kind"):
        registry.register("renderer", "x", lambda: None)
    with pytest.raises(ValueError, match="empty"):
        registry.register("morph", "  ", lambda settings: None)
