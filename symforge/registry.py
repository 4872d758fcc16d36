"""
Capability registry: tag -> factory lookup.

Generators, validators and morph engines are registered by an explicit
list at import time. Nothing is discovered by scanning modules.

Kinds:
    generator   tag = symbol type value, factory() -> SymbolGenerator
    validator   tag = validator key,     factory(settings) -> Validator
    morph       tag = engine name,       factory(settings) -> MorphEngine
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from .config import ForgeSettings

KINDS: tuple[str, ...] = ("generator", "validator", "morph")

Factory = Callable[..., Any]

# Global registry: kind -> tag -> factory
_REGISTRY: dict[str, dict[str, Factory]] = {kind: {} for kind in KINDS}


def _check_kind(kind: str) -> None:
    if kind not in _REGISTRY:
        raise ValueError(f"Unknown capability kind: {kind!r} (expected one of: {', '.join(KINDS)})")


def register(kind: str, tag: str, factory: Factory) -> None:
    """
    Register a factory under a capability tag.

    Re-registering a tag replaces the previous factory.
    """
    _check_kind(kind)
    tag = tag.strip().lower()
    if not tag:
        raise ValueError("tag cannot be empty")
    _REGISTRY[kind][tag] = factory


def get(kind: str, tag: str) -> Factory | None:
    """Look up a factory, or None if the tag is not registered."""
    _check_kind(kind)
    return _REGISTRY[kind].get(tag.strip().lower())


def create(kind: str, tag: str, settings: ForgeSettings | None = None) -> Any:
    """Instantiate a registered capability. Unknown tags raise KeyError."""
    factory = get(kind, tag)
    if factory is None:
        known = ", ".join(list_tags(kind)) or "none"
        raise KeyError(f"No {kind} registered for {tag!r} (known: {known})")
    if kind == "generator":
        return factory()
    if settings is None:
        from .config import ForgeSettings

        settings = ForgeSettings()
    return factory(settings)


def list_tags(kind: str) -> list[str]:
    _check_kind(kind)
    return sorted(_REGISTRY[kind])


def clear(kind: str | None = None) -> None:
    """Clear registered factories (for testing)."""
    kinds = (kind,) if kind else KINDS
    for k in kinds:
        _check_kind(k)
        _REGISTRY[k].clear()


def register_builtins() -> None:
    """(Re)register the built-in capabilities."""
    from .generation import BUILTIN_GENERATORS
    from .raster.morph import PixelBlendMorphEngine
    from .validation.validators import (
        ContrastValidator,
        DensityValidator,
        StructureValidator,
        SymmetryValidator,
        TemplateValidator,
    )

    for generator in BUILTIN_GENERATORS:
        register("generator", generator.supported_type.value, lambda g=generator: g)

    register("validator", "structure", lambda settings: StructureValidator())
    register("validator", "template", lambda settings: TemplateValidator())
    register(
        "validator",
        "density",
        lambda settings: DensityValidator(settings.validation.density_min, settings.validation.density_max),
    )
    register("validator", "contrast", lambda settings: ContrastValidator(settings.validation.contrast_min_ratio))
    register("validator", "symmetry", lambda settings: SymmetryValidator(settings.validation.symmetry_min_score))

    register("morph", PixelBlendMorphEngine.name, lambda settings: PixelBlendMorphEngine(settings.morph))


register_builtins()
