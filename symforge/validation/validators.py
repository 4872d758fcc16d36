"""
Built-in validators.

Each validator is independent: it reads the capsule and the pass's
QualityMetrics and returns exactly one ValidationResult. Failures are
results, not exceptions.
"""

from __future__ import annotations

import re
from typing import Protocol

from ..models import QualityMetrics, SymbolCapsule, ValidationResult
from ..raster.hashing import compute_hash

_HEX_DIGEST = re.compile(r"^[0-9a-f]{64}$")

# Template names that mean "nobody named this".
PLACEHOLDER_TEMPLATES = frozenset({"default", "unknown"})

MISSING_INPUT = "Capsule or its raster cannot be None."


class Validator(Protocol):
    name: str

    def validate(self, capsule: SymbolCapsule, metrics: QualityMetrics | None) -> ValidationResult:
        ...


def _missing(capsule: SymbolCapsule | None, metrics: QualityMetrics | None) -> bool:
    return capsule is None or capsule.raster is None or metrics is None


class StructureValidator:
    name = "structure"

    def validate(self, capsule: SymbolCapsule, metrics: QualityMetrics | None) -> ValidationResult:
        if _missing(capsule, metrics):
            return ValidationResult.fail(self.name, MISSING_INPUT)

        raster = capsule.raster
        if raster.width <= 0 or raster.height <= 0:
            return ValidationResult.fail(self.name, f"Raster has zero size ({raster.width}x{raster.height}).")
        if (metrics.width, metrics.height) != (raster.width, raster.height):
            return ValidationResult.fail(
                self.name,
                f"Metrics describe {metrics.width}x{metrics.height} but raster is {raster.width}x{raster.height}.",
            )
        if not _HEX_DIGEST.match(capsule.identity or ""):
            return ValidationResult.fail(self.name, "Identity is not a 64-character sha256 hex digest.")
        return ValidationResult.ok(self.name)


class TemplateValidator:
    """Checks that a capsule is properly named, attributed and hashed."""

    name = "template"

    def validate(self, capsule: SymbolCapsule, metrics: QualityMetrics | None) -> ValidationResult:
        if capsule is None or capsule.raster is None:
            return ValidationResult.fail(self.name, MISSING_INPUT)

        template = (capsule.template_name or "").strip()
        if not template:
            return ValidationResult.fail(self.name, "Template name is missing.")
        if template.lower() in PLACEHOLDER_TEMPLATES:
            return ValidationResult.fail(self.name, f"Template name '{template}' is a placeholder.")
        if not (capsule.contributor or "").strip():
            return ValidationResult.fail(self.name, "Contributor is missing.")

        if compute_hash(capsule.raster) != capsule.identity:
            return ValidationResult.fail(self.name, "Identity does not match the canonical hash of the raster.")

        if capsule.is_morph and not capsule.morph_lineage:
            return ValidationResult.fail(self.name, "Morph capsule has no lineage.")
        if capsule.morph_lineage and not capsule.is_morph:
            return ValidationResult.fail(self.name, "Capsule has a morph lineage but no interpolation factor.")

        provenance = capsule.provenance
        if provenance is not None:
            if not provenance.source_image.strip():
                return ValidationResult.fail(self.name, "Provenance is missing its source image.")
            if not provenance.validated_by.strip():
                return ValidationResult.fail(self.name, "Provenance does not name a validator.")

        return ValidationResult.ok(self.name)


class DensityValidator:
    name = "density"

    def __init__(self, min_density: float = 0.03, max_density: float = 0.50):
        if min_density > max_density:
            raise ValueError(f"min_density ({min_density}) cannot exceed max_density ({max_density})")
        self.min_density = min_density
        self.max_density = max_density

    def validate(self, capsule: SymbolCapsule, metrics: QualityMetrics | None) -> ValidationResult:
        if _missing(capsule, metrics):
            return ValidationResult.fail(self.name, MISSING_INPUT)
        if metrics.width * metrics.height == 0:
            return ValidationResult.fail(self.name, "Image has zero pixels.")
        if metrics.ink_pixels == 0:
            return ValidationResult.fail(self.name, "Image is completely white.")

        if metrics.density_fraction < self.min_density:
            return ValidationResult.fail(
                self.name,
                f"Density of {metrics.density_percent:.2f}% is below the {self.min_density * 100:g}% threshold.",
            )
        if metrics.density_fraction > self.max_density:
            return ValidationResult.fail(
                self.name,
                f"Density of {metrics.density_percent:.2f}% is above the {self.max_density * 100:g}% threshold.",
            )
        return ValidationResult.ok(self.name)


class ContrastValidator:
    name = "contrast"

    def __init__(self, min_ratio: float = 0.10):
        self.min_ratio = min_ratio

    def validate(self, capsule: SymbolCapsule, metrics: QualityMetrics | None) -> ValidationResult:
        if _missing(capsule, metrics):
            return ValidationResult.fail(self.name, MISSING_INPUT)
        total = metrics.width * metrics.height
        if total == 0:
            return ValidationResult.fail(self.name, "Image has zero pixels.")

        dark = metrics.dark_ratio if metrics.dark_ratio is not None else metrics.ink_pixels / total
        light = 1.0 - dark
        if dark < self.min_ratio:
            return ValidationResult.fail(
                self.name,
                f"Image lacks dark pixels. Dark pixel ratio ({dark:.1%}) is below the required threshold of {self.min_ratio:.1%}.",
            )
        if light < self.min_ratio:
            return ValidationResult.fail(
                self.name,
                f"Image lacks light pixels. Light pixel ratio ({light:.1%}) is below the required threshold of {self.min_ratio:.1%}.",
            )
        return ValidationResult.ok(self.name)


class SymmetryValidator:
    name = "symmetry"

    def __init__(self, min_score: float = 0.60):
        self.min_score = min_score

    def validate(self, capsule: SymbolCapsule, metrics: QualityMetrics | None) -> ValidationResult:
        if _missing(capsule, metrics):
            return ValidationResult.fail(self.name, MISSING_INPUT)
        if metrics.symmetry_score is None:
            return ValidationResult.fail(self.name, "Symmetry score is missing (no ink to compare).")
        if metrics.symmetry_score < self.min_score:
            return ValidationResult.fail(
                self.name,
                f"Symmetry score {metrics.symmetry_score:.2f} is below the {self.min_score:.2f} threshold.",
            )
        return ValidationResult.ok(self.name)
