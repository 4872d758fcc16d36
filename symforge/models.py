"""Data models for symbol capsules and their quality records."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .raster.buffer import RasterBuffer


class SymbolType(str, Enum):
    FLAT = "flat"
    SHARP = "sharp"
    NATURAL = "natural"
    DOUBLE_SHARP = "double_sharp"


class PreprocessingMethod(str, Enum):
    RAW = "raw"
    BINARIZED = "binarized"
    MORPHED = "morphed"
    CUSTOM = "custom"


class DensityStatus(str, Enum):
    UNKNOWN = "unknown"
    VALID = "valid"
    TOO_HIGH = "too_high"
    TOO_LOW = "too_low"


@dataclass(frozen=True)
class ProvenanceMetadata:
    """Where a capsule's pixels came from and who vouched for them."""

    source_image: str
    method: PreprocessingMethod = PreprocessingMethod.RAW
    validated_by: str = ""
    notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_image": self.source_image,
            "method": self.method.value,
            "validated_by": self.validated_by,
            "notes": self.notes,
        }


@dataclass(frozen=True, eq=False)
class SymbolCapsule:
    """
    Unit-of-record artifact.

    Capsules are never edited. A further transformation produces a new
    capsule with its own identity.
    """

    identity: str  # canonical hash of raster
    symbol_type: SymbolType
    template_name: str
    contributor: str
    raster: RasterBuffer
    generated_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    interpolation_factor: float | None = None  # present only for morphs
    generation_seed: int | None = None
    morph_lineage: str | None = None  # "<type>:<from> -> <type>:<to>"
    audit_tag: str | None = None
    provenance: ProvenanceMetadata | None = None
    governance_critical: bool = False

    @property
    def short_id(self) -> str:
        return f"{self.template_name}-{self.identity[:8]}"

    @property
    def is_morph(self) -> bool:
        return self.interpolation_factor is not None

    def to_dict(self) -> dict[str, Any]:
        """Metadata view (raster excluded)."""
        return {
            "identity": self.identity,
            "short_id": self.short_id,
            "symbol_type": self.symbol_type.value,
            "template_name": self.template_name,
            "contributor": self.contributor,
            "generated_on": self.generated_on.isoformat(),
            "interpolation_factor": self.interpolation_factor,
            "generation_seed": self.generation_seed,
            "morph_lineage": self.morph_lineage,
            "audit_tag": self.audit_tag,
            "provenance": self.provenance.to_dict() if self.provenance else None,
            "governance_critical": self.governance_critical,
            "width": self.raster.width,
            "height": self.raster.height,
            "pixel_format": self.raster.pixel_format.value,
        }


@dataclass(frozen=True)
class QualityMetrics:
    """Measurements computed once per validation pass."""

    width: int
    height: int
    aspect_ratio: float  # height / width
    ink_pixels: int
    density_fraction: float
    density_percent: float
    density_status: DensityStatus = DensityStatus.UNKNOWN
    dark_ratio: float | None = None
    symmetry_score: float | None = None  # None when the glyph has no ink

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["density_status"] = self.density_status.value
        return data


@dataclass(frozen=True)
class ValidationResult:
    validator: str
    passed: bool
    message: str | None = None
    capsule_id: str | None = None

    @classmethod
    def ok(cls, validator: str, message: str | None = None) -> ValidationResult:
        return cls(validator=validator, passed=True, message=message)

    @classmethod
    def fail(cls, validator: str, message: str) -> ValidationResult:
        return cls(validator=validator, passed=False, message=message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"validator": self.validator, "passed": self.passed}
        if self.message is not None:
            result["message"] = self.message
        if self.capsule_id is not None:
            result["capsule_id"] = self.capsule_id
        return result
