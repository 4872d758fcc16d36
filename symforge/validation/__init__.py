"""Quality metrics, validators and the validator chain."""

from .chain import ChainReport, ValidationChain, build_chain
from .metrics import compute_quality_metrics, symmetry_score
from .validators import (
    ContrastValidator,
    DensityValidator,
    StructureValidator,
    SymmetryValidator,
    TemplateValidator,
    Validator,
)

__all__ = [
    "compute_quality_metrics",
    "symmetry_score",
    "Validator",
    "StructureValidator",
    "TemplateValidator",
    "DensityValidator",
    "ContrastValidator",
    "SymmetryValidator",
    "ChainReport",
    "ValidationChain",
    "build_chain",
]
