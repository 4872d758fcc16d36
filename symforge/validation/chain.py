"""
Validator chain.

Every validator in the chain runs, in order, against one shared
QualityMetrics record. The capsule passes when every result passes. A
validator that raises is recorded as a failure and the chain carries on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..errors import SettingsError
from ..models import QualityMetrics, SymbolCapsule, ValidationResult
from ..raster.pixels import DEFAULT_INK_THRESHOLD
from .metrics import DEFAULT_DENSITY_MAX, DEFAULT_DENSITY_MIN, compute_quality_metrics
from .validators import Validator

if TYPE_CHECKING:
    from ..config import ForgeSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainReport:
    capsule_id: str | None
    passed: bool
    results: tuple[ValidationResult, ...]
    metrics: QualityMetrics | None = None

    @property
    def failures(self) -> list[ValidationResult]:
        return [r for r in self.results if not r.passed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "capsule_id": self.capsule_id,
            "passed": self.passed,
            "results": [r.to_dict() for r in self.results],
            "metrics": self.metrics.to_dict() if self.metrics else None,
        }


class ValidationChain:
    def __init__(
        self,
        validators: Iterable[Validator],
        *,
        ink_threshold: int = DEFAULT_INK_THRESHOLD,
        density_min: float = DEFAULT_DENSITY_MIN,
        density_max: float = DEFAULT_DENSITY_MAX,
    ):
        self.validators: tuple[Validator, ...] = tuple(validators)
        self.ink_threshold = ink_threshold
        self.density_min = density_min
        self.density_max = density_max

    @property
    def names(self) -> list[str]:
        return [v.name for v in self.validators]

    def measure(self, capsule: SymbolCapsule) -> QualityMetrics:
        return compute_quality_metrics(
            capsule,
            ink_threshold=self.ink_threshold,
            density_min=self.density_min,
            density_max=self.density_max,
        )

    def run(
        self,
        capsule: SymbolCapsule,
        metrics: QualityMetrics | None = None,
        *,
        overrides: Mapping[str, str] | None = None,
    ) -> ChainReport:
        """
        Run every validator against a capsule.

        Args:
            capsule: Capsule to validate
            metrics: Precomputed metrics, or None to measure the capsule here
            overrides: validator name -> reason; overridden validators are not
                run and record a passing "Overridden: <reason>" result

        Returns:
            ChainReport with one result per validator, in chain order
        """
        capsule_id = capsule.identity if capsule is not None else None
        overrides = dict(overrides or {})

        if metrics is None and capsule is not None and capsule.raster is not None:
            try:
                metrics = self.measure(capsule)
            except Exception:
                logger.exception("could not compute metrics for %s", capsule.short_id)

        results: list[ValidationResult] = []
        for validator in self.validators:
            name = validator.name
            if name in overrides:
                reason = overrides[name]
                logger.warning("validator %s overridden for %s: %s", name, capsule_id, reason)
                result = ValidationResult.ok(name, f"Overridden: {reason}")
            else:
                try:
                    result = validator.validate(capsule, metrics)
                except Exception as e:
                    logger.exception("validator %s raised on %s", name, capsule_id)
                    result = ValidationResult.fail(name, f"Validator raised {type(e).__name__}: {e}")
            results.append(replace(result, capsule_id=capsule_id))

        passed = all(r.passed for r in results)
        logger.debug(
            "chain on %s: %s (%d/%d passed)",
            capsule_id,
            "pass" if passed else "fail",
            sum(1 for r in results if r.passed),
            len(results),
        )
        return ChainReport(capsule_id=capsule_id, passed=passed, results=tuple(results), metrics=metrics)


def build_chain(settings: ForgeSettings) -> ValidationChain:
    """Build the chain named in settings.validation.chain from the registry."""
    from .. import registry

    validators = []
    for name in settings.validation.chain:
        try:
            validators.append(registry.create("validator", name, settings))
        except KeyError:
            known = ", ".join(registry.list_tags("validator"))
            raise SettingsError(f"validation.chain: unknown validator {name!r} (known: {known})") from None

    return ValidationChain(
        validators,
        ink_threshold=settings.pixels.ink_threshold,
        density_min=settings.validation.density_min,
        density_max=settings.validation.density_max,
    )
