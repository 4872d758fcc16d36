"""
Forge pipeline: generate -> (morph) -> validate -> lineage -> governance.

ForgePipeline wires the registry's generators, morph engine and validator
chain to one lineage graph and one governance proposer, all configured
from a single ForgeSettings.
"""

from __future__ import annotations

import logging
import threading
from typing import Mapping

from . import registry
from .capsule import morph_capsules, wrap_raster
from .config import ForgeSettings
from .errors import UnknownCapsuleError
from .governance.proposer import DefaultGovernanceProposer, GovernanceProposal
from .lineage.graph import LineageGraphBuilder
from .models import PreprocessingMethod, ProvenanceMetadata, SymbolCapsule, SymbolType, ValidationResult
from .validation.chain import ChainReport, build_chain

logger = logging.getLogger(__name__)

MORPH_TRANSITION = "Morph"


class ForgePipeline:
    def __init__(self, settings: ForgeSettings | None = None):
        self.settings = settings or ForgeSettings()
        self.lineage = LineageGraphBuilder(strict=self.settings.lineage.strict_links)
        self.chain = build_chain(self.settings)
        self.engine = registry.create("morph", "pixel_blend", self.settings)
        self.proposer = DefaultGovernanceProposer(self.settings.governance)

        self._lock = threading.Lock()
        self._capsules: list[SymbolCapsule] = []
        self._validated: list[tuple[SymbolCapsule, ChainReport]] = []

    @property
    def audit_tag(self) -> str:
        return self.settings.governance.audit_tag

    @property
    def capsules(self) -> list[SymbolCapsule]:
        with self._lock:
            return list(self._capsules)

    @property
    def validated(self) -> list[tuple[SymbolCapsule, ChainReport]]:
        """(capsule, latest report) pairs in validation order, one per capsule."""
        with self._lock:
            return list(self._validated)

    @property
    def reports(self) -> list[ChainReport]:
        return [report for _, report in self.validated]

    @property
    def results(self) -> list[ValidationResult]:
        return [r for report in self.reports for r in report.results]

    def report_for(self, capsule: SymbolCapsule) -> ChainReport | None:
        for seen, report in self.validated:
            if seen is capsule:
                return report
        return None

    def add(self, capsule: SymbolCapsule) -> SymbolCapsule:
        """Record an externally built capsule as a lineage node."""
        with self._lock:
            self._capsules.append(capsule)
        self.lineage.add_capsule(capsule)
        return capsule

    def generate(
        self,
        symbol_type: SymbolType | str,
        width: int,
        height: int,
        *,
        style: str | None = None,
        seed: int | None = None,
        critical: bool = False,
    ) -> SymbolCapsule:
        symbol_type = SymbolType(symbol_type)
        generator = registry.create("generator", symbol_type.value)
        raster = generator.generate(width, height, seed=seed)

        capsule = wrap_raster(
            raster,
            symbol_type,
            style or symbol_type.value,
            self.settings.contributor,
            generation_seed=seed,
            provenance=ProvenanceMetadata(
                source_image=f"generator:{symbol_type.value}",
                method=PreprocessingMethod.BINARIZED,
                validated_by=self.settings.contributor,
            ),
            audit_tag=self.audit_tag,
            governance_critical=critical,
        )
        logger.info("generated %s (%dx%d, seed=%s)", capsule.short_id, width, height, seed)
        return self.add(capsule)

    def morph(self, a: SymbolCapsule, b: SymbolCapsule, factor: float) -> SymbolCapsule:
        """
        Morph a toward b, then link each parent to the result.

        Nothing is recorded unless both parents are already lineage nodes
        (strict mode) and the rasters match.
        """
        if self.lineage.strict:
            for parent in (a, b):
                if parent.identity not in self.lineage:
                    raise UnknownCapsuleError(parent.identity, "source")
        capsule = morph_capsules(
            a,
            b,
            factor,
            contributor=self.settings.contributor,
            engine=self.engine,
            audit_tag=self.audit_tag,
        )
        self.add(capsule)
        self.lineage.link(a.identity, capsule.identity, MORPH_TRANSITION, self.audit_tag)
        self.lineage.link(b.identity, capsule.identity, MORPH_TRANSITION, self.audit_tag)
        return capsule

    def validate(self, capsule: SymbolCapsule, *, overrides: Mapping[str, str] | None = None) -> ChainReport:
        report = self.chain.run(capsule, overrides=overrides)
        with self._lock:
            # Capsules may share an identity; reports are kept per capsule object.
            for i, (seen, _) in enumerate(self._validated):
                if seen is capsule:
                    self._validated[i] = (capsule, report)
                    break
            else:
                self._validated.append((capsule, report))
        logger.info(
            "validated %s: %s (%d failure(s))",
            capsule.short_id,
            "pass" if report.passed else "fail",
            len(report.failures),
        )
        return report

    def validate_all(self, *, overrides: Mapping[str, str] | None = None) -> list[ChainReport]:
        return [self.validate(c, overrides=overrides) for c in self.capsules]

    def propose(self) -> GovernanceProposal:
        """One governance proposal over every capsule and result recorded so far."""
        capsules = self.capsules
        results = self.results
        logger.info("proposing over %d capsule(s), %d result(s)", len(capsules), len(results))
        return self.proposer.propose(capsules, results)
