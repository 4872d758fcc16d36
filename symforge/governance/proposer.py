"""
Governance proposals for capsule batches.

A proposal scores a batch by its validation outcomes and decides whether
the batch may be promoted without contributor sign-off. Anything the
proposer cannot account for resolves to "approval required".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Protocol

from ..models import SymbolCapsule, SymbolType, ValidationResult
from ..util import new_proposal_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GovernancePolicy:
    """
    Promotion thresholds.

    A batch needs confidence of at least confidence_threshold + ambiguity_margin
    to be promoted without approval. Failures on capsules whose type is in
    critical_types always require approval.
    """

    confidence_threshold: float = 0.90
    ambiguity_margin: float = 0.0
    critical_types: frozenset[SymbolType] = frozenset()
    audit_tag: str = "symforge"

    def __post_init__(self) -> None:
        for name in ("confidence_threshold", "ambiguity_margin"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0.0, 1.0], got {value}")

    @property
    def required_confidence(self) -> float:
        return self.confidence_threshold + self.ambiguity_margin

    def is_critical(self, capsule: SymbolCapsule) -> bool:
        return capsule.governance_critical or capsule.symbol_type in self.critical_types


@dataclass(frozen=True)
class GovernanceProposal:
    proposal_id: str
    proposed_change: str
    rationale: str
    confidence_score: float
    audit_tag: str
    requires_contributor_approval: bool
    reasons: tuple[str, ...] = ()  # why approval is required, empty when promotable
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "proposal_id": self.proposal_id,
            "proposed_change": self.proposed_change,
            "rationale": self.rationale,
            "confidence_score": self.confidence_score,
            "audit_tag": self.audit_tag,
            "requires_contributor_approval": self.requires_contributor_approval,
            "reasons": list(self.reasons),
            "created_at": self.created_at.isoformat(),
        }


class GovernanceProposer(Protocol):
    def propose(
        self,
        capsules: Iterable[SymbolCapsule],
        results: Iterable[ValidationResult],
    ) -> GovernanceProposal:
        ...


def confidence_score(results: list[ValidationResult]) -> float:
    """Fraction of passing results. Adding a failing result can only lower it."""
    if not results:
        return 0.0
    passed = sum(1 for r in results if r.passed)
    return passed / len(results)


class DefaultGovernanceProposer:
    """Scores a batch as passed/total and applies the policy's approval rules."""

    def __init__(self, policy: GovernancePolicy | None = None):
        self.policy = policy or GovernancePolicy()

    def propose(
        self,
        capsules: Iterable[SymbolCapsule],
        results: Iterable[ValidationResult],
    ) -> GovernanceProposal:
        """
        Build one proposal for the batch.

        Results are attributed to capsules by capsule_id. In a single-capsule
        batch, results without a capsule_id belong to that capsule.

        Raises:
            TypeError: if capsules or results is None, or holds the wrong type
        """
        if capsules is None or results is None:
            raise TypeError("capsules and results are required")

        # Snapshot the inputs; the caller's collections are never touched.
        batch = list(capsules)
        outcomes = list(results)
        for capsule in batch:
            if not isinstance(capsule, SymbolCapsule):
                raise TypeError(f"Expected SymbolCapsule, got {type(capsule).__name__}")
        for result in outcomes:
            if not isinstance(result, ValidationResult):
                raise TypeError(f"Expected ValidationResult, got {type(result).__name__}")

        # Distinct capsules may share an identity (identical rasters); results
        # attach to the identity, counts stay per capsule.
        by_id = {c.identity: c for c in batch}
        critical_ids = {c.identity for c in batch if self.policy.is_critical(c)}
        single = batch[0].identity if len(by_id) == 1 else None

        confidence = confidence_score(outcomes)
        reasons: list[str] = []

        if not batch:
            reasons.append("batch contains no capsules")

        if confidence < self.policy.required_confidence:
            reasons.append(
                f"confidence {confidence:.2f} is below the required {self.policy.required_confidence:.2f}"
            )

        seen: set[str] = set()
        critical_failures: set[str] = set()
        unattributed = 0
        outside: set[str] = set()
        for result in outcomes:
            capsule_id = result.capsule_id or single
            if capsule_id is None:
                unattributed += 1
                continue
            capsule = by_id.get(capsule_id)
            if capsule is None:
                outside.add(capsule_id)
                continue
            seen.add(capsule_id)
            if not result.passed and capsule_id in critical_ids:
                critical_failures.add(capsule.short_id)

        if critical_failures:
            reasons.append(f"validation failed on governance-critical capsule(s): {', '.join(sorted(critical_failures))}")
        missing = [c.short_id for c in batch if c.identity not in seen]
        if missing:
            reasons.append(f"no validation results for: {', '.join(sorted(set(missing)))}")
        if unattributed:
            reasons.append(f"{unattributed} result(s) name no capsule")
        if outside:
            reasons.append(f"{len(outside)} result(s) reference capsules outside the batch")

        requires_approval = bool(reasons)
        passed = sum(1 for r in outcomes if r.passed)
        summary = f"{passed} of {len(outcomes)} validation(s) passed across {len(batch)} capsule(s)"

        if requires_approval:
            proposed_change = f"Hold {len(batch)} capsule(s) for contributor review"
            rationale = summary + "; " + "; ".join(reasons)
            logger.warning("governance: approval required (%s)", "; ".join(reasons))
        else:
            proposed_change = f"Promote {len(batch)} capsule(s) without contributor review"
            rationale = summary

        proposal = GovernanceProposal(
            proposal_id=new_proposal_id(),
            proposed_change=proposed_change,
            rationale=rationale,
            confidence_score=confidence,
            audit_tag=self.policy.audit_tag,
            requires_contributor_approval=requires_approval,
            reasons=tuple(reasons),
        )
        logger.info("governance proposal %s (confidence %.2f)", proposal.proposal_id, confidence)
        return proposal
