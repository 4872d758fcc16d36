"""Batch promotion proposals."""

from .proposer import (
    DefaultGovernanceProposer,
    GovernancePolicy,
    GovernanceProposal,
    GovernanceProposer,
    confidence_score,
)

__all__ = [
    "GovernancePolicy",
    "GovernanceProposal",
    "GovernanceProposer",
    "DefaultGovernanceProposer",
    "confidence_score",
]
