"""
coinvault.engine.transitions — Claim & Participation State Machines
====================================================================

Pure lookup tables, no DB I/O.  Services consult these before issuing the
conditional UPDATE that actually moves a row, so the table is the single
place that says which edges exist.

Claims::

    pending ──► approved ──► shipped ──► delivered
       │
       └──► cancelled        (owner only, and only from pending)

Participations::

    pending ──► approved ──► pending      (revert, offsets the credit)
       │           │
       └──► rejected ◄┘      rejected ──► approved

Rejecting never touches the ledger, so a participation rejected after
approval still carries its credit in ``coins_earned``.  Approving it again
only pays the difference.
"""

from __future__ import annotations

from coinvault.constants import MSG_INVALID_TRANSITION
from coinvault.database.models import ClaimStatus, ParticipationStatus
from coinvault.errors import ValidationError

__all__ = [
    "CLAIM_TRANSITIONS",
    "OPEN_CLAIM_STATUSES",
    "PARTICIPATION_TRANSITIONS",
    "TERMINAL_CLAIM_STATUSES",
    "can_transition_claim",
    "can_transition_participation",
    "require_claim_transition",
    "require_participation_transition",
]

CLAIM_TRANSITIONS: dict[ClaimStatus, frozenset[ClaimStatus]] = {
    ClaimStatus.PENDING: frozenset({ClaimStatus.APPROVED, ClaimStatus.CANCELLED}),
    ClaimStatus.APPROVED: frozenset({ClaimStatus.SHIPPED}),
    ClaimStatus.SHIPPED: frozenset({ClaimStatus.DELIVERED}),
    ClaimStatus.DELIVERED: frozenset(),
    ClaimStatus.CANCELLED: frozenset(),
}

TERMINAL_CLAIM_STATUSES: frozenset[ClaimStatus] = frozenset(
    status for status, targets in CLAIM_TRANSITIONS.items() if not targets
)

# Claim statuses that still hold stock / block catalog deletion.
OPEN_CLAIM_STATUSES: tuple[str, ...] = (
    ClaimStatus.PENDING.value,
    ClaimStatus.APPROVED.value,
    ClaimStatus.SHIPPED.value,
)

PARTICIPATION_TRANSITIONS: dict[ParticipationStatus, frozenset[ParticipationStatus]] = {
    ParticipationStatus.PENDING: frozenset({
        ParticipationStatus.APPROVED, ParticipationStatus.REJECTED,
    }),
    ParticipationStatus.APPROVED: frozenset({
        ParticipationStatus.PENDING, ParticipationStatus.REJECTED,
    }),
    ParticipationStatus.REJECTED: frozenset({
        ParticipationStatus.APPROVED, ParticipationStatus.REJECTED,
    }),
}


def can_transition_claim(current: str, target: str) -> bool:
    """True if a claim in *current* may move to *target*."""
    try:
        return ClaimStatus(target) in CLAIM_TRANSITIONS[ClaimStatus(current)]
    except ValueError:
        return False


def can_transition_participation(current: str, target: str) -> bool:
    """True if a participation in *current* may move to *target*."""
    try:
        return (
            ParticipationStatus(target)
            in PARTICIPATION_TRANSITIONS[ParticipationStatus(current)]
        )
    except ValueError:
        return False


def require_claim_transition(current: str, target: str) -> None:
    """Raise :class:`ValidationError` unless *current* → *target* is an edge."""
    if not can_transition_claim(current, target):
        raise ValidationError(MSG_INVALID_TRANSITION)


def require_participation_transition(current: str, target: str) -> None:
    """Raise :class:`ValidationError` unless *current* → *target* is an edge."""
    if not can_transition_participation(current, target):
        raise ValidationError(MSG_INVALID_TRANSITION)
