"""
tests/test_transitions.py — Claim & Participation State Machines
=================================================================
Pure unit tests for :mod:`coinvault.engine.transitions` (no database).
"""

from __future__ import annotations

import pytest

from coinvault.database.models import ClaimStatus
from coinvault.engine.transitions import (
    OPEN_CLAIM_STATUSES,
    TERMINAL_CLAIM_STATUSES,
    can_transition_claim,
    can_transition_participation,
    require_claim_transition,
    require_participation_transition,
)
from coinvault.errors import ValidationError


@pytest.mark.parametrize(("current", "target"), [
    ("pending", "approved"),
    ("pending", "cancelled"),
    ("approved", "shipped"),
    ("shipped", "delivered"),
])
def test_forward_claim_edges_allowed(current, target):
    assert can_transition_claim(current, target)


@pytest.mark.parametrize(("current", "target"), [
    ("pending", "shipped"),
    ("approved", "cancelled"),
    ("shipped", "approved"),
    ("delivered", "cancelled"),
    ("cancelled", "pending"),
    ("pending", "bogus"),
])
def test_other_claim_edges_refused(current, target):
    assert not can_transition_claim(current, target)


def test_terminal_and_open_sets_partition_statuses():
    assert TERMINAL_CLAIM_STATUSES == {ClaimStatus.DELIVERED, ClaimStatus.CANCELLED}
    assert set(OPEN_CLAIM_STATUSES) == {"pending", "approved", "shipped"}


def test_require_claim_transition_raises_validation_error():
    with pytest.raises(ValidationError, match="Transição de status inválida"):
        require_claim_transition("delivered", "shipped")


def test_participation_revert_edge_exists():
    assert can_transition_participation("approved", "pending")
    assert not can_transition_participation("pending", "pending")


def test_rejected_participation_can_be_approved_again():
    assert can_transition_participation("rejected", "approved")
    assert can_transition_participation("approved", "rejected")


def test_require_participation_transition_refuses_unknown_edges():
    with pytest.raises(ValidationError):
        require_participation_transition("pending", "pending")
    with pytest.raises(ValidationError):
        require_participation_transition("rejected", "bogus")
