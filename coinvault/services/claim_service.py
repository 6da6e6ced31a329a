"""
coinvault.services.claim_service — Reward Claims
=================================================

``claim_reward`` is the one purchase path.  Inside a single transaction:
  1. Authenticate the caller
  2. Replay: a key the caller already used returns the claim it created
     (keys are unique per user, not globally)
  3. Load the active reward, then check stock, then balance
  4. Insert the claim (``coins_spent`` frozen at the current cost)
  5. Debit the balance + ledger row, then take one unit of stock

Any failure in 4–5 rolls the whole unit back: no orphan claim, no debit
without stock.

``cancel_claim`` is the owner's undo for a still-pending claim: refund
``coins_spent`` and put the unit back.  Reviewers move claims forward
through approved → shipped → delivered.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coinvault.constants import (
    DESC_CLAIM_REFUND,
    DESC_CLAIM_SPENT,
    MSG_CLAIM_NOT_CANCELLABLE,
    MSG_CLAIM_NOT_FOUND,
    MSG_INSUFFICIENT_BALANCE,
    MSG_INVALID_TRANSITION,
    MSG_REWARD_NOT_FOUND,
    MSG_STOCK_EXHAUSTED,
)
from coinvault.database.engine import get_session
from coinvault.database.models import ClaimStatus, Reward, RewardClaim, TransactionType
from coinvault.engine.transitions import require_claim_transition
from coinvault.errors import NotFoundError, ValidationError, economy_action
from coinvault.services import ledger_service, stock_service
from coinvault.services.auth_gate import Identity, authenticate, require_reviewer
from coinvault.services.notifier import Notifier, get_default_notifier, notify_safely

logger = logging.getLogger(__name__)


def _find_by_idempotency_key(
    session: Session, user_id: str, key: str | None,
) -> RewardClaim | None:
    if not key:
        return None
    return session.scalar(
        select(RewardClaim).where(
            RewardClaim.idempotency_key == key,
            RewardClaim.user_id == user_id,
        )
    )


def _load_active_reward(session: Session, reward_id: str) -> Reward:
    reward = session.scalar(
        select(Reward).where(Reward.id == reward_id, Reward.is_active.is_(True))
    )
    if reward is None:
        raise NotFoundError(MSG_REWARD_NOT_FOUND)
    return reward


# ---------------------------------------------------------------------------
# Participant
# ---------------------------------------------------------------------------
@economy_action
def claim_reward(
    engine: Engine,
    identity: Identity | None,
    reward_id: str,
    *,
    idempotency_key: str | None = None,
) -> RewardClaim:
    """Spend coins on one unit of a reward; returns the pending claim."""
    caller = authenticate(identity)

    with get_session(engine) as session:
        replay = _find_by_idempotency_key(session, caller.user_id, idempotency_key)
        if replay is not None:
            logger.info(
                "Replayed claim %s for idempotency key %s", replay.id, idempotency_key,
            )
            return replay

        reward = _load_active_reward(session, reward_id)
        if reward.quantity_available <= 0:
            raise ValidationError(MSG_STOCK_EXHAUSTED)

        cost = reward.coins_required
        if ledger_service.get_balance(session, caller.user_id) < cost:
            raise ValidationError(MSG_INSUFFICIENT_BALANCE)

        claim = RewardClaim(
            user_id=caller.user_id,
            reward_id=reward.id,
            status=ClaimStatus.PENDING.value,
            coins_spent=cost,
            idempotency_key=idempotency_key,
        )
        try:
            with session.begin_nested():
                session.add(claim)
                session.flush()
        except IntegrityError:
            # Same key submitted concurrently; the other request won.
            replay = _find_by_idempotency_key(session, caller.user_id, idempotency_key)
            if replay is None:
                raise
            return replay

        ledger_service.record_debit(
            session,
            user_id=caller.user_id,
            amount=cost,
            type_=TransactionType.SPENT,
            description=DESC_CLAIM_SPENT.format(name=reward.name),
            reference_id=claim.id,
        )
        stock_service.decrement_stock(session, reward.id)
        session.refresh(claim)

    logger.info(
        "User %s claimed reward %s for %d coins (claim %s)",
        caller.user_id, reward_id, cost, claim.id,
    )
    return claim


@economy_action
def cancel_claim(
    engine: Engine,
    identity: Identity | None,
    claim_id: str,
    *,
    notifier: Notifier | None = None,
) -> RewardClaim:
    """Owner cancels a pending claim: refund ``coins_spent`` and restock."""
    caller = authenticate(identity)

    with get_session(engine) as session:
        result = session.execute(
            update(RewardClaim)
            .where(
                RewardClaim.id == claim_id,
                RewardClaim.user_id == caller.user_id,
                RewardClaim.status == ClaimStatus.PENDING.value,
            )
            .values(status=ClaimStatus.CANCELLED.value)
        )
        # Unknown id, someone else's claim, and non-pending all look the same.
        if result.rowcount == 0:
            raise NotFoundError(MSG_CLAIM_NOT_CANCELLABLE)

        claim = session.get(RewardClaim, claim_id)
        session.refresh(claim)
        reward_name = claim.reward.name
        ledger_service.record_credit(
            session,
            user_id=caller.user_id,
            amount=claim.coins_spent,
            type_=TransactionType.EARNED,
            description=DESC_CLAIM_REFUND.format(name=reward_name),
            reference_id=claim.id,
        )
        stock_service.increment_stock(session, claim.reward_id)

    notify_safely(
        (notifier or get_default_notifier()).claim_cancelled,
        caller.user_id, reward_name, claim.coins_spent,
    )
    return claim


@economy_action
def can_claim_reward(
    engine: Engine, identity: Identity | None, reward_id: str,
) -> bool:
    """Read-only preflight: active, in stock, and affordable right now."""
    caller = authenticate(identity)
    with get_session(engine) as session:
        reward = session.get(Reward, reward_id)
        if reward is None or not reward.is_active or reward.quantity_available <= 0:
            return False
        return ledger_service.get_balance(session, caller.user_id) >= reward.coins_required


# ---------------------------------------------------------------------------
# Reviewer fulfilment
# ---------------------------------------------------------------------------
def _advance_claim(
    engine: Engine, identity: Identity | None, claim_id: str, target: ClaimStatus,
) -> RewardClaim:
    with get_session(engine) as session:
        caller = require_reviewer(session, identity)
        claim = session.get(RewardClaim, claim_id)
        if claim is None:
            raise NotFoundError(MSG_CLAIM_NOT_FOUND)

        current = claim.status
        require_claim_transition(current, target.value)
        result = session.execute(
            update(RewardClaim)
            .where(RewardClaim.id == claim_id, RewardClaim.status == current)
            .values(status=target.value)
        )
        if result.rowcount == 0:
            raise ValidationError(MSG_INVALID_TRANSITION)
        session.refresh(claim)

    logger.info(
        "Claim %s moved %s -> %s by %s", claim_id, current, target.value, caller.user_id,
    )
    return claim


@economy_action
def approve_claim(engine: Engine, identity: Identity | None, claim_id: str) -> RewardClaim:
    return _advance_claim(engine, identity, claim_id, ClaimStatus.APPROVED)


@economy_action
def mark_claim_shipped(
    engine: Engine, identity: Identity | None, claim_id: str,
) -> RewardClaim:
    return _advance_claim(engine, identity, claim_id, ClaimStatus.SHIPPED)


@economy_action
def mark_claim_delivered(
    engine: Engine, identity: Identity | None, claim_id: str,
) -> RewardClaim:
    return _advance_claim(engine, identity, claim_id, ClaimStatus.DELIVERED)
