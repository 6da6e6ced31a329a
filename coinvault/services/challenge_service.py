"""
coinvault.services.challenge_service — Challenge Participation Engine
======================================================================

A participant submits one attempt per challenge (``participate``); a
reviewer then approves, rejects, or reverts it.  Approval credits the
challenge's coins, revert debits exactly what approval credited.

Each reviewer operation runs as a single transaction:
  1. Authenticate, then authorize the caller
  2. Load and validate the participation
  3. Move the status with a conditional UPDATE (guards concurrent reviewers)
  4. Credit/debit the balance and append the ledger row
  5. Commit; notifications fire afterwards and can't undo the commit

``coins_earned`` always equals what the ledger holds for the participation.
Approving an ``approved`` participation is refused, and approving a
``rejected`` one that kept an earlier credit only pays the difference, so
a participation is never credited twice.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Engine, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coinvault.config import DEFAULT_DIRECT_PARTICIPATION_TYPES
from coinvault.constants import (
    DESC_APPROVAL_REVERTED,
    DESC_CHALLENGE_APPROVED,
    MSG_ALREADY_PARTICIPATED,
    MSG_CHALLENGE_NOT_DIRECT,
    MSG_CHALLENGE_NOT_FOUND,
    MSG_CHALLENGE_UNAVAILABLE,
    MSG_INVALID_CHALLENGE_TYPE,
    MSG_INVALID_TRANSITION,
    MSG_NEGATIVE_CHALLENGE_REWARD,
    MSG_NEGATIVE_COINS,
    MSG_NO_PENDING_PARTICIPATIONS,
    MSG_PARTICIPATION_ALREADY_APPROVED,
    MSG_PARTICIPATION_ALREADY_CREDITED,
    MSG_PARTICIPATION_NOT_APPROVED,
    MSG_PARTICIPATION_NOT_FOUND,
    MSG_PARTICIPATION_NOT_PENDING,
)
from coinvault.database.engine import get_session
from coinvault.database.models import (
    AdminActionType,
    Challenge,
    ChallengeParticipation,
    ChallengeStatus,
    ChallengeType,
    ParticipationStatus,
    TransactionType,
)
from coinvault.engine.transitions import require_participation_transition
from coinvault.errors import NotFoundError, ValidationError, economy_action
from coinvault.services import ledger_service
from coinvault.services.audit import log_admin_action, row_to_dict
from coinvault.services.auth_gate import Identity, authenticate, require_reviewer
from coinvault.services.notifier import Notifier, get_default_notifier, notify_safely

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _get_participation(session: Session, participation_id: str) -> ChallengeParticipation:
    participation = session.get(ChallengeParticipation, participation_id)
    if participation is None:
        raise NotFoundError(MSG_PARTICIPATION_NOT_FOUND)
    return participation


def _apply_approval(
    session: Session,
    participation: ChallengeParticipation,
    *,
    reviewer_id: str,
    coins: int,
) -> int:
    """Flip to approved so the participation holds *coins* in total.

    Credits ``coins - coins_earned`` and returns that amount.  The UPDATE is
    conditioned on the status and credit it read, so a concurrent reviewer
    makes it match nothing.
    """
    current = participation.status
    if current == ParticipationStatus.APPROVED.value:
        raise ValidationError(MSG_PARTICIPATION_ALREADY_APPROVED)
    require_participation_transition(current, ParticipationStatus.APPROVED.value)

    already_credited = participation.coins_earned
    payout = coins - already_credited
    if payout < 0:
        raise ValidationError(
            MSG_PARTICIPATION_ALREADY_CREDITED.format(coins=already_credited)
        )

    result = session.execute(
        update(ChallengeParticipation)
        .where(
            ChallengeParticipation.id == participation.id,
            ChallengeParticipation.status == current,
            ChallengeParticipation.coins_earned == already_credited,
        )
        .values(
            status=ParticipationStatus.APPROVED.value,
            coins_earned=coins,
            approved_by=reviewer_id,
            approved_at=datetime.now(UTC),
            rejection_reason=None,
        )
    )
    if result.rowcount == 0:
        raise ValidationError(MSG_PARTICIPATION_ALREADY_APPROVED)

    ledger_service.record_credit(
        session,
        user_id=participation.user_id,
        amount=payout,
        type_=TransactionType.EARNED,
        description=DESC_CHALLENGE_APPROVED.format(title=participation.challenge.title),
        reference_id=participation.id,
    )
    session.refresh(participation)
    return payout


# ---------------------------------------------------------------------------
# Participant
# ---------------------------------------------------------------------------
@economy_action
def participate(
    engine: Engine,
    identity: Identity | None,
    *,
    challenge_id: str,
    result_value: int | None,
    video_proof_url: str | None = None,
    social_media_url: str | None = None,
    instagram_proof_url: str | None = None,
    direct_types: Iterable[str] = DEFAULT_DIRECT_PARTICIPATION_TYPES,
) -> ChallengeParticipation:
    """Submit the caller's single attempt at a challenge (status ``pending``)."""
    caller = authenticate(identity)

    with get_session(engine) as session:
        challenge = session.scalar(
            select(Challenge).where(
                Challenge.id == challenge_id,
                Challenge.is_active.is_(True),
                Challenge.status == ChallengeStatus.ACTIVE.value,
            )
        )
        if challenge is None:
            raise NotFoundError(MSG_CHALLENGE_UNAVAILABLE)

        if challenge.type not in set(direct_types):
            raise ValidationError(MSG_CHALLENGE_NOT_DIRECT)

        existing = session.scalar(
            select(ChallengeParticipation.id).where(
                ChallengeParticipation.challenge_id == challenge_id,
                ChallengeParticipation.user_id == caller.user_id,
            )
        )
        if existing is not None:
            raise ValidationError(MSG_ALREADY_PARTICIPATED)

        participation = ChallengeParticipation(
            challenge_id=challenge_id,
            user_id=caller.user_id,
            result_value=result_value,
            video_proof_url=video_proof_url,
            social_media_url=social_media_url,
            instagram_proof_url=instagram_proof_url,
            status=ParticipationStatus.PENDING.value,
            coins_earned=0,
        )
        try:
            with session.begin_nested():
                session.add(participation)
                session.flush()
        except IntegrityError as exc:
            # Lost a race with the same user's concurrent submission.
            raise ValidationError(MSG_ALREADY_PARTICIPATED) from exc

        session.refresh(participation)

    logger.info(
        "User %s joined challenge %s (participation %s)",
        caller.user_id, challenge_id, participation.id,
    )
    return participation


# ---------------------------------------------------------------------------
# Reviewer
# ---------------------------------------------------------------------------
@economy_action
def approve_participation(
    engine: Engine,
    identity: Identity | None,
    participation_id: str,
    *,
    override_coins: int | None = None,
    notifier: Notifier | None = None,
) -> ChallengeParticipation:
    """Approve and pay out ``override_coins`` or the challenge's reward."""
    with get_session(engine) as session:
        caller = require_reviewer(session, identity)
        participation = _get_participation(session, participation_id)

        if participation.status == ParticipationStatus.APPROVED.value:
            logger.warning(
                "Refused re-approval of participation %s by %s",
                participation_id, caller.user_id,
            )
            raise ValidationError(MSG_PARTICIPATION_ALREADY_APPROVED)

        if override_coins is not None and override_coins < 0:
            raise ValidationError(MSG_NEGATIVE_COINS)

        challenge = participation.challenge
        coins = override_coins if override_coins is not None else challenge.coins_reward
        _apply_approval(session, participation, reviewer_id=caller.user_id, coins=coins)
        title = challenge.title

    notify_safely(
        (notifier or get_default_notifier()).challenge_approved,
        participation.user_id, title, coins,
    )
    return participation


@economy_action
def reject_participation(
    engine: Engine,
    identity: Identity | None,
    participation_id: str,
    *,
    reason: str | None = None,
    notifier: Notifier | None = None,
) -> ChallengeParticipation:
    """Mark rejected.  Never touches the ledger, whatever the prior status.

    ``coins_earned`` is left as is: a credit from an earlier approval stays
    with the participant and is recorded there.
    """
    with get_session(engine) as session:
        require_reviewer(session, identity)
        participation = _get_participation(session, participation_id)

        current = participation.status
        require_participation_transition(current, ParticipationStatus.REJECTED.value)
        result = session.execute(
            update(ChallengeParticipation)
            .where(
                ChallengeParticipation.id == participation_id,
                ChallengeParticipation.status == current,
            )
            .values(status=ParticipationStatus.REJECTED.value, rejection_reason=reason)
        )
        if result.rowcount == 0:
            raise ValidationError(MSG_INVALID_TRANSITION)

        session.refresh(participation)
        title = participation.challenge.title

    notify_safely(
        (notifier or get_default_notifier()).challenge_rejected,
        participation.user_id, title, reason,
    )
    return participation


@economy_action
def revert_approval(
    engine: Engine,
    identity: Identity | None,
    participation_id: str,
) -> ChallengeParticipation:
    """Take back an approval: debit ``coins_earned`` and return to pending.

    If the participant already spent the coins, the debit is refused with
    "Saldo insuficiente" and the participation stays approved.
    """
    with get_session(engine) as session:
        caller = require_reviewer(session, identity)
        participation = _get_participation(session, participation_id)

        if participation.status != ParticipationStatus.APPROVED.value:
            raise ValidationError(MSG_PARTICIPATION_NOT_APPROVED)
        require_participation_transition(
            participation.status, ParticipationStatus.PENDING.value,
        )

        coins = participation.coins_earned
        result = session.execute(
            update(ChallengeParticipation)
            .where(
                ChallengeParticipation.id == participation_id,
                ChallengeParticipation.status == ParticipationStatus.APPROVED.value,
            )
            .values(
                status=ParticipationStatus.PENDING.value,
                coins_earned=0,
                approved_by=None,
                approved_at=None,
            )
        )
        if result.rowcount == 0:
            raise ValidationError(MSG_PARTICIPATION_NOT_APPROVED)

        ledger_service.record_debit(
            session,
            user_id=participation.user_id,
            amount=coins,
            type_=TransactionType.REFUND,
            description=DESC_APPROVAL_REVERTED,
            reference_id=participation_id,
        )
        session.refresh(participation)

    logger.info(
        "Participation %s reverted by %s (%d coins removed)",
        participation_id, caller.user_id, coins,
    )
    return participation


@economy_action
def approve_all_pending(
    engine: Engine,
    identity: Identity | None,
    challenge_id: str,
    *,
    notifier: Notifier | None = None,
) -> int:
    """Approve every pending participation of a challenge; return the count.

    Each item commits on its own.  An item that stopped being pending in the
    meantime is skipped.  An unexpected failure (including an
    :class:`InternalError` from a collaborator) stops the loop: items already
    approved stay approved, and re-running only touches what is still pending.
    """
    notifier = notifier or get_default_notifier()

    with get_session(engine) as session:
        caller = require_reviewer(session, identity)
        challenge = session.get(Challenge, challenge_id)
        if challenge is None:
            raise NotFoundError(MSG_CHALLENGE_NOT_FOUND)
        title = challenge.title
        pending_ids = session.scalars(
            select(ChallengeParticipation.id)
            .where(
                ChallengeParticipation.challenge_id == challenge_id,
                ChallengeParticipation.status == ParticipationStatus.PENDING.value,
            )
            .order_by(ChallengeParticipation.created_at, ChallengeParticipation.id)
        ).all()

    if not pending_ids:
        raise ValidationError(MSG_NO_PENDING_PARTICIPATIONS)

    approved = 0
    for participation_id in pending_ids:
        try:
            with get_session(engine) as session:
                participation = _get_participation(session, participation_id)
                if participation.status != ParticipationStatus.PENDING.value:
                    raise ValidationError(MSG_PARTICIPATION_NOT_PENDING)
                coins = participation.challenge.coins_reward
                _apply_approval(
                    session, participation, reviewer_id=caller.user_id, coins=coins,
                )
        except (ValidationError, NotFoundError) as exc:
            logger.warning(
                "Skipped participation %s in bulk approval: %s",
                participation_id, exc.message,
            )
            continue
        approved += 1
        notify_safely(notifier.challenge_approved, participation.user_id, title, coins)

    logger.info(
        "Bulk approval of challenge %s by %s: %d/%d approved",
        challenge_id, caller.user_id, approved, len(pending_ids),
    )
    return approved


# ---------------------------------------------------------------------------
# Challenge administration (reviewer)
# ---------------------------------------------------------------------------
_EDITABLE_FIELDS = frozenset({
    "title", "description", "type", "coins_reward", "is_active", "status",
})


def _validate_fields(fields: dict[str, Any]) -> None:
    coins_reward = fields.get("coins_reward")
    if coins_reward is not None and coins_reward < 0:
        raise ValidationError(MSG_NEGATIVE_CHALLENGE_REWARD)
    challenge_type = fields.get("type")
    if challenge_type is not None and challenge_type not in {t.value for t in ChallengeType}:
        raise ValidationError(MSG_INVALID_CHALLENGE_TYPE)
    status = fields.get("status")
    if status is not None and status not in {s.value for s in ChallengeStatus}:
        raise ValidationError(MSG_INVALID_TRANSITION)


@economy_action
def create_challenge(
    engine: Engine,
    identity: Identity | None,
    *,
    title: str,
    coins_reward: int = 0,
    type: str = ChallengeType.FISICO.value,
    description: str | None = None,
) -> Challenge:
    """Create an active challenge that pays *coins_reward* on approval."""
    with get_session(engine) as session:
        caller = require_reviewer(session, identity)
        _validate_fields({"coins_reward": coins_reward, "type": type})

        challenge = Challenge(
            title=title,
            description=description or None,
            type=type,
            coins_reward=coins_reward,
            is_active=True,
            status=ChallengeStatus.ACTIVE.value,
        )
        session.add(challenge)
        session.flush()
        session.refresh(challenge)
        log_admin_action(
            session,
            actor_id=caller.user_id,
            action_type=AdminActionType.CREATE,
            target_table="challenges",
            target_id=challenge.id,
            before=None,
            after=row_to_dict(challenge),
        )

    logger.info("Challenge %s (%r) created by %s", challenge.id, title, caller.user_id)
    return challenge


def _audited_challenge_update(
    engine: Engine, identity: Identity | None, challenge_id: str, changes: dict[str, Any],
) -> Challenge:
    with get_session(engine) as session:
        caller = require_reviewer(session, identity)
        challenge = session.get(Challenge, challenge_id)
        if challenge is None:
            raise NotFoundError(MSG_CHALLENGE_NOT_FOUND)
        _validate_fields(changes)

        before = row_to_dict(challenge)
        for key, value in changes.items():
            if key in _EDITABLE_FIELDS:
                setattr(challenge, key, value)
        session.flush()
        session.refresh(challenge)
        log_admin_action(
            session,
            actor_id=caller.user_id,
            action_type=AdminActionType.UPDATE,
            target_table="challenges",
            target_id=challenge.id,
            before=before,
            after=row_to_dict(challenge),
        )
        return challenge


@economy_action
def update_challenge(
    engine: Engine, identity: Identity | None, challenge_id: str, **changes: Any,
) -> Challenge:
    """Partial update; keys outside the editable set are ignored.

    A new ``coins_reward`` applies to approvals from now on; participations
    already approved keep what they were credited.
    """
    return _audited_challenge_update(engine, identity, challenge_id, changes)


@economy_action
def close_challenge(
    engine: Engine, identity: Identity | None, challenge_id: str,
) -> Challenge:
    """Stop accepting participations; existing ones can still be reviewed."""
    return _audited_challenge_update(
        engine, identity, challenge_id, {"status": ChallengeStatus.CLOSED.value},
    )


@economy_action
def toggle_challenge_active(
    engine: Engine, identity: Identity | None, challenge_id: str, is_active: bool,
) -> Challenge:
    return _audited_challenge_update(
        engine, identity, challenge_id, {"is_active": is_active},
    )
