"""
coinvault.services.catalog_service — Reward Catalog Administration
===================================================================

Create / update / toggle / delete shop rewards.  Every write follows the
pattern:
  1. Authenticate + authorize
  2. Read "before" snapshot
  3. Apply change and flush
  4. Write admin_log with before/after JSON
  5. Commit
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Engine, delete, func, select
from sqlalchemy.orm import Session

from coinvault.constants import (
    MSG_INVALID_REWARD_TYPE,
    MSG_NEGATIVE_REWARD_COST,
    MSG_NEGATIVE_STOCK,
    MSG_REWARD_HAS_ACTIVE_CLAIMS,
    MSG_REWARD_NOT_FOUND,
)
from coinvault.database.engine import get_session
from coinvault.database.models import AdminActionType, Reward, RewardClaim, RewardType
from coinvault.engine.transitions import OPEN_CLAIM_STATUSES, TERMINAL_CLAIM_STATUSES
from coinvault.errors import NotFoundError, ValidationError, economy_action
from coinvault.services.audit import log_admin_action, row_to_dict
from coinvault.services.auth_gate import (
    Identity,
    authenticate,
    authorize_admin,
    require_reviewer,
)

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset({
    "name", "description", "image_url", "type",
    "coins_required", "quantity_available", "is_active",
})


def _validate_fields(fields: dict[str, Any]) -> None:
    cost = fields.get("coins_required")
    if cost is not None and cost < 0:
        raise ValidationError(MSG_NEGATIVE_REWARD_COST)
    stock = fields.get("quantity_available")
    if stock is not None and stock < 0:
        raise ValidationError(MSG_NEGATIVE_STOCK)
    reward_type = fields.get("type")
    if reward_type is not None and reward_type not in {t.value for t in RewardType}:
        raise ValidationError(MSG_INVALID_REWARD_TYPE)


def _get_reward(session: Session, reward_id: str) -> Reward:
    reward = session.get(Reward, reward_id)
    if reward is None:
        raise NotFoundError(MSG_REWARD_NOT_FOUND)
    return reward


def count_open_claims(session: Session, reward_id: str) -> int:
    """Claims on *reward_id* that are still pending, approved or shipped."""
    return session.scalar(
        select(func.count())
        .select_from(RewardClaim)
        .where(
            RewardClaim.reward_id == reward_id,
            RewardClaim.status.in_(OPEN_CLAIM_STATUSES),
        )
    ) or 0


@economy_action
def create_reward(
    engine: Engine,
    identity: Identity | None,
    *,
    name: str,
    coins_required: int,
    quantity_available: int = 0,
    type: str = RewardType.PHYSICAL.value,
    description: str | None = None,
    image_url: str | None = None,
) -> Reward:
    with get_session(engine) as session:
        caller = require_reviewer(session, identity)
        _validate_fields({
            "coins_required": coins_required,
            "quantity_available": quantity_available,
            "type": type,
        })

        reward = Reward(
            name=name,
            description=description or None,
            image_url=image_url or None,
            type=type,
            coins_required=coins_required,
            quantity_available=quantity_available,
            is_active=True,
        )
        session.add(reward)
        session.flush()
        session.refresh(reward)
        log_admin_action(
            session,
            actor_id=caller.user_id,
            action_type=AdminActionType.CREATE,
            target_table="rewards",
            target_id=reward.id,
            before=None,
            after=row_to_dict(reward),
        )

    logger.info("Reward %s (%r) created by %s", reward.id, name, caller.user_id)
    return reward


def _audited_reward_update(
    engine: Engine, identity: Identity | None, reward_id: str, changes: dict[str, Any],
) -> Reward:
    with get_session(engine) as session:
        caller = require_reviewer(session, identity)
        reward = _get_reward(session, reward_id)
        _validate_fields(changes)

        before = row_to_dict(reward)
        for key, value in changes.items():
            if key in _EDITABLE_FIELDS:
                setattr(reward, key, value)
        session.flush()
        session.refresh(reward)
        log_admin_action(
            session,
            actor_id=caller.user_id,
            action_type=AdminActionType.UPDATE,
            target_table="rewards",
            target_id=reward.id,
            before=before,
            after=row_to_dict(reward),
        )
        return reward


@economy_action
def update_reward(
    engine: Engine, identity: Identity | None, reward_id: str, **changes: Any,
) -> Reward:
    """Partial update; keys outside the editable set are ignored."""
    return _audited_reward_update(engine, identity, reward_id, changes)


@economy_action
def toggle_reward_active(
    engine: Engine, identity: Identity | None, reward_id: str, is_active: bool,
) -> Reward:
    return _audited_reward_update(engine, identity, reward_id, {"is_active": is_active})


@economy_action
def delete_reward(engine: Engine, identity: Identity | None, reward_id: str) -> bool:
    """Admin-only hard delete, refused while any claim is still open.

    Delivered and cancelled claims go with the reward; their coin movements
    stay in the ledger and the reward snapshot stays in admin_log.
    """
    caller = authenticate(identity)
    with get_session(engine) as session:
        authorize_admin(session, caller)
        reward = _get_reward(session, reward_id)

        open_claims = count_open_claims(session, reward_id)
        if open_claims > 0:
            raise ValidationError(MSG_REWARD_HAS_ACTIVE_CLAIMS.format(count=open_claims))

        log_admin_action(
            session,
            actor_id=caller.user_id,
            action_type=AdminActionType.DELETE,
            target_table="rewards",
            target_id=reward.id,
            before=row_to_dict(reward),
            after=None,
        )
        session.execute(
            delete(RewardClaim).where(
                RewardClaim.reward_id == reward_id,
                RewardClaim.status.in_([s.value for s in TERMINAL_CLAIM_STATUSES]),
            )
        )
        session.delete(reward)

    logger.info("Reward %s deleted by %s", reward_id, caller.user_id)
    return True
