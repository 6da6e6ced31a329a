"""
coinvault.services.grant_service — Manual Coin Grants
======================================================

Reviewers (admins and creators) can hand coins to any existing user.  The
credit, its ledger row and the admin_log entry commit together.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine

from coinvault.constants import MSG_AMOUNT_NOT_POSITIVE, MSG_USER_NOT_FOUND
from coinvault.database.engine import get_session
from coinvault.database.models import AdminActionType, CoinTransaction, TransactionType, User
from coinvault.errors import NotFoundError, ValidationError, economy_action
from coinvault.services import ledger_service
from coinvault.services.audit import log_admin_action
from coinvault.services.auth_gate import Identity, require_reviewer
from coinvault.services.notifier import Notifier, get_default_notifier, notify_safely

logger = logging.getLogger(__name__)


@economy_action
def grant_coins(
    engine: Engine,
    identity: Identity | None,
    target_user_id: str,
    amount: int,
    description: str,
    *,
    notifier: Notifier | None = None,
) -> CoinTransaction:
    """Credit *amount* (> 0) to *target_user_id* and return the ledger row."""
    with get_session(engine) as session:
        caller = require_reviewer(session, identity)

        if amount <= 0:
            raise ValidationError(MSG_AMOUNT_NOT_POSITIVE)

        if session.get(User, target_user_id) is None:
            raise NotFoundError(MSG_USER_NOT_FOUND)

        before = ledger_service.get_balance(session, target_user_id)
        entry = ledger_service.record_credit(
            session,
            user_id=target_user_id,
            amount=amount,
            type_=TransactionType.EARNED,
            description=description,
        )
        log_admin_action(
            session,
            actor_id=caller.user_id,
            action_type=AdminActionType.GRANT_COINS,
            target_table="user_coins",
            target_id=target_user_id,
            before={"balance": before},
            after={"balance": before + amount},
            reason=description,
        )
        session.flush()
        session.refresh(entry)

    logger.info(
        "Reviewer %s granted %d coins to %s", caller.user_id, amount, target_user_id,
    )
    notify_safely(
        (notifier or get_default_notifier()).coins_granted,
        target_user_id, amount, description,
    )
    return entry
