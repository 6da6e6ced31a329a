"""
coinvault.services.stock_service — Reward Stock Counter
========================================================

Check-and-decrement is one conditional UPDATE, so two concurrent claims on
the last unit cannot both succeed: the second statement matches zero rows.
"""

from __future__ import annotations

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from coinvault.constants import MSG_STOCK_EXHAUSTED
from coinvault.database.models import Reward
from coinvault.errors import InternalError, ValidationError

logger = logging.getLogger(__name__)


def decrement_stock(session: Session, reward_id: str) -> None:
    """Take one unit; :class:`ValidationError` if none is left."""
    result = session.execute(
        update(Reward)
        .where(Reward.id == reward_id, Reward.quantity_available > 0)
        .values(quantity_available=Reward.quantity_available - 1)
    )
    if result.rowcount == 0:
        raise ValidationError(MSG_STOCK_EXHAUSTED)


def increment_stock(session: Session, reward_id: str) -> None:
    """Give one unit back (claim cancellation)."""
    result = session.execute(
        update(Reward)
        .where(Reward.id == reward_id)
        .values(quantity_available=Reward.quantity_available + 1)
    )
    if result.rowcount == 0:
        raise InternalError(
            cause=LookupError(f"stock restore matched no reward {reward_id}")
        )
    logger.info("Restored one unit of stock to reward %s", reward_id)
