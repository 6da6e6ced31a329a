"""
coinvault.services.ledger_service — Balance & Coin Ledger
==========================================================

The balance in ``user_coins`` is authoritative; ``coin_transactions`` is the
audit trail.  Both are written inside the caller's session so they commit or
roll back together.

Balance changes are single SQL statements evaluated by the database:

* credit → ``UPDATE … SET balance = balance + :n``
* debit  → ``UPDATE … SET balance = balance - :n WHERE balance >= :n``

There is no read-then-write path.  If the statement cannot run, the
operation fails and the surrounding transaction rolls back.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coinvault.constants import MSG_INSUFFICIENT_BALANCE
from coinvault.database.models import CoinTransaction, TransactionType, UserCoins
from coinvault.errors import InternalError, ValidationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_balance(session: Session, user_id: str) -> int:
    """Current balance; 0 when the user has never held coins."""
    balance = session.scalar(
        select(UserCoins.balance).where(UserCoins.user_id == user_id)
    )
    return int(balance or 0)


def list_transactions(
    session: Session, user_id: str, *, limit: int = 50,
) -> Sequence[CoinTransaction]:
    """Newest-first ledger rows for *user_id*."""
    return session.scalars(
        select(CoinTransaction)
        .where(CoinTransaction.user_id == user_id)
        .order_by(CoinTransaction.created_at.desc(), CoinTransaction.id)
        .limit(limit)
    ).all()


# ---------------------------------------------------------------------------
# Atomic balance primitives
# ---------------------------------------------------------------------------
def _increment(session: Session, user_id: str, amount: int) -> int:
    result = session.execute(
        update(UserCoins)
        .where(UserCoins.user_id == user_id)
        .values(balance=UserCoins.balance + amount)
    )
    return result.rowcount


def credit(session: Session, user_id: str, amount: int) -> None:
    """Add *amount* (> 0) to the balance, creating the row on first credit."""
    if amount <= 0:
        raise ValueError(f"credit amount must be positive, got {amount}")

    if _increment(session, user_id, amount):
        return

    # First coins for this user.  A concurrent first credit may insert the
    # row between our UPDATE and INSERT; the SAVEPOINT keeps the outer
    # transaction alive so we can retry as an increment.
    try:
        with session.begin_nested():
            session.add(UserCoins(user_id=user_id, balance=amount))
            session.flush()
    except IntegrityError as exc:
        if not _increment(session, user_id, amount):
            raise InternalError(cause=exc) from exc


def debit(session: Session, user_id: str, amount: int) -> None:
    """Subtract *amount* (> 0) only if the balance covers it.

    Raises :class:`ValidationError` ("Saldo insuficiente") otherwise; the
    balance is never observed below zero.
    """
    if amount <= 0:
        raise ValueError(f"debit amount must be positive, got {amount}")

    result = session.execute(
        update(UserCoins)
        .where(UserCoins.user_id == user_id, UserCoins.balance >= amount)
        .values(balance=UserCoins.balance - amount)
    )
    if result.rowcount == 0:
        raise ValidationError(MSG_INSUFFICIENT_BALANCE)


# ---------------------------------------------------------------------------
# Ledger rows
# ---------------------------------------------------------------------------
def append_transaction(
    session: Session,
    *,
    user_id: str,
    amount: int,
    type_: TransactionType,
    description: str,
    reference_id: str | None = None,
) -> CoinTransaction:
    """Insert one immutable ledger row and flush so failures surface here."""
    entry = CoinTransaction(
        user_id=user_id,
        amount=amount,
        type=type_.value,
        description=description,
        reference_id=reference_id,
    )
    session.add(entry)
    session.flush()
    return entry


def record_credit(
    session: Session,
    *,
    user_id: str,
    amount: int,
    type_: TransactionType,
    description: str,
    reference_id: str | None = None,
) -> CoinTransaction | None:
    """Credit the balance and append the matching ledger row.

    A zero amount is a no-op: no balance change, no ledger row.
    """
    if amount == 0:
        return None
    credit(session, user_id, amount)
    entry = append_transaction(
        session,
        user_id=user_id,
        amount=amount,
        type_=type_,
        description=description,
        reference_id=reference_id,
    )
    logger.info("Credited %d coins to %s (%s)", amount, user_id, type_.value)
    return entry


def record_debit(
    session: Session,
    *,
    user_id: str,
    amount: int,
    type_: TransactionType,
    description: str,
    reference_id: str | None = None,
) -> CoinTransaction | None:
    """Debit the balance and append a ledger row of ``-amount``."""
    if amount == 0:
        return None
    debit(session, user_id, amount)
    entry = append_transaction(
        session,
        user_id=user_id,
        amount=-amount,
        type_=type_,
        description=description,
        reference_id=reference_id,
    )
    logger.info("Debited %d coins from %s (%s)", amount, user_id, type_.value)
    return entry
