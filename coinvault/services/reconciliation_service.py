"""
coinvault.services.reconciliation_service — Balance Reconciliation
===================================================================

Operator job that checks each ``user_coins.balance`` against the sum of the
user's ``coin_transactions``.

How it works:
    1. ``SUM(amount)`` from ``coin_transactions`` grouped by user_id.
    2. Compare against the stored ``user_coins`` balance.
    3. Report every mismatch, including balances with no ledger rows and
       ledger totals with no balance row.

Nothing is corrected automatically.  The balance is the value every spend
check consults, so fixing drift is an operator decision.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine, func, select

from coinvault.database.engine import get_session
from coinvault.database.models import CoinTransaction, UserCoins

logger = logging.getLogger(__name__)


def reconcile_balances(engine: Engine) -> dict:
    """Compare stored balances with ledger sums.

    Returns ``{"checked": N, "drifted": M, "drift": [...], "timestamp": ...}``.
    """
    drift: list[dict] = []

    with get_session(engine) as session:
        ledger_q = (
            select(
                CoinTransaction.user_id,
                func.sum(CoinTransaction.amount).label("total"),
            )
            .group_by(CoinTransaction.user_id)
        )
        ledger_map: dict[str, int] = {
            row.user_id: int(row.total or 0)
            for row in session.execute(ledger_q).all()
        }

        balance_map: dict[str, int] = {
            row.user_id: row.balance
            for row in session.execute(
                select(UserCoins.user_id, UserCoins.balance)
            ).all()
        }

    user_ids = sorted(ledger_map.keys() | balance_map.keys())
    for user_id in user_ids:
        stored = balance_map.get(user_id, 0)
        ledger_total = ledger_map.get(user_id, 0)
        if stored != ledger_total:
            drift.append({
                "user_id": user_id,
                "balance": stored,
                "ledger_total": ledger_total,
                "diff": stored - ledger_total,
            })

    if drift:
        logger.warning(
            "Balance reconciliation: %d/%d balances drifted: %s",
            len(drift), len(user_ids), drift,
        )
    else:
        logger.info("Balance reconciliation: all %d balances match", len(user_ids))

    return {
        "checked": len(user_ids),
        "drifted": len(drift),
        "drift": drift,
        "timestamp": datetime.now(UTC).isoformat(),
    }
