"""
coinvault.services.wallet_service — Wallet Summary (read-only)
===============================================================

What the participant's wallet screen shows: balance, lifetime earned and
spent totals, claim counts, and the most recent ledger rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import Engine, case, func, select

from coinvault.config import DEFAULT_WALLET_HISTORY_LIMIT
from coinvault.database.engine import get_session
from coinvault.database.models import (
    ClaimStatus,
    CoinTransaction,
    RewardClaim,
    TransactionType,
)
from coinvault.errors import economy_action
from coinvault.services import ledger_service
from coinvault.services.auth_gate import Identity, authenticate

logger = logging.getLogger(__name__)


@dataclass
class WalletSummary:
    user_id: str
    balance: int = 0
    total_earned: int = 0
    total_spent: int = 0
    total_claims: int = 0
    pending_claims: int = 0
    delivered_claims: int = 0
    recent_transactions: list[dict] = field(default_factory=list)


def _transaction_to_dict(entry: CoinTransaction) -> dict:
    return {
        "id": entry.id,
        "amount": entry.amount,
        "type": entry.type,
        "description": entry.description,
        "reference_id": entry.reference_id,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }


@economy_action
def get_wallet_summary(
    engine: Engine,
    identity: Identity | None,
    *,
    history_limit: int = DEFAULT_WALLET_HISTORY_LIMIT,
) -> WalletSummary:
    caller = authenticate(identity)
    user_id = caller.user_id

    with get_session(engine) as session:
        totals = session.execute(
            select(
                func.coalesce(
                    func.sum(case((CoinTransaction.amount > 0, CoinTransaction.amount))), 0
                ).label("earned"),
                func.coalesce(
                    func.sum(case(
                        (CoinTransaction.type == TransactionType.SPENT.value,
                         -CoinTransaction.amount),
                    )),
                    0,
                ).label("spent"),
            ).where(CoinTransaction.user_id == user_id)
        ).one()

        claims = session.execute(
            select(
                func.count().label("total"),
                func.coalesce(func.sum(case(
                    (RewardClaim.status == ClaimStatus.PENDING.value, 1), else_=0,
                )), 0).label("pending"),
                func.coalesce(func.sum(case(
                    (RewardClaim.status == ClaimStatus.DELIVERED.value, 1), else_=0,
                )), 0).label("delivered"),
            ).where(RewardClaim.user_id == user_id)
        ).one()

        recent = ledger_service.list_transactions(session, user_id, limit=history_limit)

        return WalletSummary(
            user_id=user_id,
            balance=ledger_service.get_balance(session, user_id),
            total_earned=int(totals.earned),
            total_spent=int(totals.spent),
            total_claims=int(claims.total),
            pending_claims=int(claims.pending),
            delivered_claims=int(claims.delivered),
            recent_transactions=[_transaction_to_dict(t) for t in recent],
        )
