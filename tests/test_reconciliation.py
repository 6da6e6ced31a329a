"""
tests/test_reconciliation.py — Balance vs. Ledger Reconciliation
=================================================================
"""

from __future__ import annotations

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from conftest import make_user
from coinvault.database.models import UserCoins
from coinvault.services import grant_service
from coinvault.services.reconciliation_service import reconcile_balances


def test_consistent_ledger_reports_no_drift(db_engine, admin):
    make_user(db_engine, user_id="fan")
    grant_service.grant_coins(db_engine, admin, "fan", 40, "x")

    report = reconcile_balances(db_engine)

    assert report["checked"] == 1
    assert report["drifted"] == 0
    assert report["drift"] == []
    assert "timestamp" in report


def test_drift_is_reported_not_corrected(db_engine, admin, caplog):
    make_user(db_engine, user_id="fan")
    grant_service.grant_coins(db_engine, admin, "fan", 40, "x")
    with Session(db_engine) as session:
        session.execute(update(UserCoins).values(balance=55))
        session.commit()

    with caplog.at_level(logging.WARNING):
        report = reconcile_balances(db_engine)

    assert report["drift"] == [
        {"user_id": "fan", "balance": 55, "ledger_total": 40, "diff": 15},
    ]
    assert "drifted" in caplog.text
    with Session(db_engine) as session:
        assert session.get(UserCoins, "fan").balance == 55


def test_balance_without_ledger_rows_counts_as_drift(db_engine):
    make_user(db_engine, user_id="seeded", balance=10)
    report = reconcile_balances(db_engine)
    assert report["drifted"] == 1
    assert report["drift"][0]["ledger_total"] == 0
