"""
tests/test_catalog_service.py — Reward Catalog Administration
==============================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from conftest import make_claim, make_reward
from coinvault.database.models import AdminLog, Reward, RewardClaim
from coinvault.services import catalog_service


def _audit(engine) -> list[AdminLog]:
    with Session(engine) as session:
        return list(session.scalars(select(AdminLog).order_by(AdminLog.id)).all())


class TestCreate:
    def test_creator_creates_active_reward(self, db_engine, creator):
        result = catalog_service.create_reward(
            db_engine, creator, name="Boné", coins_required=300,
            quantity_available=10, type="physical",
        )
        assert result.success, result.error
        assert result.data.is_active is True
        assert result.data.quantity_available == 10
        log = _audit(db_engine)[0]
        assert log.action_type == "CREATE"
        assert log.after_snapshot["name"] == "Boné"

    @pytest.mark.parametrize(("field", "value"), [
        ("coins_required", -1),
        ("quantity_available", -1),
        ("type", "imaginary"),
    ])
    def test_invalid_fields_refused(self, db_engine, admin, field, value):
        kwargs = {"name": "X", "coins_required": 10, "quantity_available": 1}
        kwargs[field] = value
        result = catalog_service.create_reward(db_engine, admin, **kwargs)
        assert result.error.kind == "validation"
        assert _audit(db_engine) == []

    def test_regular_user_refused(self, db_engine, fan):
        result = catalog_service.create_reward(
            db_engine, fan, name="X", coins_required=1,
        )
        assert result.error.kind == "authorization"


class TestUpdate:
    def test_partial_update_keeps_other_fields(self, db_engine, admin):
        reward_id = make_reward(db_engine, coins_required=100, quantity_available=5)
        result = catalog_service.update_reward(
            db_engine, admin, reward_id, quantity_available=9,
        )
        assert result.data.quantity_available == 9
        assert result.data.coins_required == 100
        log = _audit(db_engine)[0]
        assert log.before_snapshot["quantity_available"] == 5
        assert log.after_snapshot["quantity_available"] == 9

    def test_unknown_keys_ignored(self, db_engine, admin):
        reward_id = make_reward(db_engine)
        result = catalog_service.update_reward(db_engine, admin, reward_id, id="hijack")
        assert result.data.id == reward_id

    def test_toggle_active(self, db_engine, creator):
        reward_id = make_reward(db_engine)
        result = catalog_service.toggle_reward_active(db_engine, creator, reward_id, False)
        assert result.data.is_active is False

    def test_missing_reward(self, db_engine, admin):
        result = catalog_service.update_reward(db_engine, admin, "missing", name="Y")
        assert result.error.message == "Recompensa não encontrada"


class TestDelete:
    def test_admin_deletes_reward_and_its_closed_claims(self, db_engine, admin):
        reward_id = make_reward(db_engine)
        make_claim(db_engine, user_id="someone", reward_id=reward_id, status="delivered")
        make_claim(db_engine, user_id="other", reward_id=reward_id, status="cancelled")

        result = catalog_service.delete_reward(db_engine, admin, reward_id)

        assert result.data is True
        with Session(db_engine) as session:
            assert session.get(Reward, reward_id) is None
            assert session.scalars(
                select(RewardClaim).where(RewardClaim.reward_id == reward_id)
            ).all() == []
        assert _audit(db_engine)[0].action_type == "DELETE"

    @pytest.mark.parametrize("status", ["pending", "approved", "shipped"])
    def test_open_claims_block_deletion(self, db_engine, admin, status):
        reward_id = make_reward(db_engine)
        make_claim(db_engine, user_id="a", reward_id=reward_id, status=status)
        make_claim(db_engine, user_id="b", reward_id=reward_id, status=status)

        result = catalog_service.delete_reward(db_engine, admin, reward_id)

        assert result.error.kind == "validation"
        assert "Existem 2 resgate(s)" in result.error.message
        with Session(db_engine) as session:
            assert session.get(Reward, reward_id) is not None

    def test_creator_cannot_delete(self, db_engine, creator):
        reward_id = make_reward(db_engine)
        result = catalog_service.delete_reward(db_engine, creator, reward_id)
        assert result.error.kind == "authorization"
