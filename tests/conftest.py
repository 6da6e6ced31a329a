"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of coinvault.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine, event, select  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from coinvault.database.models import (  # noqa: E402
    Base,
    Challenge,
    ChallengeParticipation,
    CoinTransaction,
    Reward,
    RewardClaim,
    User,
    UserCoins,
)
from coinvault.services.auth_gate import Identity  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


def _use_explicit_begin(engine: Engine, statement: str = "BEGIN") -> None:
    """Let SQLAlchemy, not pysqlite, emit BEGIN so SAVEPOINTs nest correctly."""

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql(statement)


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all Coinvault tables.

    StaticPool so every session (and the API TestClient's worker thread)
    shares the same in-memory database.
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _use_explicit_begin(engine)
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite engine where every transaction takes the write lock.

    Used by the concurrency tests: ``BEGIN IMMEDIATE`` serialises writers the
    way row locks do on PostgreSQL, so two threads really contend.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'coinvault.db'}",
        connect_args={"check_same_thread": False, "timeout": 15},
    )
    _use_explicit_begin(engine, "BEGIN IMMEDIATE")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


# ---------------------------------------------------------------------------
# Seed helpers — plain functions so tests can call them with any engine
# ---------------------------------------------------------------------------
def make_user(
    engine: Engine,
    *,
    user_id: str,
    role: str = "user",
    is_creator: bool = False,
    balance: int | None = None,
) -> Identity:
    with Session(engine) as session:
        session.add(User(
            id=user_id,
            display_name=user_id.title(),
            role=role,
            is_creator=is_creator,
        ))
        if balance is not None:
            session.add(UserCoins(user_id=user_id, balance=balance))
        session.commit()
    return Identity(user_id=user_id)


def make_challenge(
    engine: Engine,
    *,
    coins_reward: int = 100,
    type: str = "fisico",
    is_active: bool = True,
    status: str = "active",
    title: str = "Corrida 5km",
) -> str:
    with Session(engine) as session:
        challenge = Challenge(
            title=title,
            type=type,
            coins_reward=coins_reward,
            is_active=is_active,
            status=status,
        )
        session.add(challenge)
        session.commit()
        return challenge.id


def make_participation(
    engine: Engine, *, challenge_id: str, user_id: str, status: str = "pending",
    coins_earned: int = 0,
) -> str:
    with Session(engine) as session:
        participation = ChallengeParticipation(
            challenge_id=challenge_id,
            user_id=user_id,
            result_value=42,
            status=status,
            coins_earned=coins_earned,
        )
        session.add(participation)
        session.commit()
        return participation.id


def make_reward(
    engine: Engine,
    *,
    coins_required: int = 100,
    quantity_available: int = 5,
    is_active: bool = True,
    name: str = "Camiseta oficial",
) -> str:
    with Session(engine) as session:
        reward = Reward(
            name=name,
            coins_required=coins_required,
            quantity_available=quantity_available,
            is_active=is_active,
        )
        session.add(reward)
        session.commit()
        return reward.id


def make_claim(
    engine: Engine, *, user_id: str, reward_id: str, status: str = "pending",
    coins_spent: int = 100,
) -> str:
    with Session(engine) as session:
        claim = RewardClaim(
            user_id=user_id, reward_id=reward_id, status=status, coins_spent=coins_spent,
        )
        session.add(claim)
        session.commit()
        return claim.id


def balance_of(engine: Engine, user_id: str) -> int:
    with Session(engine) as session:
        return session.scalar(
            select(UserCoins.balance).where(UserCoins.user_id == user_id)
        ) or 0


def stock_of(engine: Engine, reward_id: str) -> int:
    with Session(engine) as session:
        return session.get(Reward, reward_id).quantity_available


def transactions_of(engine: Engine, user_id: str) -> list[CoinTransaction]:
    with Session(engine) as session:
        return list(session.scalars(
            select(CoinTransaction)
            .where(CoinTransaction.user_id == user_id)
            .order_by(CoinTransaction.created_at)
        ).all())


# ---------------------------------------------------------------------------
# Common actors
# ---------------------------------------------------------------------------
@pytest.fixture
def admin(db_engine) -> Identity:
    return make_user(db_engine, user_id="admin", role="admin")


@pytest.fixture
def creator(db_engine) -> Identity:
    return make_user(db_engine, user_id="creator", is_creator=True)


@pytest.fixture
def fan(db_engine) -> Identity:
    return make_user(db_engine, user_id="fan")


@pytest.fixture
def recorder():
    """Notifier double that records every call."""
    return RecordingNotifier()


class RecordingNotifier:
    def __init__(self):
        self.calls: list[tuple] = []

    def challenge_approved(self, user_id, challenge_title, coins):
        self.calls.append(("challenge_approved", user_id, challenge_title, coins))

    def challenge_rejected(self, user_id, challenge_title, reason):
        self.calls.append(("challenge_rejected", user_id, challenge_title, reason))

    def claim_cancelled(self, user_id, reward_name, coins):
        self.calls.append(("claim_cancelled", user_id, reward_name, coins))

    def coins_granted(self, user_id, amount, description):
        self.calls.append(("coins_granted", user_id, amount, description))


def make_token(sub: str, **claims) -> str:
    """Create a bearer JWT for API tests."""
    import jwt

    from coinvault.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode({"sub": sub, **claims}, JWT_SECRET, algorithm=JWT_ALGORITHM)


@pytest.fixture
def client(db_engine):
    """TestClient wired to the in-memory engine."""
    from fastapi.testclient import TestClient

    from coinvault.api.deps import get_config, get_engine
    from coinvault.api.main import app
    from coinvault.config import default_config

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = default_config
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
