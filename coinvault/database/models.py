"""
coinvault.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- users                  — Platform members with role / creator flag
- user_coins             — Authoritative per-user coin balance
- coin_transactions      — Append-only coin ledger (audit trail)
- challenges             — Challenges that pay coins on approval
- challenge_participants — One attempt per (challenge, user)
- rewards                — Shop items bought with coins, with stock counter
- reward_claims          — Redemptions; coins_spent frozen at claim time
- admin_log              — Append-only audit trail of reviewer mutations
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid4())


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Coinvault ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class UserRole(enum.StrEnum):
    USER = "user"
    ADMIN = "admin"


class TransactionType(enum.StrEnum):
    """Kinds of coin movement recorded in the ledger."""
    EARNED = "earned"
    SPENT = "spent"
    BONUS = "bonus"
    REFUND = "refund"


class ChallengeType(enum.StrEnum):
    """Challenge formats; only some accept direct participation."""
    ENGAJAMENTO = "engajamento"
    FISICO = "fisico"
    PARTICIPE = "participe"
    ATOS_AMOR = "atos_amor"


class ChallengeStatus(enum.StrEnum):
    ACTIVE = "active"
    CLOSED = "closed"


class ParticipationStatus(enum.StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ClaimStatus(enum.StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class RewardType(enum.StrEnum):
    DIGITAL = "digital"
    PHYSICAL = "physical"


class AdminActionType(enum.StrEnum):
    """Categories of reviewer mutations recorded in admin_log."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    GRANT_COINS = "GRANT_COINS"


# ---------------------------------------------------------------------------
# Users — identity + authorization profile
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.USER.value
    )
    is_creator: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    coins: Mapped[UserCoins | None] = relationship(
        back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.display_name!r} role={self.role}>"


# ---------------------------------------------------------------------------
# UserCoins — the single authoritative balance consulted by spend checks
# ---------------------------------------------------------------------------
class UserCoins(Base):
    __tablename__ = "user_coins"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped[User] = relationship(back_populates="coins")

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_user_coins_balance_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<UserCoins user={self.user_id} balance={self.balance}>"


# ---------------------------------------------------------------------------
# CoinTransaction — append-only ledger
# ---------------------------------------------------------------------------
class CoinTransaction(Base):
    __tablename__ = "coin_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    reference_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_coin_transactions_user_time", "user_id", "created_at"),
        Index("ix_coin_transactions_reference", "reference_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<CoinTransaction id={self.id} user={self.user_id} "
            f"amount={self.amount} type={self.type}>"
        )


# ---------------------------------------------------------------------------
# Challenge
# ---------------------------------------------------------------------------
class Challenge(Base):
    __tablename__ = "challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    type: Mapped[str] = mapped_column(
        String(30), nullable=False, default=ChallengeType.FISICO.value
    )
    coins_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ChallengeStatus.ACTIVE.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    participations: Mapped[list[ChallengeParticipation]] = relationship(
        back_populates="challenge"
    )

    def __repr__(self) -> str:
        return f"<Challenge id={self.id} title={self.title!r} status={self.status}>"


# ---------------------------------------------------------------------------
# ChallengeParticipation — one per (challenge, user)
# ---------------------------------------------------------------------------
class ChallengeParticipation(Base):
    __tablename__ = "challenge_participants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    challenge_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    result_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    video_proof_url: Mapped[str | None] = mapped_column(String(500), default=None)
    social_media_url: Mapped[str | None] = mapped_column(String(500), default=None)
    instagram_proof_url: Mapped[str | None] = mapped_column(String(500), default=None)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ParticipationStatus.PENDING.value
    )
    coins_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    approved_by: Mapped[str | None] = mapped_column(String(36), default=None)
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    challenge: Mapped[Challenge] = relationship(back_populates="participations")

    __table_args__ = (
        UniqueConstraint(
            "challenge_id", "user_id", name="uq_challenge_participants_challenge_user"
        ),
        Index("ix_challenge_participants_status", "challenge_id", "status"),
    )

    @property
    def proof_urls(self) -> list[str]:
        """All proof links the participant submitted, in submission order."""
        return [
            url for url in (
                self.video_proof_url, self.social_media_url, self.instagram_proof_url,
            ) if url
        ]

    def __repr__(self) -> str:
        return (
            f"<ChallengeParticipation id={self.id} challenge={self.challenge_id} "
            f"user={self.user_id} status={self.status}>"
        )


# ---------------------------------------------------------------------------
# Reward — shop item with a stock counter
# ---------------------------------------------------------------------------
class Reward(Base):
    __tablename__ = "rewards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    image_url: Mapped[str | None] = mapped_column(String(500), default=None)
    type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RewardType.PHYSICAL.value
    )
    coins_required: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_available: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            "quantity_available >= 0", name="ck_rewards_quantity_non_negative"
        ),
        CheckConstraint("coins_required >= 0", name="ck_rewards_cost_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reward id={self.id} name={self.name!r} "
            f"cost={self.coins_required} stock={self.quantity_available}>"
        )


# ---------------------------------------------------------------------------
# RewardClaim
# ---------------------------------------------------------------------------
class RewardClaim(Base):
    __tablename__ = "reward_claims"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    reward_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("rewards.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ClaimStatus.PENDING.value
    )
    coins_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    idempotency_key: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    reward: Mapped[Reward] = relationship()

    __table_args__ = (
        UniqueConstraint(
            "user_id", "idempotency_key", name="uq_reward_claims_user_idempotency_key"
        ),
        Index("ix_reward_claims_user", "user_id", "status"),
        Index("ix_reward_claims_reward", "reward_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<RewardClaim id={self.id} user={self.user_id} "
            f"reward={self.reward_id} status={self.status}>"
        )


# ---------------------------------------------------------------------------
# AdminLog — append-only audit trail
# ---------------------------------------------------------------------------
class AdminLog(Base):
    __tablename__ = "admin_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_table: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    before_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    after_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_admin_log_actor_time", "actor_id", "timestamp"),
        Index("ix_admin_log_target", "target_table", "target_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AdminLog id={self.id} actor={self.actor_id} action={self.action_type}>"
