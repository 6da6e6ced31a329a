"""Initial coin economy schema

Revision ID: 3f2a6c1e9b07
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f2a6c1e9b07"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    """Create users, balances, ledger, challenges, rewards, claims, audit."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("is_creator", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )

    op.create_table(
        "user_coins",
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("balance >= 0", name="ck_user_coins_balance_non_negative"),
    )

    op.create_table(
        "coin_transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("reference_id", sa.String(36), nullable=True),
        _created_at(),
    )
    op.create_index(
        "ix_coin_transactions_user_time", "coin_transactions", ["user_id", "created_at"],
    )
    op.create_index(
        "ix_coin_transactions_reference", "coin_transactions", ["reference_id"],
    )

    op.create_table(
        "challenges",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(30), nullable=False, server_default="fisico"),
        sa.Column("coins_reward", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        _created_at(),
    )

    op.create_table(
        "challenge_participants",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "challenge_id",
            sa.String(36),
            sa.ForeignKey("challenges.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("result_value", sa.Integer(), nullable=True),
        sa.Column("video_proof_url", sa.String(500), nullable=True),
        sa.Column("social_media_url", sa.String(500), nullable=True),
        sa.Column("instagram_proof_url", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("coins_earned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("approved_by", sa.String(36), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        _created_at(),
        sa.UniqueConstraint(
            "challenge_id", "user_id", name="uq_challenge_participants_challenge_user",
        ),
    )
    op.create_index(
        "ix_challenge_participants_status",
        "challenge_participants",
        ["challenge_id", "status"],
    )

    op.create_table(
        "rewards",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("type", sa.String(20), nullable=False, server_default="physical"),
        sa.Column("coins_required", sa.Integer(), nullable=False),
        sa.Column("quantity_available", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.CheckConstraint(
            "quantity_available >= 0", name="ck_rewards_quantity_non_negative",
        ),
        sa.CheckConstraint("coins_required >= 0", name="ck_rewards_cost_non_negative"),
    )

    op.create_table(
        "reward_claims",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "reward_id",
            sa.String(36),
            sa.ForeignKey("rewards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("coins_spent", sa.Integer(), nullable=False),
        sa.Column("idempotency_key", sa.String(100), nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "user_id", "idempotency_key", name="uq_reward_claims_user_idempotency_key",
        ),
    )
    op.create_index("ix_reward_claims_user", "reward_claims", ["user_id", "status"])
    op.create_index("ix_reward_claims_reward", "reward_claims", ["reward_id", "status"])

    op.create_table(
        "admin_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.String(36), nullable=False),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("target_table", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(100), nullable=True),
        sa.Column("before_snapshot", postgresql.JSONB(), nullable=True),
        sa.Column("after_snapshot", postgresql.JSONB(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_admin_log_actor_time", "admin_log", ["actor_id", "timestamp"])
    op.create_index(
        "ix_admin_log_target", "admin_log", ["target_table", "target_id", "timestamp"],
    )


def downgrade() -> None:
    """Drop every coin economy table."""
    op.drop_table("admin_log")
    op.drop_index("ix_reward_claims_reward", table_name="reward_claims")
    op.drop_index("ix_reward_claims_user", table_name="reward_claims")
    op.drop_table("reward_claims")
    op.drop_table("rewards")
    op.drop_index("ix_challenge_participants_status", table_name="challenge_participants")
    op.drop_table("challenge_participants")
    op.drop_table("challenges")
    op.drop_index("ix_coin_transactions_reference", table_name="coin_transactions")
    op.drop_index("ix_coin_transactions_user_time", table_name="coin_transactions")
    op.drop_table("coin_transactions")
    op.drop_table("user_coins")
    op.drop_table("users")
