"""users, rewards, reward claims and orders

Revision ID: 4f2c9a1e7b30
Revises: 
Create Date: 2026-10-19 09:12:41.208733

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4f2c9a1e7b30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OUTSTANDING_WHERE = sa.text("status IN ('PENDING', 'EXPIRED')")


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=True),
            sa.Column("role", sa.String(length=20), server_default="USER", nullable=False),
            sa.Column("points", sa.Integer(), server_default="0", nullable=False),
            sa.Column("historical_points", sa.Integer(), server_default="0", nullable=False),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.UniqueConstraint("email", name="uq_users_email"),
            sa.CheckConstraint("points >= 0", name="ck_users_points_non_negative"),
        )

    if not inspector.has_table("rewards"):
        op.create_table(
            "rewards",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("description", sa.String(length=255), nullable=True),
            sa.Column("image_url", sa.String(length=500), nullable=True),
            sa.Column("points_cost", sa.Integer(), nullable=False),
            sa.Column("stock", sa.Integer(), nullable=True),
            sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.CheckConstraint("points_cost > 0", name="ck_rewards_points_cost_positive"),
            sa.CheckConstraint("stock IS NULL OR stock >= 0", name="ck_rewards_stock_non_negative"),
        )

    if not inspector.has_table("reward_claims"):
        op.create_table(
            "reward_claims",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("reward_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("rewards.id"), nullable=False),
            sa.Column("points_spent", sa.Integer(), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False),
            sa.Column("created_at", sa.TIMESTAMP(), nullable=False),
            sa.Column("expires_at", sa.TIMESTAMP(), nullable=False),
            sa.Column("updated_at", sa.TIMESTAMP(), nullable=False),
        )

    existing_indexes = {ix["name"] for ix in inspector.get_indexes("reward_claims")}
    if "ix_reward_claims_user_id" not in existing_indexes:
        op.create_index("ix_reward_claims_user_id", "reward_claims", ["user_id"])
    if "ix_reward_claims_status_expires_at" not in existing_indexes:
        op.create_index("ix_reward_claims_status_expires_at", "reward_claims", ["status", "expires_at"])
    if "uq_reward_claims_user_reward_outstanding" not in existing_indexes:
        op.create_index(
            "uq_reward_claims_user_reward_outstanding",
            "reward_claims",
            ["user_id", "reward_id"],
            unique=True,
            postgresql_where=OUTSTANDING_WHERE,
            sqlite_where=OUTSTANDING_WHERE,
        )

    if not inspector.has_table("orders"):
        op.create_table(
            "orders",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("qr_code", sa.String(length=64), nullable=False),
            sa.Column("total_amount", sa.Numeric(12, 2), server_default="0", nullable=False),
            sa.Column("total_points", sa.Integer(), server_default="0", nullable=False),
            sa.Column("is_scanned", sa.Boolean(), server_default=sa.false(), nullable=False),
            sa.Column("scanned_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("scanned_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
            sa.UniqueConstraint("qr_code", name="uq_orders_qr_code"),
        )


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if inspector.has_table("orders"):
        op.drop_table("orders")

    if inspector.has_table("reward_claims"):
        existing_indexes = {ix["name"] for ix in inspector.get_indexes("reward_claims")}
        for name in (
            "uq_reward_claims_user_reward_outstanding",
            "ix_reward_claims_status_expires_at",
            "ix_reward_claims_user_id",
        ):
            if name in existing_indexes:
                op.drop_index(name, table_name="reward_claims")
        op.drop_table("reward_claims")

    if inspector.has_table("rewards"):
        op.drop_table("rewards")
    if inspector.has_table("users"):
        op.drop_table("users")
