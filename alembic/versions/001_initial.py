"""Initial schema: users, university directory, plans, subscriptions, payments.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "public_users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("user_type", sa.String(20), nullable=False, server_default="public"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_public_users_email", "public_users", ["email"], unique=True)

    op.create_table(
        "university_users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("university_id", sa.String(8), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hall_of_residence", sa.String(100), nullable=True),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("pin_hash", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_university_users_university_id", "university_users", ["university_id"], unique=True)
    op.create_index("ix_university_users_email", "university_users", ["email"])

    op.create_table(
        "university_members",
        sa.Column("id", sa.String(8), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hall_of_residence", sa.String(100), nullable=True),
        sa.Column("member_type", sa.String(20), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("academic_year", sa.String(20), nullable=True),
        sa.Column("program", sa.String(255), nullable=True),
        sa.Column("level", sa.String(20), nullable=True),
        sa.Column("faculty", sa.String(255), nullable=True),
        sa.Column("department", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "subscription_plans",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("user_type", sa.String(20), nullable=False),
        sa.Column("duration_type", sa.String(20), nullable=False),
        sa.Column("price_cedis", sa.Numeric(10, 2), nullable=False),
        sa.Column("duration_days", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_subscription_plans_user_type", "subscription_plans", ["user_type"])

    op.create_table(
        "user_subscriptions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("subscription_plan_id", sa.String(36), sa.ForeignKey("subscription_plans.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_reference", sa.String(100), nullable=False),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="GHS"),
        sa.Column("auto_renew", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_user_subscriptions_user_id", "user_subscriptions", ["user_id"])
    op.create_index(
        "ix_user_subscriptions_payment_reference", "user_subscriptions", ["payment_reference"], unique=True
    )

    op.create_table(
        "payment_transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "user_subscription_id",
            sa.String(36),
            sa.ForeignKey("user_subscriptions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("payment_reference", sa.String(100), nullable=False),
        sa.Column("paystack_reference", sa.String(100), nullable=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="GHS"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("gateway_response", sa.Text(), nullable=True),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_payment_transactions_user_subscription_id", "payment_transactions", ["user_subscription_id"]
    )
    op.create_index("ix_payment_transactions_payment_reference", "payment_transactions", ["payment_reference"])


def downgrade() -> None:
    op.drop_table("payment_transactions")
    op.drop_table("user_subscriptions")
    op.drop_table("subscription_plans")
    op.drop_table("university_members")
    op.drop_table("university_users")
    op.drop_table("public_users")
