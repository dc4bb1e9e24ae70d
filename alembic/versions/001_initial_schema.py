"""Initial schema: users, monitored_domains, domain_history, credit_transactions.

Tables may already exist (app startup runs Base.metadata.create_all), so each
table is only created when missing.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(name: str) -> bool:
    return sa.inspect(op.get_bind()).has_table(name)


def upgrade() -> None:
    if not _has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("username", sa.String(255), nullable=False),
            sa.Column("email", sa.String(255), nullable=False),
            sa.Column("hashed_password", sa.String(), nullable=False),
            sa.Column("role", sa.String(20), nullable=False, server_default="user"),
            sa.Column("credits", sa.Integer(), nullable=False, server_default="100"),
            sa.Column("api_calls_limit", sa.Integer(), nullable=False, server_default="1000"),
            sa.Column("api_calls_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("api_calls_reset_at", sa.DateTime(), nullable=True),
            sa.Column("api_token", sa.String(64), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index("ix_users_id", "users", ["id"])
        op.create_index("ix_users_username", "users", ["username"], unique=True)
        op.create_index("ix_users_email", "users", ["email"], unique=True)
        op.create_index("ix_users_api_token", "users", ["api_token"], unique=True)

    if not _has_table("monitored_domains"):
        op.create_table(
            "monitored_domains",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("domain", sa.String(255), nullable=False),
            sa.Column("status", sa.Boolean(), nullable=True),
            sa.Column("check_interval", sa.Integer(), nullable=False, server_default="3600"),
            sa.Column("credits_per_check", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("last_checked", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.UniqueConstraint("user_id", "domain", name="uq_monitored_domains_user_domain"),
        )
        op.create_index("ix_monitored_domains_id", "monitored_domains", ["id"])
        op.create_index("ix_monitored_domains_user_id", "monitored_domains", ["user_id"])
        op.create_index("ix_monitored_domains_last_checked", "monitored_domains", ["last_checked"])

    if not _has_table("domain_history"):
        op.create_table(
            "domain_history",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "domain_id",
                sa.Integer(),
                sa.ForeignKey("monitored_domains.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("status", sa.Boolean(), nullable=False),
            sa.Column("credits_used", sa.Integer(), nullable=False),
            sa.Column("checked_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_domain_history_id", "domain_history", ["id"])
        op.create_index("ix_domain_history_domain_id", "domain_history", ["domain_id"])
        op.create_index("ix_domain_history_checked_at", "domain_history", ["checked_at"])

    if not _has_table("credit_transactions"):
        op.create_table(
            "credit_transactions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("amount", sa.Integer(), nullable=False),
            sa.Column("transaction_type", sa.String(20), nullable=False),
            sa.Column("description", sa.String(255), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_credit_transactions_id", "credit_transactions", ["id"])
        op.create_index("ix_credit_transactions_user_id", "credit_transactions", ["user_id"])
        op.create_index("ix_credit_transactions_created_at", "credit_transactions", ["created_at"])


def downgrade() -> None:
    op.drop_table("credit_transactions")
    op.drop_table("domain_history")
    op.drop_table("monitored_domains")
    op.drop_table("users")
