"""Initial schema - users, assets, prices, accounts, ledger, orders, holdings.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(18, 4)
UNITS = sa.Numeric(18, 6)


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("username", sa.String(150), nullable=False),
        sa.Column("email", sa.String(150), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )

    # --- asset_type ---
    op.create_table(
        "asset_type",
        sa.Column("asset_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("asset_ticker", sa.String(10), nullable=False),
        sa.Column("asset_name", sa.String(200), nullable=False),
        sa.Column("asset_class", sa.String(100), nullable=False),
        sa.Column("category", sa.String(200), nullable=True),
        sa.PrimaryKeyConstraint("asset_id"),
    )
    op.create_index("ix_asset_type_asset_ticker", "asset_type", ["asset_ticker"], unique=True)

    # --- asset_history ---
    op.create_table(
        "asset_history",
        sa.Column("asset_hist_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("asset_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("close_price", MONEY, nullable=False),
        sa.PrimaryKeyConstraint("asset_hist_id"),
        sa.ForeignKeyConstraint(["asset_id"], ["asset_type.asset_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("asset_id", "date", name="uq_asset_history_asset_date"),
    )
    op.create_index("ix_asset_history_asset_date", "asset_history", ["asset_id", "date"])

    # --- user_accounts ---
    op.create_table(
        "user_accounts",
        sa.Column("account_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("account_name", sa.String(100), nullable=False),
        sa.Column("account_type", sa.String(20), nullable=False),
        sa.Column("cash_balance", MONEY, nullable=False, server_default="0"),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.PrimaryKeyConstraint("account_id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "account_type IN ('checking', 'savings', 'brokerage')",
            name="ck_user_accounts_account_type",
        ),
    )
    op.create_index("ix_user_accounts_user_id", "user_accounts", ["user_id"])

    # --- user_transactions ---
    op.create_table(
        "user_transactions",
        sa.Column("trans_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=True),
        sa.Column("asset_id", sa.Integer(), nullable=True),
        sa.Column("trans_type", sa.String(10), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("units", UNITS, nullable=True),
        sa.Column("price_per_unit", MONEY, nullable=True),
        sa.Column("cost", MONEY, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("trans_id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["account_id"], ["user_accounts.account_id"]),
        sa.ForeignKeyConstraint(["asset_id"], ["asset_type.asset_id"]),
    )
    op.create_index("ix_user_transactions_user_id", "user_transactions", ["user_id"])
    op.create_index("ix_user_transactions_account_id", "user_transactions", ["account_id"])

    # --- order_book ---
    op.create_table(
        "order_book",
        sa.Column("order_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=True),
        sa.Column("asset_id", sa.Integer(), nullable=False),
        sa.Column("order_type", sa.String(15), nullable=False),
        sa.Column("symbol", sa.String(10), nullable=False),
        sa.Column("description", sa.String(200), nullable=True),
        sa.Column("buy_sell", sa.String(4), nullable=False),
        sa.Column("unit_price", MONEY, nullable=False),
        sa.Column("limit_price", MONEY, nullable=True),
        sa.Column("qty", UNITS, nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("settlement_date", sa.Date(), nullable=False),
        sa.Column("order_status", sa.String(20), nullable=False, server_default="Placed"),
        sa.Column(
            "confirmation_status",
            sa.String(30),
            nullable=False,
            server_default="pending_confirmation",
        ),
        sa.Column("order_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("order_id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["account_id"], ["user_accounts.account_id"]),
        sa.ForeignKeyConstraint(["asset_id"], ["asset_type.asset_id"]),
    )
    op.create_index("ix_order_book_user_date", "order_book", ["user_id", "order_date"])

    # --- user_portfolio ---
    op.create_table(
        "user_portfolio",
        sa.Column("user_port_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("asset_id", sa.Integer(), nullable=False),
        sa.Column("asset_total_units", UNITS, nullable=False),
        sa.Column("avg_cost_per_unit", MONEY, nullable=False),
        sa.Column("investment_amount", MONEY, nullable=False),
        sa.PrimaryKeyConstraint("user_port_id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["asset_id"], ["asset_type.asset_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "asset_id", name="uq_user_portfolio_user_asset"),
    )
    op.create_index("ix_user_portfolio_user_id", "user_portfolio", ["user_id"])


def downgrade() -> None:
    op.drop_table("user_portfolio")
    op.drop_table("order_book")
    op.drop_table("user_transactions")
    op.drop_table("user_accounts")
    op.drop_table("asset_history")
    op.drop_table("asset_type")
    op.drop_table("users")
