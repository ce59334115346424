"""create assets, tickers and transactions

Revision ID: 3c9e1f2a7b10
Revises:
Create Date: 2025-11-02 10:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from portfolio_ledger.models.types import ExactDecimal, ProviderTag


# revision identifiers, used by Alembic.
revision: str = '3c9e1f2a7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "assets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False, unique=True),
        sa.Column("asset_type", sa.String(), nullable=True),
        sa.Column("isin", sa.String(), nullable=True),
        sa.Column("sector", sa.String(), nullable=True),
        sa.Column("industry", sa.String(), nullable=True),
    )

    op.create_table(
        "tickers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("symbol", sa.String(), nullable=False, unique=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("asset_id", sa.Integer(), sa.ForeignKey("assets.id"), nullable=True),
        sa.Column("currency", sa.String(), nullable=False),
        sa.Column("exchange", sa.String(), nullable=True),
        sa.Column("last_price", ExactDecimal(), nullable=True),
        sa.Column("last_price_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("provider", ProviderTag(), nullable=False),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("transaction_no", sa.Integer(), nullable=False, unique=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("transaction_type", sa.String(), nullable=False),
        sa.Column("ticker_id", sa.Integer(), sa.ForeignKey("tickers.id"), nullable=False),
        sa.Column("broker", sa.String(), nullable=False),
        sa.Column("currency", sa.String(), nullable=False),
        sa.Column("exchange_rate", ExactDecimal(), nullable=False),
        sa.Column("quantity", ExactDecimal(), nullable=False),
        sa.Column("price", ExactDecimal(), nullable=False),
        sa.Column("fees", ExactDecimal(), nullable=False),
        sa.Column("cumulative_units", ExactDecimal(), nullable=False),
        sa.Column("cumulative_cost", ExactDecimal(), nullable=False),
        sa.Column("cost_of_units_sold", ExactDecimal(), nullable=False),
        sa.Column("realized_gains", ExactDecimal(), nullable=False),
        sa.Column("dividends_collected", ExactDecimal(), nullable=False),
    )
    op.create_index(
        "ix_transactions_ticker_broker",
        "transactions",
        ["ticker_id", "broker", "transaction_no"],
    )


def downgrade():
    op.drop_index("ix_transactions_ticker_broker", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("tickers")
    op.drop_table("assets")
