from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from portfolio_ledger.models.enums import TransactionType


class LedgerRow(BaseModel):
    """One validated CSV record. ``row`` is the 1-based data row number."""
    row: int
    transaction_no: int
    date: date
    transaction_type: TransactionType
    symbol: str
    quantity: Decimal
    price: Decimal
    fees: Decimal
    broker: str
    alt_symbol: Optional[str] = None
    currency: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class TransactionsOut(BaseModel):
    transaction_no: int
    date: date
    transaction_type: str
    symbol: str
    broker: str
    currency: str
    exchange_rate: Decimal
    quantity: Decimal
    price: Decimal
    fees: Decimal
    cumulative_units: Decimal
    cumulative_cost: Decimal
    cost_of_units_sold: Decimal
    realized_gains: Decimal
    dividends_collected: Decimal

    model_config = ConfigDict(from_attributes=True)


class ImportSummary(BaseModel):
    rows_read: int = 0
    imported: int = 0
    skipped: int = 0
    tickers_created: list[str] = Field(default_factory=list)
    watermark_before: Optional[int] = None
    watermark_after: Optional[int] = None
