from decimal import Decimal

from sqlalchemy import Column, Integer, String, Date, ForeignKey, Index
from sqlalchemy.orm import relationship
from portfolio_ledger.core.db import Base
from portfolio_ledger.models.enums import TransactionType
from portfolio_ledger.models.types import ExactDecimal

class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_ticker_broker", "ticker_id", "broker", "transaction_no"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_no = Column(Integer, unique=True, nullable=False)
    date = Column(Date, nullable=False)
    transaction_type = Column(String, nullable=False)
    ticker_id = Column(Integer, ForeignKey("tickers.id"), nullable=False)
    broker = Column(String, nullable=False)
    currency = Column(String, nullable=False)
    exchange_rate = Column(ExactDecimal, nullable=False)
    quantity = Column(ExactDecimal, nullable=False)
    price = Column(ExactDecimal, nullable=False)
    fees = Column(ExactDecimal, nullable=False)

    cumulative_units = Column(ExactDecimal, nullable=False)
    cumulative_cost = Column(ExactDecimal, nullable=False)
    cost_of_units_sold = Column(ExactDecimal, nullable=False)
    realized_gains = Column(ExactDecimal, nullable=False)
    dividends_collected = Column(ExactDecimal, nullable=False)

    ticker = relationship("Ticker", back_populates="transactions")

    @property
    def symbol(self) -> str:
        return self.ticker.symbol

    @property
    def type(self) -> TransactionType:
        return TransactionType.parse(self.transaction_type)

    @property
    def amount(self) -> Decimal:
        """Signed cash flow in base currency, negative for purchases."""
        return signed_amount(self.type, self.price, self.quantity, self.fees, self.exchange_rate)

    @property
    def signed_quantity(self) -> Decimal:
        return signed_quantity(self.type, self.quantity)


def signed_amount(
        transaction_type: TransactionType,
        price: Decimal,
        quantity: Decimal,
        fees: Decimal,
        exchange_rate: Decimal,
) -> Decimal:
    if transaction_type == TransactionType.BUY:
        return -(price * quantity + fees) * exchange_rate
    return (price * quantity - fees) * exchange_rate


def signed_quantity(transaction_type: TransactionType, quantity: Decimal) -> Decimal:
    if transaction_type == TransactionType.SELL:
        return -quantity
    return quantity
