from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from portfolio_ledger.core.db import Base
from portfolio_ledger.models.types import ExactDecimal, ProviderTag

class Ticker(Base):
    __tablename__ = "tickers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    symbol = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=True)
    currency = Column(String, nullable=False)
    exchange = Column(String, nullable=True)
    last_price = Column(ExactDecimal, nullable=True)
    last_price_updated_at = Column(DateTime(timezone=True), nullable=True)
    provider = Column(ProviderTag, nullable=False)

    asset = relationship("Asset", back_populates="tickers")
    transactions = relationship("Transaction", back_populates="ticker")
