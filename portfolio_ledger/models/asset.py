from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from portfolio_ledger.core.db import Base

class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
    asset_type = Column(String, nullable=True)
    isin = Column(String, nullable=True)
    sector = Column(String, nullable=True)
    industry = Column(String, nullable=True)

    tickers = relationship("Ticker", back_populates="asset")
