from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from portfolio_ledger.models.enums import AssetType, QuoteProvider


class TickerQuote(BaseModel):
    """Canonical instrument description produced by every quote provider."""
    symbol: str
    name: str
    currency: str
    exchange: Optional[str] = None
    provider: QuoteProvider
    asset_type: AssetType = AssetType.STOCK
    isin: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    last_price: Optional[Decimal] = None

    @field_validator("symbol", "currency")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("exchange", "isin", "sector", "industry")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None


class TickerOut(BaseModel):
    id: int
    symbol: str
    name: str | None
    currency: str
    exchange: str | None
    provider: QuoteProvider
    last_price: Decimal | None
    last_price_updated_at: datetime | None

    model_config = ConfigDict(from_attributes=True)
