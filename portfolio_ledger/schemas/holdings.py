from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class HoldingOut(BaseModel):
    symbol: str
    name: Optional[str] = None
    broker: str
    currency: str
    base_currency: str
    quantity: Decimal
    price: Decimal
    exchange_rate: Decimal
    market_value: Decimal
    cost_per_share: Decimal
    total_cost: Decimal
    unrealized_gain: Decimal
    unrealized_gain_percent: Decimal
    realized_gain: Decimal
    dividends_collected: Decimal
    total_gain: Decimal

    model_config = ConfigDict(from_attributes=True)
