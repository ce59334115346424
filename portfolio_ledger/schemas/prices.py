from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field


class PriceUpdate(BaseModel):
    symbol: str
    price: Decimal
    updated_at: datetime


class RefreshReport(BaseModel):
    updated: List[PriceUpdate] = Field(default_factory=list)
