from decimal import Decimal

from pydantic import BaseModel, ConfigDict

ZERO = Decimal("0")


class PositionState(BaseModel):
    """FIFO state of one (ticker, broker) group after a transaction."""
    cumulative_units: Decimal = ZERO
    cumulative_cost: Decimal = ZERO
    cost_of_units_sold: Decimal = ZERO

    model_config = ConfigDict(frozen=True, from_attributes=True)


class TransactionGains(BaseModel):
    realized_gains: Decimal = ZERO
    dividends_collected: Decimal = ZERO

    model_config = ConfigDict(frozen=True, from_attributes=True)
