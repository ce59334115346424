from decimal import Decimal
from typing import List, Optional

import pandas as pd

from portfolio_ledger.core.config import settings
from portfolio_ledger.core.logger import logger
from portfolio_ledger.repositories import RepositoryFactory
from portfolio_ledger.schemas.holdings import HoldingOut
from portfolio_ledger.services.fx_rates_service import ExchangeRateCache, ExchangeRateResolver

ZERO = Decimal("0")
HUNDRED = Decimal("100")
PERCENT_DP = Decimal("0.01")


def _decimal_sum(values: pd.Series) -> Decimal:
    return sum(values, ZERO)


def group_totals(frame: pd.DataFrame) -> dict:
    """Realized gains and dividends summed per (ticker_id, broker)."""
    if frame.empty:
        return {}
    totals = frame.groupby(["ticker_id", "broker"]).agg(
        realized_gain=("realized_gains", _decimal_sum),
        dividends_collected=("dividends_collected", _decimal_sum),
    )
    return totals.to_dict(orient="index")


class HoldingsProjector:
    """Read-only projection of open positions valued at current prices."""

    def __init__(self, factory: RepositoryFactory, fx: ExchangeRateResolver):
        self.transaction_repo = factory.get_transaction_repository()
        self.fx = fx

    async def list_holdings(self, base_currency: Optional[str] = None) -> List[HoldingOut]:
        base = (base_currency or settings.BASE_CURRENCY).upper()

        latest = self.transaction_repo.get_latest_per_group()
        open_positions = {
            key: tx for key, tx in latest.items()
            if tx.cumulative_units > 0 and tx.ticker.last_price is not None
        }
        if not open_positions:
            return []

        totals = group_totals(self.transaction_repo.get_snapshots_frame())
        rates = await ExchangeRateCache.build(
            self.fx, base, {tx.ticker.currency for tx in open_positions.values()}
        )

        holdings: List[HoldingOut] = []
        for key, tx in open_positions.items():
            ticker = tx.ticker
            if ticker.currency not in rates:
                logger.warning(f"Skipping {ticker.symbol} at {tx.broker}: no {ticker.currency} rate")
                continue

            rate = rates.to_base(ticker.currency)
            group = totals.get(key, {})
            realized = group.get("realized_gain", ZERO)
            dividends = group.get("dividends_collected", ZERO)

            quantity = tx.cumulative_units
            total_cost = tx.cumulative_cost
            market_value = ticker.last_price * quantity * rate
            unrealized = market_value - total_cost
            unrealized_percent = (
                (unrealized / total_cost * HUNDRED).quantize(PERCENT_DP) if total_cost > 0 else ZERO
            )

            holdings.append(HoldingOut(
                symbol=ticker.symbol,
                name=ticker.name,
                broker=tx.broker,
                currency=ticker.currency,
                base_currency=base,
                quantity=quantity,
                price=ticker.last_price,
                exchange_rate=rate,
                market_value=market_value,
                cost_per_share=total_cost / quantity,
                total_cost=total_cost,
                unrealized_gain=unrealized,
                unrealized_gain_percent=unrealized_percent,
                realized_gain=realized,
                dividends_collected=dividends,
                total_gain=realized + unrealized,
            ))

        return sorted(holdings, key=lambda h: h.market_value, reverse=True)
