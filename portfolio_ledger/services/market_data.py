import asyncio
from datetime import datetime, timezone
from typing import Dict, List

from portfolio_ledger.core.errors import PartialRefreshFailure, PersistenceError
from portfolio_ledger.core.logger import logger
from portfolio_ledger.models.types import QUANTUM
from portfolio_ledger.repositories import RepositoryFactory
from portfolio_ledger.schemas.prices import PriceUpdate, RefreshReport
from portfolio_ledger.services.ticker_resolver import TickerResolver


class PriceRefresher:
    """
    Fetches the latest price of every stored ticker from the provider it is
    bound to. Lookups run concurrently; each success is committed on its own,
    so one failing ticker never undoes the others.
    """

    def __init__(self, factory: RepositoryFactory, resolver: TickerResolver):
        self.factory = factory
        self.resolver = resolver
        self.ticker_repo = factory.get_ticker_repository()

    async def refresh_all(self) -> RefreshReport:
        tickers = [(t.id, t.symbol, t.provider) for t in self.ticker_repo.get_tickers()]
        if not tickers:
            logger.warning("No tickers in database to refresh.")
            return RefreshReport()

        results = await asyncio.gather(
            *(self.resolver.latest_price(symbol, provider) for _, symbol, provider in tickers),
            return_exceptions=True,
        )

        updated: List[PriceUpdate] = []
        failures: Dict[str, str] = {}
        for (ticker_id, symbol, provider), result in zip(tickers, results):
            if isinstance(result, Exception):
                logger.warning(f"Price refresh failed for {symbol} ({provider.value}): {result}")
                failures[symbol] = str(result)
                continue
            if isinstance(result, BaseException):
                raise result

            update = PriceUpdate(
                symbol=symbol,
                price=result.quantize(QUANTUM),
                updated_at=datetime.now(timezone.utc),
            )
            try:
                self.ticker_repo.update_price(ticker_id, update.price, update.updated_at)
                self.factory.commit()
            except PersistenceError as e:
                self.factory.rollback()
                failures[symbol] = str(e)
                continue
            updated.append(update)

        logger.info(f"Updated prices for {len(updated)} of {len(tickers)} tickers")
        if failures:
            raise PartialRefreshFailure(failures, [u.symbol for u in updated])
        return RefreshReport(updated=updated)
