from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from portfolio_ledger.core.errors import PersistenceError
from portfolio_ledger.models import Asset, Ticker
from portfolio_ledger.repositories.base import BaseRepository
from portfolio_ledger.schemas.ticker import TickerQuote
import logging

logger = logging.getLogger(__name__)


class AssetRepository(BaseRepository[Asset]):
    def __init__(self, db: Session):
        super().__init__(db, Asset)

    def get_or_create(self, quote: TickerQuote) -> Asset:
        """Assets are keyed by name; the first ticker seen for a name creates it."""
        self.insert_ignore(
            [{
                "name": quote.name,
                "asset_type": quote.asset_type.value,
                "isin": quote.isin,
                "sector": quote.sector,
                "industry": quote.industry,
            }],
            index_elements=["name"],
        )
        try:
            return self.db.execute(select(Asset).where(Asset.name == quote.name)).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Error loading asset {quote.name}: {e}")
            raise PersistenceError(f"Failed to load asset {quote.name}") from e


class TickerRepository(BaseRepository[Ticker]):
    def __init__(self, db: Session):
        super().__init__(db, Ticker)

    def get_tickers(self, **filters) -> List[Ticker]:
        """Get tickers filtered by optional criteria: symbol, exchange, currency, provider"""
        try:
            query = self.db.query(Ticker)
            mapping = {
                "symbol": Ticker.symbol,
                "exchange": Ticker.exchange,
                "currency": Ticker.currency,
                "provider": Ticker.provider,
            }

            for key, value in filters.items():
                if key in mapping and value:
                    if isinstance(value, str) and key != "provider":
                        value = value.strip().upper()
                    query = query.filter(mapping[key] == value)
            return query.order_by(Ticker.symbol).all()

        except SQLAlchemyError as e:
            logger.error(f"Error fetching tickers with filters {filters}: {e}")
            raise PersistenceError(f"Failed to get tickers with filters {filters}") from e

    def get_by_symbol(self, symbol: str) -> Optional[Ticker]:
        try:
            return self.db.execute(
                select(Ticker).where(Ticker.symbol == symbol.strip().upper())
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting ticker {symbol}: {e}")
            raise PersistenceError(f"Failed to get ticker {symbol}") from e

    def get_symbol_map(self, symbols: Iterable[str]) -> Dict[str, Ticker]:
        """Known tickers among ``symbols``, keyed by symbol."""
        wanted = {s.strip().upper() for s in symbols if s and s.strip()}
        if not wanted:
            return {}
        try:
            rows = self.db.execute(select(Ticker).where(Ticker.symbol.in_(wanted))).scalars().all()
            return {row.symbol: row for row in rows}
        except SQLAlchemyError as e:
            logger.error(f"Error getting tickers {sorted(wanted)}: {e}")
            raise PersistenceError("Failed to get tickers by symbol") from e

    def get_currencies(self) -> List[str]:
        """
        Get all unique currencies.
        """
        try:
            result = (
                self.db.query(Ticker.currency)
                .distinct()
                .order_by(Ticker.currency)
                .all()
            )
            return [row.currency for row in result]

        except SQLAlchemyError as e:
            logger.error(f"Error getting currencies: {e}")
            raise PersistenceError("Failed to get currencies") from e

    def insert_quote(self, quote: TickerQuote, asset: Asset) -> Ticker:
        """Insert-or-ignore a resolved ticker and return the stored row."""
        self.insert_ignore(
            [{
                "symbol": quote.symbol,
                "name": quote.name,
                "asset_id": asset.id,
                "currency": quote.currency,
                "exchange": quote.exchange,
                "provider": quote.provider,
                "last_price": quote.last_price,
                "last_price_updated_at": datetime.now(timezone.utc) if quote.last_price is not None else None,
            }],
            index_elements=["symbol"],
        )
        ticker = self.get_by_symbol(quote.symbol)
        if ticker is None:
            raise PersistenceError(f"Ticker {quote.symbol} missing after insert")
        return ticker

    def update_price(self, ticker_id: int, price: Decimal, updated_at: datetime) -> int:
        """Price and timestamp are always written in the same statement."""
        try:
            result = self.db.execute(
                update(Ticker)
                .where(Ticker.id == ticker_id)
                .values(last_price=price, last_price_updated_at=updated_at)
            )
            self.db.flush()
            return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            logger.error(f"Error updating price of ticker {ticker_id}: {e}")
            raise PersistenceError(f"Failed to update price of ticker {ticker_id}") from e
