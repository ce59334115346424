from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from portfolio_ledger.api.dependencies import get_factory, get_ticker_resolver
from portfolio_ledger.api.errors import to_http_exception
from portfolio_ledger.core.errors import LedgerError
from portfolio_ledger.core.logger import logger
from portfolio_ledger.models.enums import QuoteProvider
from portfolio_ledger.repositories.factory import RepositoryFactory
from portfolio_ledger.schemas.ticker import TickerOut, TickerQuote
from portfolio_ledger.services.ticker_resolver import TickerResolver

router = APIRouter()


@router.get("/", response_model=List[TickerOut])
def list_tickers(
        exchange: Optional[str] = None,
        currency: Optional[str] = None,
        provider: Optional[QuoteProvider] = None,
        factory: RepositoryFactory = Depends(get_factory),
):
    """
    Get a list of tickers with optional filters.
    """
    try:
        repo = factory.get_ticker_repository()
        return repo.get_tickers(exchange=exchange, currency=currency, provider=provider)
    except LedgerError as e:
        logger.error(f"list_tickers failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to list tickers")


@router.get("/resolve/{symbol}", response_model=TickerQuote)
async def resolve_ticker(
        symbol: str,
        provider: Optional[QuoteProvider] = None,
        resolver: TickerResolver = Depends(get_ticker_resolver),
):
    """Look a symbol up across the configured providers without storing it."""
    try:
        return await resolver.resolve(symbol, provider)
    except LedgerError as e:
        logger.info(f"resolve_ticker {symbol} failed: {e}")
        raise to_http_exception(e)
