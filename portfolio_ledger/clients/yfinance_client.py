import asyncio
from decimal import Decimal

import yfinance as yf

from portfolio_ledger.core.errors import ProviderError
from portfolio_ledger.core.logger import logger
from portfolio_ledger.models.enums import AssetType, QuoteProvider
from portfolio_ledger.schemas.ticker import TickerQuote


def fetch_ticker_info(ticker: str) -> dict:
    """Fetch ticker information via yfinance, falling back to fast_info."""
    try:
        t = yf.Ticker(ticker)
        info = t.info or {}
        fast_info = t.fast_info or {}
    except Exception as e:
        raise ProviderError("yahoo", f"Error fetching info for {ticker}: {e}") from e

    currency = info.get("currency") or fast_info.get("currency")
    if not currency or info.get("quoteType") == "NONE":
        raise ProviderError("yahoo", f"No results for symbol {ticker}")

    result = {
        "symbol": info.get("symbol") or ticker.upper(),
        "currency": currency,
        "name": info.get("longName") or info.get("shortName") or ticker.upper(),
        "exchange": info.get("exchange") or fast_info.get("exchange") or None,
        "asset_type": info.get("quoteType") or fast_info.get("quoteType"),
        "isin": info.get("isin"),
        "sector": info.get("sector"),
        "industry": info.get("industry"),
    }
    logger.debug(f"Fetched info for {ticker}")
    return result


def fetch_last_price(ticker: str) -> Decimal:
    try:
        price = yf.Ticker(ticker).fast_info["last_price"]
    except Exception as e:
        raise ProviderError("yahoo", f"Error fetching price for {ticker}: {e}") from e
    if price is None or price != price:
        raise ProviderError("yahoo", f"No price for symbol {ticker}")
    return Decimal(str(price))


class YahooClient:
    """yfinance is blocking, so calls run in a worker thread."""
    name = "yahoo"
    provider = QuoteProvider.YAHOO

    async def search(self, symbol: str) -> TickerQuote:
        info = await asyncio.to_thread(fetch_ticker_info, symbol)
        try:
            return TickerQuote(
                symbol=info["symbol"],
                name=info["name"],
                currency=info["currency"],
                exchange=info["exchange"],
                provider=self.provider,
                asset_type=AssetType.from_provider(info["asset_type"]),
                isin=info["isin"],
                sector=info["sector"],
                industry=info["industry"],
            )
        except ValueError as e:
            raise ProviderError(self.name, f"incomplete info for {symbol}") from e

    async def latest_price(self, symbol: str) -> Decimal:
        return await asyncio.to_thread(fetch_last_price, symbol)
