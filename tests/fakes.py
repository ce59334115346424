"""In-memory stand-ins for quote and FX providers."""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from portfolio_ledger.core.errors import ProviderError
from portfolio_ledger.models.enums import QuoteProvider
from portfolio_ledger.schemas.ticker import TickerQuote


def make_quote(
        symbol: str,
        currency: str = "USD",
        provider: QuoteProvider = QuoteProvider.FMP,
        name: Optional[str] = None,
) -> TickerQuote:
    return TickerQuote(
        symbol=symbol,
        name=name or f"{symbol} Inc.",
        currency=currency,
        exchange="NASDAQ",
        provider=provider,
    )


class FakeQuoteClient:
    def __init__(
            self,
            provider: QuoteProvider,
            quotes: Optional[Dict[str, TickerQuote]] = None,
            prices: Optional[Dict[str, Decimal]] = None,
    ):
        self.provider = provider
        self.quotes = dict(quotes or {})
        self.prices = dict(prices or {})
        self.search_calls: List[str] = []
        self.price_calls: List[str] = []

    async def search(self, symbol: str) -> TickerQuote:
        self.search_calls.append(symbol)
        if symbol not in self.quotes:
            raise ProviderError(self.provider.value, f"No results for symbol {symbol}")
        return self.quotes[symbol]

    async def latest_price(self, symbol: str) -> Decimal:
        self.price_calls.append(symbol)
        if symbol not in self.prices:
            raise ProviderError(self.provider.value, f"No price for symbol {symbol}")
        return self.prices[symbol]


class FakeFxClient:
    """Rates keyed by (from, to) or (from, to, date); units of ``to`` per ``from``."""

    def __init__(self, rates: Optional[Dict[Tuple, Decimal]] = None, name: str = "fake_fx"):
        self.name = name
        self.rates = dict(rates or {})
        self.calls: List[Tuple[str, str, Optional[date]]] = []

    async def rate(self, from_currency: str, to_currency: str, as_of: Optional[date]) -> Decimal:
        self.calls.append((from_currency, to_currency, as_of))
        for key in ((from_currency, to_currency, as_of), (from_currency, to_currency)):
            if key in self.rates:
                return self.rates[key]
        raise ProviderError(self.name, f"No rate {from_currency}->{to_currency} on {as_of}")
