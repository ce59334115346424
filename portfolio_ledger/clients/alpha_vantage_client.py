from decimal import Decimal
from typing import Optional

from portfolio_ledger.clients.base import BaseApiClient
from portfolio_ledger.core.errors import ProviderError
from portfolio_ledger.models.enums import AssetType, QuoteProvider
from portfolio_ledger.schemas.ticker import TickerQuote

AV_BASE_URL = "https://www.alphavantage.co"


class AlphaVantageClient(BaseApiClient):
    name = "alpha_vantage"
    provider = QuoteProvider.ALPHA_VANTAGE

    def __init__(self, api_key: str, base_url: str = AV_BASE_URL, timeout: Optional[float] = None):
        super().__init__(base_url, api_key=api_key, timeout=timeout)

    async def _query(self, **params) -> dict:
        data = await self._get_json("query", {**params, "apikey": self.api_key})
        if not isinstance(data, dict):
            raise ProviderError(self.name, "unexpected response format: not an object")
        # throttling and bad keys come back as HTTP 200 with a message
        for key in ("Error Message", "Note", "Information"):
            if key in data:
                raise ProviderError(self.name, str(data[key]))
        return data

    async def search(self, symbol: str) -> TickerQuote:
        data = await self._query(function="SYMBOL_SEARCH", keywords=symbol)
        matches = [m for m in data.get("bestMatches") or [] if isinstance(m, dict)]
        if not matches:
            raise ProviderError(self.name, f"No results for symbol {symbol}")

        best = next(
            (m for m in matches if str(m.get("1. symbol", "")).upper() == symbol.upper()),
            matches[0],
        )
        try:
            return TickerQuote(
                symbol=best["1. symbol"],
                name=best.get("2. name") or best["1. symbol"],
                currency=best["8. currency"],
                exchange=best.get("4. region"),
                provider=self.provider,
                asset_type=AssetType.from_provider(best.get("3. type")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(self.name, f"incomplete search result for {symbol}") from e

    async def latest_price(self, symbol: str) -> Decimal:
        data = await self._query(function="GLOBAL_QUOTE", symbol=symbol)
        quote = data.get("Global Quote")
        if not isinstance(quote, dict) or not quote.get("05. price"):
            raise ProviderError(self.name, f"No results for symbol {symbol}")
        return self._decimal(quote["05. price"], "price", self.name)
