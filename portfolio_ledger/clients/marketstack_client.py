from decimal import Decimal
from typing import Optional

from portfolio_ledger.clients.base import BaseApiClient
from portfolio_ledger.clients.utils import currency_from_country_code
from portfolio_ledger.core.errors import ProviderError
from portfolio_ledger.models.enums import AssetType, QuoteProvider
from portfolio_ledger.schemas.ticker import TickerQuote

MARKETSTACK_BASE_URL = "https://api.marketstack.com/v2"


class MarketstackClient(BaseApiClient):
    """Marketstack reports no currency, only the listing exchange's country."""
    name = "marketstack"
    provider = QuoteProvider.MARKETSTACK

    def __init__(self, api_key: str, base_url: str = MARKETSTACK_BASE_URL, timeout: Optional[float] = None):
        super().__init__(base_url, api_key=api_key, timeout=timeout)

    async def search(self, symbol: str) -> TickerQuote:
        data = await self._get_json(f"tickers/{symbol}", {"access_key": self.api_key})
        if not isinstance(data, dict) or "error" in data:
            raise ProviderError(self.name, f"Failed to parse Marketstack symbol {symbol}")

        exchange = data.get("stock_exchange")
        if not isinstance(exchange, dict):
            exchange = {}
        country_code = exchange.get("country_code")
        currency = currency_from_country_code(country_code)
        if currency is None:
            raise ProviderError(self.name, f"Failed to map country code {country_code}")

        try:
            return TickerQuote(
                symbol=data["symbol"],
                name=data.get("name") or data["symbol"],
                currency=currency,
                exchange=exchange.get("acronym"),
                provider=self.provider,
                asset_type=AssetType.from_provider(data.get("item_type")),
                isin=data.get("isin"),
                sector=data.get("sector"),
                industry=data.get("industry"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(self.name, f"incomplete ticker result for {symbol}") from e

    async def latest_price(self, symbol: str) -> Decimal:
        data = await self._get_json("eod/latest", {"access_key": self.api_key, "symbols": symbol})
        rows = data.get("data") if isinstance(data, dict) else None
        if not rows or not isinstance(rows, list) or not isinstance(rows[0], dict):
            raise ProviderError(self.name, f"Failed to parse Marketstack quote for {symbol}")
        return self._decimal(rows[0].get("close"), "close", self.name)
