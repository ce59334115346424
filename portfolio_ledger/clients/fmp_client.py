from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from portfolio_ledger.clients.base import BaseApiClient
from portfolio_ledger.core.errors import ProviderError
from portfolio_ledger.models.enums import AssetType, QuoteProvider
from portfolio_ledger.schemas.ticker import TickerQuote

FMP_BASE_URL = "https://financialmodelingprep.com/stable"


class FmpClient(BaseApiClient):
    """Financial Modeling Prep: symbol search, quotes and EOD forex history."""
    name = "fmp"
    provider = QuoteProvider.FMP

    def __init__(self, api_key: str, base_url: str = FMP_BASE_URL, timeout: Optional[float] = None):
        super().__init__(base_url, api_key=api_key, timeout=timeout)

    async def _get_list(self, path: str, params: dict, empty_message: str) -> List[dict]:
        data = await self._get_json(path, {**params, "apikey": self.api_key})
        if isinstance(data, dict) and "Error Message" in data:
            raise ProviderError(self.name, data["Error Message"])
        if not isinstance(data, list):
            raise ProviderError(self.name, "unexpected response format: not an array")
        items = [item for item in data if isinstance(item, dict)]
        if not items:
            raise ProviderError(self.name, empty_message)
        return items

    async def search(self, symbol: str) -> TickerQuote:
        # "VWRL.AS" searches for VWRL on exchange AS
        standalone, _, exchange = symbol.partition(".")
        params = {"query": standalone}
        if exchange:
            params["exchange"] = exchange
        items = await self._get_list(
            "search-symbol",
            params,
            f"No symbols found for query {standalone} on exchange {exchange or 'any'}",
        )
        best = _best_match(items, symbol, standalone)
        try:
            return TickerQuote(
                symbol=best["symbol"],
                name=best.get("name") or best["symbol"],
                currency=best["currency"],
                exchange=best.get("exchange"),
                provider=self.provider,
                asset_type=AssetType.STOCK,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(self.name, f"incomplete search result for {symbol}") from e

    async def latest_price(self, symbol: str) -> Decimal:
        items = await self._get_list("quote", {"symbol": symbol}, f"No data found for symbol {symbol}")
        return self._decimal(items[0].get("price"), "price", self.name)

    async def rate(self, from_currency: str, to_currency: str, as_of: Optional[date]) -> Decimal:
        pair = f"{from_currency}{to_currency}"
        if as_of is None:
            items = await self._get_list("quote", {"symbol": pair}, f"No quote for {pair}")
        else:
            day = as_of.isoformat()
            items = await self._get_list(
                "historical-price-eod/light",
                {"symbol": pair, "from": day, "to": day},
                f"No data found for symbol {pair} from {day} to {day}",
            )
        return self._decimal(items[0].get("price"), "price", self.name)


def _best_match(items: List[dict], symbol: str, standalone: str) -> dict[str, Any]:
    wanted = {symbol.upper(), standalone.upper()}
    for item in items:
        if str(item.get("symbol", "")).upper() in wanted:
            return item
    return items[0]
