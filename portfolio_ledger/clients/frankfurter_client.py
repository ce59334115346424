from datetime import date
from decimal import Decimal
from typing import Optional

from portfolio_ledger.clients.base import BaseApiClient
from portfolio_ledger.core.errors import ProviderError

FRANKFURTER_BASE_URL = "https://api.frankfurter.app"


class FrankfurterClient(BaseApiClient):
    """ECB reference rates. Weekend and holiday dates resolve to the prior fixing."""
    name = "frankfurter"

    def __init__(self, base_url: str = FRANKFURTER_BASE_URL, timeout: Optional[float] = None):
        super().__init__(base_url, timeout=timeout)

    async def rate(self, from_currency: str, to_currency: str, as_of: Optional[date]) -> Decimal:
        path = as_of.isoformat() if as_of else "latest"
        data = await self._get_json(path, {"from": from_currency, "to": to_currency})
        rates = data.get("rates") if isinstance(data, dict) else None
        if not rates or to_currency not in rates:
            raise ProviderError(
                self.name,
                f"No exchange rates for date {path} from {from_currency} to {to_currency}",
            )
        return self._decimal(rates[to_currency], "rate", self.name)
