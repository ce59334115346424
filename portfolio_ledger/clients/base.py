"""Shared HTTP plumbing and the capability protocols of provider adapters.

Adapters are not related by inheritance at the resolver level: the resolver
only relies on ``QuoteClient`` (search + latest price) and the FX resolver on
``FxClient``. ``BaseApiClient`` merely removes duplicated request handling.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx

from portfolio_ledger.core.config import settings
from portfolio_ledger.core.errors import ProviderError
from portfolio_ledger.core.logger import logger
from portfolio_ledger.models.enums import QuoteProvider
from portfolio_ledger.schemas.ticker import TickerQuote


@runtime_checkable
class QuoteClient(Protocol):
    provider: QuoteProvider

    async def search(self, symbol: str) -> TickerQuote:
        ...

    async def latest_price(self, symbol: str) -> Decimal:
        ...


@runtime_checkable
class FxClient(Protocol):
    name: str

    async def rate(self, from_currency: str, to_currency: str, as_of: Optional[date]) -> Decimal:
        """Units of ``to_currency`` for one unit of ``from_currency``."""
        ...


class BaseApiClient:
    name: str = "api"

    def __init__(self, base_url: str, api_key: str = "", timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``path`` and decode the body, numbers parsed as Decimal."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.warning(f"{self.name} request to {path} timed out: {e}")
            raise ProviderError(self.name, "request timed out") from e
        except httpx.RequestError as e:
            logger.warning(f"{self.name} request to {path} failed: {e}")
            raise ProviderError(self.name, f"connection error: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(self.name, f"request failed: HTTP {response.status_code}")

        try:
            return response.json(parse_float=Decimal)
        except ValueError as e:
            raise ProviderError(self.name, "response is not valid JSON") from e

    @staticmethod
    def _decimal(value: Any, field: str, provider: str) -> Decimal:
        try:
            result = Decimal(str(value).strip())
        except (ArithmeticError, ValueError, TypeError) as e:
            raise ProviderError(provider, f"invalid {field} '{value}'") from e
        if not result.is_finite():
            raise ProviderError(provider, f"invalid {field} '{value}'")
        return result
