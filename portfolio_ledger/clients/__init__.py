from typing import Dict, List

from portfolio_ledger.clients.base import BaseApiClient, FxClient, QuoteClient
from portfolio_ledger.clients.alpha_vantage_client import AlphaVantageClient
from portfolio_ledger.clients.fmp_client import FmpClient
from portfolio_ledger.clients.frankfurter_client import FrankfurterClient
from portfolio_ledger.clients.marketstack_client import MarketstackClient
from portfolio_ledger.clients.yfinance_client import YahooClient
from portfolio_ledger.core.config import Settings, settings as default_settings
from portfolio_ledger.models.enums import QuoteProvider


def build_quote_clients(settings: Settings = default_settings) -> Dict[QuoteProvider, QuoteClient]:
    """Quote adapters for every provider that is usable with the current settings."""
    timeout = settings.HTTP_TIMEOUT
    clients: Dict[QuoteProvider, QuoteClient] = {QuoteProvider.YAHOO: YahooClient()}
    if settings.FMP_API_KEY:
        clients[QuoteProvider.FMP] = FmpClient(settings.FMP_API_KEY, timeout=timeout)
    if settings.ALPHA_VANTAGE_API_KEY:
        clients[QuoteProvider.ALPHA_VANTAGE] = AlphaVantageClient(settings.ALPHA_VANTAGE_API_KEY, timeout=timeout)
    if settings.MARKETSTACK_API_KEY:
        clients[QuoteProvider.MARKETSTACK] = MarketstackClient(settings.MARKETSTACK_API_KEY, timeout=timeout)
    return clients


def build_fx_clients(settings: Settings = default_settings) -> List[FxClient]:
    """Historical FX sources in the order they are tried."""
    clients: List[FxClient] = [FrankfurterClient(timeout=settings.HTTP_TIMEOUT)]
    if settings.FMP_API_KEY:
        clients.append(FmpClient(settings.FMP_API_KEY, timeout=settings.HTTP_TIMEOUT))
    return clients


__all__ = [
    "BaseApiClient",
    "FxClient",
    "QuoteClient",
    "AlphaVantageClient",
    "FmpClient",
    "FrankfurterClient",
    "MarketstackClient",
    "YahooClient",
    "build_quote_clients",
    "build_fx_clients",
]
