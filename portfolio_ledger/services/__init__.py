from portfolio_ledger.clients import build_fx_clients, build_quote_clients
from portfolio_ledger.core.config import Settings, settings as default_settings
from portfolio_ledger.services.fx_rates_service import ExchangeRateCache, ExchangeRateResolver
from portfolio_ledger.services.ticker_resolver import TickerResolver


def build_ticker_resolver(settings: Settings = default_settings) -> TickerResolver:
    return TickerResolver(build_quote_clients(settings), settings.PROVIDER_PRIORITY)


def build_fx_resolver(settings: Settings = default_settings) -> ExchangeRateResolver:
    """A fresh resolver, so its memo lives exactly as long as the caller's request."""
    return ExchangeRateResolver(build_fx_clients(settings))


__all__ = [
    "ExchangeRateCache",
    "ExchangeRateResolver",
    "TickerResolver",
    "build_fx_resolver",
    "build_ticker_resolver",
]
