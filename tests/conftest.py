"""Shared fixtures: an in-memory SQLite ledger and fake providers."""
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_ledger.core.db import init_db, make_engine
from portfolio_ledger.models.enums import QuoteProvider
from portfolio_ledger.repositories import RepositoryFactory
from portfolio_ledger.services.fx_rates_service import ExchangeRateResolver
from portfolio_ledger.services.import_service import TransactionImporter
from portfolio_ledger.services.ticker_resolver import TickerResolver
from tests.fakes import FakeFxClient, FakeQuoteClient, make_quote

HEADER = "transaction_no,date,type,symbol,quantity,price,fees,broker,alt_symbol,currency\n"

# amounts -1777.02, -1659.08, -2190.06, -1768.21, -1612.08, 2275.64 at 20 units each
SCENARIO_CSV = HEADER + (
    "1,2024-01-02,Buy,AAPL,20,88.851,0,IBKR,,\n"
    "2,2024-01-09,Buy,AAPL,20,82.954,0,IBKR,,\n"
    "3,2024-02-01,Buy,AAPL,20,109.503,0,IBKR,,\n"
    "4,2024-02-15,Buy,AAPL,20,88.4105,0,IBKR,,\n"
    "5,2024-03-01,Buy,AAPL,20,80.604,0,IBKR,,\n"
    "6,2024-03-20,Sell,AAPL,20,113.782,0,IBKR,,\n"
)


def csv_bytes(*lines: str) -> bytes:
    return (HEADER + "".join(f"{line}\n" for line in lines)).encode("utf-8")


@pytest.fixture
def engine():
    engine = make_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def factory(db) -> RepositoryFactory:
    return RepositoryFactory(db)


@pytest.fixture
def fmp_client() -> FakeQuoteClient:
    return FakeQuoteClient(
        QuoteProvider.FMP,
        quotes={
            "AAPL": make_quote("AAPL"),
            "MSFT": make_quote("MSFT"),
            "SAP": make_quote("SAP", currency="EUR", name="SAP SE"),
        },
        prices={"AAPL": Decimal("100"), "MSFT": Decimal("400")},
    )


@pytest.fixture
def yahoo_client() -> FakeQuoteClient:
    return FakeQuoteClient(
        QuoteProvider.YAHOO,
        quotes={"VWRL.AS": make_quote("VWRL.AS", currency="EUR", provider=QuoteProvider.YAHOO)},
        prices={"VWRL.AS": Decimal("110.5")},
    )


@pytest.fixture
def resolver(fmp_client, yahoo_client) -> TickerResolver:
    return TickerResolver(
        {QuoteProvider.FMP: fmp_client, QuoteProvider.YAHOO: yahoo_client},
        ["fmp", "alpha_vantage", "marketstack", "yahoo"],
    )


@pytest.fixture
def fx_client() -> FakeFxClient:
    return FakeFxClient({("EUR", "USD"): Decimal("1.1")})


@pytest.fixture
def fx(fx_client) -> ExchangeRateResolver:
    return ExchangeRateResolver([fx_client])


@pytest.fixture
def importer(factory, resolver, fx) -> TransactionImporter:
    return TransactionImporter(factory, resolver, fx, base_currency="USD")
