from decimal import Decimal

import pytest

from portfolio_ledger.core.errors import PartialRefreshFailure
from portfolio_ledger.models import Ticker
from portfolio_ledger.models.enums import QuoteProvider
from portfolio_ledger.services.market_data import PriceRefresher
from tests.fakes import make_quote


def store_tickers(factory, *quotes):
    asset_repo = factory.get_asset_repository()
    ticker_repo = factory.get_ticker_repository()
    for quote in quotes:
        ticker_repo.insert_quote(quote, asset_repo.get_or_create(quote))
    factory.commit()


async def test_refresh_updates_every_ticker(factory, resolver, db):
    store_tickers(
        factory,
        make_quote("AAPL"),
        make_quote("VWRL.AS", currency="EUR", provider=QuoteProvider.YAHOO),
    )

    report = await PriceRefresher(factory, resolver).refresh_all()

    assert sorted(u.symbol for u in report.updated) == ["AAPL", "VWRL.AS"]
    prices = {t.symbol: t.last_price for t in db.query(Ticker).all()}
    assert prices == {"AAPL": Decimal("100"), "VWRL.AS": Decimal("110.5")}
    assert all(t.last_price_updated_at is not None for t in db.query(Ticker).all())


async def test_each_ticker_uses_its_own_provider(factory, resolver, fmp_client, yahoo_client):
    store_tickers(factory, make_quote("AAPL"), make_quote("VWRL.AS", provider=QuoteProvider.YAHOO))

    await PriceRefresher(factory, resolver).refresh_all()

    assert fmp_client.price_calls == ["AAPL"]
    assert yahoo_client.price_calls == ["VWRL.AS"]


async def test_failures_do_not_undo_successful_updates(factory, resolver, db):
    store_tickers(
        factory,
        make_quote("AAPL"),
        make_quote("MSFT"),
        make_quote("DEAD"),
        make_quote("GONE", provider=QuoteProvider.YAHOO),
    )

    with pytest.raises(PartialRefreshFailure) as exc_info:
        await PriceRefresher(factory, resolver).refresh_all()

    error = exc_info.value
    assert set(error.failures) == {"DEAD", "GONE"}
    assert sorted(error.updated) == ["AAPL", "MSFT"]

    db.expire_all()
    tickers = {t.symbol: t for t in db.query(Ticker).all()}
    for symbol in ("AAPL", "MSFT"):
        assert tickers[symbol].last_price is not None
        assert tickers[symbol].last_price_updated_at is not None
    for symbol in ("DEAD", "GONE"):
        assert tickers[symbol].last_price is None
        assert tickers[symbol].last_price_updated_at is None


async def test_empty_ledger_refreshes_nothing(factory, resolver):
    report = await PriceRefresher(factory, resolver).refresh_all()

    assert report.updated == []
