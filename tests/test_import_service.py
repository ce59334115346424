from decimal import Decimal

import pytest

from portfolio_ledger.core.errors import LookupFailure, ParseError, PersistenceError, RateUnavailable
from portfolio_ledger.models import Asset, Ticker, Transaction
from portfolio_ledger.models.enums import QuoteProvider
from portfolio_ledger.services.fx_rates_service import ExchangeRateResolver
from portfolio_ledger.services.holdings_service import HoldingsProjector
from portfolio_ledger.services.import_service import TransactionImporter
from portfolio_ledger.services.market_data import PriceRefresher
from tests.conftest import SCENARIO_CSV, csv_bytes
from tests.fakes import FakeFxClient


def ledger(db):
    return db.query(Transaction).order_by(Transaction.transaction_no).all()


async def test_scenario_is_replayed_through_fifo(importer, db):
    summary = await importer.import_csv(SCENARIO_CSV.encode())

    assert summary.rows_read == 6
    assert summary.imported == 6
    assert summary.skipped == 0
    assert summary.tickers_created == ["AAPL"]
    assert summary.watermark_before is None
    assert summary.watermark_after == 6

    rows = ledger(db)
    last = rows[-1]
    assert last.cumulative_units == Decimal("80")
    assert last.cumulative_cost == Decimal("7229.43")
    assert last.cost_of_units_sold == Decimal("1777.02")
    assert last.realized_gains == Decimal("498.62")
    assert rows[0].cumulative_cost == Decimal("1777.02")
    assert all(r.exchange_rate == 1 for r in rows)
    assert all(r.dividends_collected == 0 for r in rows)


async def test_reimport_is_a_no_op(importer, db, fmp_client):
    await importer.import_csv(SCENARIO_CSV.encode())
    before = [(r.transaction_no, r.cumulative_cost) for r in ledger(db)]

    summary = await importer.import_csv(SCENARIO_CSV.encode())

    assert summary.imported == 0
    assert summary.skipped == 6
    assert summary.tickers_created == []
    assert [(r.transaction_no, r.cumulative_cost) for r in ledger(db)] == before
    assert fmp_client.search_calls == ["AAPL"]


async def test_overlapping_file_only_imports_new_rows(importer, db):
    await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
        "2,2024-01-03,Buy,AAPL,10,200,0,IBKR,,",
    ))

    summary = await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
        "2,2024-01-03,Buy,AAPL,10,200,0,IBKR,,",
        "3,2024-01-04,Sell,AAPL,5,300,0,IBKR,,",
    ))

    assert summary.skipped == 2
    assert summary.imported == 1
    sell = ledger(db)[-1]
    assert sell.cost_of_units_sold == Decimal("500")
    assert sell.realized_gains == Decimal("1000")
    assert sell.cumulative_units == Decimal("15")
    assert sell.cumulative_cost == Decimal("2500")


async def test_groups_are_per_ticker_and_broker(importer, db):
    await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
        "2,2024-01-03,Buy,AAPL,10,200,0,Degiro,,",
        "3,2024-01-04,Buy,MSFT,1,400,0,IBKR,,",
        "4,2024-01-05,Sell,AAPL,10,150,0,Degiro,,",
    ))

    rows = ledger(db)
    assert rows[3].cost_of_units_sold == Decimal("2000")
    assert rows[3].cumulative_units == 0
    assert rows[3].realized_gains == Decimal("-500")
    assert rows[2].cumulative_units == Decimal("1")


async def test_fees_are_part_of_cost_and_proceeds(importer, db):
    await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,AAPL,10,100,10,IBKR,,",
        "2,2024-01-03,Sell,AAPL,10,120,5,IBKR,,",
    ))

    buy, sell = ledger(db)
    assert buy.cumulative_cost == Decimal("1010")
    assert sell.cost_of_units_sold == Decimal("1010")
    assert sell.realized_gains == Decimal("185")


async def test_dividend_carries_position_forward(importer, db):
    await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
        "2,2024-02-01,Div,AAPL,10,0.25,0.5,IBKR,,",
        "3,2024-03-01,Sell,AAPL,4,110,0,IBKR,,",
    ))

    buy, dividend, sell = ledger(db)
    assert dividend.cumulative_units == Decimal("10")
    assert dividend.cumulative_cost == Decimal("1000")
    assert dividend.cost_of_units_sold == 0
    assert dividend.dividends_collected == Decimal("2")
    assert dividend.realized_gains == 0
    assert sell.cost_of_units_sold == Decimal("400")
    assert sell.cumulative_cost == Decimal("600")


async def test_ticker_currency_is_converted_to_base(importer, db):
    await importer.import_csv(csv_bytes("1,2024-01-02,Buy,SAP,10,100,0,Degiro,,"))

    (row,) = ledger(db)
    assert row.exchange_rate == Decimal("1.1")
    assert row.price == Decimal("100")
    assert row.currency == "EUR"
    assert row.cumulative_cost == Decimal("1100")


async def test_row_currency_is_converted_to_ticker_currency(importer, db):
    await importer.import_csv(csv_bytes("1,2024-01-02,Buy,AAPL,10,100,2,IBKR,,EUR"))

    (row,) = ledger(db)
    assert row.currency == "USD"
    assert row.price == Decimal("110")
    assert row.fees == Decimal("2.2")
    assert row.exchange_rate == 1
    assert row.cumulative_cost == Decimal("1102.2")


async def test_alternative_symbol_is_tried(importer, db, yahoo_client):
    summary = await importer.import_csv(csv_bytes("1,2024-01-02,Buy,VWRL,5,100,0,Degiro,VWRL.AS,EUR"))

    assert summary.tickers_created == ["VWRL.AS"]
    ticker = db.query(Ticker).one()
    assert ticker.symbol == "VWRL.AS"
    assert ticker.provider == QuoteProvider.YAHOO
    assert yahoo_client.search_calls == ["VWRL", "VWRL.AS"]

    again = await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,VWRL,5,100,0,Degiro,VWRL.AS,EUR",
        "2,2024-01-03,Buy,VWRL,5,100,0,Degiro,VWRL.AS,EUR",
    ))
    assert again.imported == 1
    assert yahoo_client.search_calls == ["VWRL", "VWRL.AS"]


async def test_unresolved_symbols_abort_the_import(importer, db):
    with pytest.raises(LookupFailure) as exc_info:
        await importer.import_csv(csv_bytes(
            "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
            "2,2024-01-03,Buy,NOPE,1,10,0,IBKR,,",
            "3,2024-01-04,Buy,GONE,1,10,0,IBKR,,",
        ))

    assert sorted(exc_info.value.symbols) == ["GONE", "NOPE"]
    assert ledger(db) == []
    assert [t.symbol for t in db.query(Ticker).all()] == ["AAPL"]
    assert db.query(Asset).count() == 1


async def test_malformed_file_writes_nothing(importer, db, fmp_client):
    with pytest.raises(ParseError):
        await importer.import_csv(csv_bytes(
            "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
            "2,2024-01-03,Buy,AAPL,0,100,0,IBKR,,",
        ))

    assert ledger(db) == []
    assert fmp_client.search_calls == []


async def test_failure_mid_replay_rolls_back_every_row(factory, resolver, db):
    importer = TransactionImporter(factory, resolver, ExchangeRateResolver([FakeFxClient()]), base_currency="USD")

    with pytest.raises(RateUnavailable) as exc_info:
        await importer.import_csv(csv_bytes(
            "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
            "2,2024-01-03,Buy,MSFT,1,400,0,IBKR,,",
            "3,2024-01-04,Buy,SAP,10,100,0,Degiro,,",
        ))

    assert ledger(db) == []
    assert factory.get_transaction_repository().get_watermark() is None
    assert exc_info.value.row == 3
    assert exc_info.value.transaction_no == 3
    assert db.query(Ticker).count() == 3


async def test_purge_from_allows_reimport(importer, db):
    await importer.import_csv(SCENARIO_CSV.encode())

    deleted = importer.purge_from(4)

    assert deleted == 3
    assert [r.transaction_no for r in ledger(db)] == [1, 2, 3]

    summary = await importer.import_csv(SCENARIO_CSV.encode())
    assert summary.imported == 3
    assert ledger(db)[-1].cumulative_cost == Decimal("7229.43")


async def test_reset_ledger(importer, db):
    await importer.import_csv(SCENARIO_CSV.encode())

    assert importer.reset_ledger() == {"transactions": 6}
    assert db.query(Ticker).count() == 1

    await importer.import_csv(SCENARIO_CSV.encode())
    counts = importer.reset_ledger(clear_assets=True)

    assert counts == {"transactions": 6, "tickers": 1, "assets": 1}
    assert db.query(Ticker).count() == 0


async def test_sell_with_fees_above_proceeds_is_a_disposal(importer, db):
    await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
        "2,2024-01-03,Sell,AAPL,5,0.1,1,IBKR,,",
    ))

    sell = ledger(db)[-1]
    assert sell.cost_of_units_sold == Decimal("500")
    assert sell.cumulative_units == Decimal("5")
    assert sell.cumulative_cost == Decimal("500")
    assert sell.realized_gains == Decimal("-500.5")


async def test_zero_price_write_off_consumes_lots(importer, db):
    await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
        "2,2024-01-03,Sell,AAPL,10,0,0,IBKR,,",
        "3,2024-01-04,Buy,AAPL,2,50,0,IBKR,,",
    ))

    buy, write_off, rebuy = ledger(db)
    assert write_off.cost_of_units_sold == Decimal("1000")
    assert write_off.realized_gains == Decimal("-1000")
    assert write_off.cumulative_units == 0
    assert write_off.cumulative_cost == 0
    assert rebuy.cumulative_cost == Decimal("100")


async def test_oversell_is_clamped_at_zero(importer, db):
    await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
        "2,2024-01-03,Sell,AAPL,15,120,0,IBKR,,",
        "3,2024-01-04,Buy,AAPL,5,50,0,IBKR,,",
    ))

    buy, sell, rebuy = ledger(db)
    assert sell.cumulative_units == 0
    assert sell.cumulative_cost == 0
    assert sell.cost_of_units_sold == Decimal("1000")
    assert sell.realized_gains == Decimal("800")
    assert rebuy.cumulative_units == Decimal("5")
    assert rebuy.cumulative_cost == Decimal("250")


async def test_second_run_leaves_holdings_unchanged(importer, factory, resolver, fx):
    projector = HoldingsProjector(factory, fx)
    await importer.import_csv(SCENARIO_CSV.encode())
    await PriceRefresher(factory, resolver).refresh_all()
    first = await projector.list_holdings("USD")

    summary = await importer.import_csv(SCENARIO_CSV.encode())
    second = await projector.list_holdings("USD")

    assert summary.imported == 0
    assert len(first) == 1
    assert [h.model_dump() for h in second] == [h.model_dump() for h in first]


async def test_new_ticker_is_priced_at_import(importer, db, fmp_client):
    await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
        "2,2024-01-03,Buy,SAP,10,100,0,Degiro,,",
    ))

    tickers = {t.symbol: t for t in db.query(Ticker).all()}
    assert tickers["AAPL"].last_price == Decimal("100")
    assert tickers["AAPL"].last_price_updated_at is not None
    assert tickers["SAP"].last_price is None
    assert tickers["SAP"].last_price_updated_at is None
    assert sorted(fmp_client.price_calls) == ["AAPL", "SAP"]


async def test_persistence_failure_names_the_row(importer, db, monkeypatch):
    insert = importer.transaction_repo.insert_transaction

    def insert_transaction(values):
        if values["transaction_no"] == 2:
            raise PersistenceError("Failed to insert Transaction")
        return insert(values)

    monkeypatch.setattr(importer.transaction_repo, "insert_transaction", insert_transaction)

    with pytest.raises(PersistenceError) as exc_info:
        await importer.import_csv(csv_bytes(
            "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
            "2,2024-01-03,Buy,AAPL,10,100,0,IBKR,,",
        ))

    error = exc_info.value
    assert error.row == 2
    assert error.transaction_no == 2
    assert str(error) == "row 2 (transaction #2): Failed to insert Transaction"
    assert ledger(db) == []
