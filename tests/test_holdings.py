from datetime import datetime, timezone
from decimal import Decimal

import pandas as pd

from portfolio_ledger.services.holdings_service import HoldingsProjector, group_totals
from tests.conftest import SCENARIO_CSV, csv_bytes


def set_price(factory, symbol, price):
    repo = factory.get_ticker_repository()
    repo.update_price(repo.get_by_symbol(symbol).id, Decimal(price), datetime.now(timezone.utc))
    factory.commit()


async def test_open_position_is_valued(importer, factory, fx):
    await importer.import_csv(SCENARIO_CSV.encode())
    set_price(factory, "AAPL", "100")

    (holding,) = await HoldingsProjector(factory, fx).list_holdings("USD")

    assert holding.symbol == "AAPL"
    assert holding.broker == "IBKR"
    assert holding.quantity == Decimal("80")
    assert holding.price == Decimal("100")
    assert holding.exchange_rate == Decimal("1")
    assert holding.market_value == Decimal("8000")
    assert holding.total_cost == Decimal("7229.43")
    assert holding.cost_per_share == Decimal("90.367875")
    assert holding.unrealized_gain == Decimal("770.57")
    assert holding.unrealized_gain_percent == Decimal("10.66")
    assert holding.realized_gain == Decimal("498.62")
    assert holding.total_gain == Decimal("1269.19")


async def test_closed_and_unpriced_positions_are_left_out(importer, factory, fx):
    await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
        "2,2024-01-03,Sell,AAPL,10,120,0,IBKR,,",
        "3,2024-01-04,Buy,SAP,2,100,0,Degiro,,",
    ))
    set_price(factory, "AAPL", "130")

    assert await HoldingsProjector(factory, fx).list_holdings("USD") == []


async def test_position_is_listed_right_after_import(importer, factory, fx):
    await importer.import_csv(csv_bytes("1,2024-01-02,Buy,MSFT,2,350,0,IBKR,,"))

    (holding,) = await HoldingsProjector(factory, fx).list_holdings("USD")

    assert holding.symbol == "MSFT"
    assert holding.price == Decimal("400")
    assert holding.market_value == Decimal("800")
    assert holding.unrealized_gain == Decimal("100")


async def test_foreign_position_uses_current_rate(importer, factory, fx_client, fx):
    await importer.import_csv(csv_bytes("1,2024-01-02,Buy,SAP,10,100,0,Degiro,,"))
    set_price(factory, "SAP", "120")
    fx_client.rates[("EUR", "USD", None)] = Decimal("1.2")

    (holding,) = await HoldingsProjector(factory, fx).list_holdings("USD")

    assert holding.currency == "EUR"
    assert holding.base_currency == "USD"
    assert holding.exchange_rate == Decimal("1.2")
    assert holding.total_cost == Decimal("1100")
    assert holding.market_value == Decimal("1440")
    assert holding.unrealized_gain == Decimal("340")


async def test_gains_and_dividends_are_summed_per_group(importer, factory, fx):
    await importer.import_csv(csv_bytes(
        "1,2024-01-02,Buy,AAPL,10,100,0,IBKR,,",
        "2,2024-02-01,Div,AAPL,10,0.5,0,IBKR,,",
        "3,2024-02-02,Sell,AAPL,2,120,0,IBKR,,",
        "4,2024-03-01,Div,AAPL,8,0.5,0,IBKR,,",
        "5,2024-03-02,Sell,AAPL,2,90,0,IBKR,,",
        "6,2024-03-03,Buy,AAPL,5,100,0,Degiro,,",
    ))
    set_price(factory, "AAPL", "110")

    holdings = {h.broker: h for h in await HoldingsProjector(factory, fx).list_holdings("USD")}

    ibkr = holdings["IBKR"]
    assert ibkr.quantity == Decimal("6")
    assert ibkr.dividends_collected == Decimal("9")
    assert ibkr.realized_gain == Decimal("20")
    assert ibkr.total_gain == Decimal("80")
    assert holdings["Degiro"].realized_gain == 0
    assert holdings["Degiro"].dividends_collected == 0


def test_group_totals_keep_decimals():
    frame = pd.DataFrame(
        [
            (1, 1, "IBKR", Decimal("10"), Decimal("100"), Decimal("0.1"), Decimal("0")),
            (2, 1, "IBKR", Decimal("5"), Decimal("50"), Decimal("0.2"), Decimal("1.5")),
            (3, 2, "IBKR", Decimal("1"), Decimal("10"), Decimal("0"), Decimal("0")),
        ],
        columns=[
            "transaction_no", "ticker_id", "broker", "cumulative_units",
            "cumulative_cost", "realized_gains", "dividends_collected",
        ],
    )

    totals = group_totals(frame)

    assert totals[(1, "IBKR")]["realized_gain"] == Decimal("0.3")
    assert totals[(1, "IBKR")]["dividends_collected"] == Decimal("1.5")
    assert totals[(2, "IBKR")]["realized_gain"] == Decimal("0")
