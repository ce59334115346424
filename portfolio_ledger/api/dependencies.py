from fastapi import Depends
from sqlalchemy.orm import Session

from portfolio_ledger.core.db import get_db
from portfolio_ledger.repositories.factory import RepositoryFactory
from portfolio_ledger.services import build_fx_resolver, build_ticker_resolver
from portfolio_ledger.services.fx_rates_service import ExchangeRateResolver
from portfolio_ledger.services.holdings_service import HoldingsProjector
from portfolio_ledger.services.import_service import TransactionImporter
from portfolio_ledger.services.market_data import PriceRefresher
from portfolio_ledger.services.ticker_resolver import TickerResolver


def get_factory(db: Session = Depends(get_db)) -> RepositoryFactory:
    return RepositoryFactory(db)


def get_ticker_resolver() -> TickerResolver:
    return build_ticker_resolver()


def get_fx_resolver() -> ExchangeRateResolver:
    return build_fx_resolver()


def get_importer(
        factory: RepositoryFactory = Depends(get_factory),
        resolver: TickerResolver = Depends(get_ticker_resolver),
        fx: ExchangeRateResolver = Depends(get_fx_resolver),
) -> TransactionImporter:
    return TransactionImporter(factory, resolver, fx)


def get_refresher(
        factory: RepositoryFactory = Depends(get_factory),
        resolver: TickerResolver = Depends(get_ticker_resolver),
) -> PriceRefresher:
    return PriceRefresher(factory, resolver)


def get_projector(
        factory: RepositoryFactory = Depends(get_factory),
        fx: ExchangeRateResolver = Depends(get_fx_resolver),
) -> HoldingsProjector:
    return HoldingsProjector(factory, fx)
