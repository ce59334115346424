import asyncio

from portfolio_ledger.core.celery_app import celery
from portfolio_ledger.core.db import SessionLocal
from portfolio_ledger.core.errors import PartialRefreshFailure
from portfolio_ledger.core.logger import logger
from portfolio_ledger.repositories import RepositoryFactory
from portfolio_ledger.services import build_ticker_resolver
from portfolio_ledger.services.market_data import PriceRefresher


@celery.task(name="portfolio_ledger.tasks.refresh.refresh_market_data_task")
def refresh_market_data_task():
    logger.info("Starting scheduled market data refresh.")

    db = SessionLocal()

    try:
        refresher = PriceRefresher(RepositoryFactory(db), build_ticker_resolver())
        report = asyncio.run(refresher.refresh_all())
        logger.info("Market data refresh complete.")
        return {"updated": [u.symbol for u in report.updated], "failed": {}}
    except PartialRefreshFailure as e:
        logger.warning(f"Market data refresh incomplete: {e}")
        return {"updated": e.updated, "failed": e.failures}
    except Exception as e:
        logger.error(f"Market data refresh failed: {e}", exc_info=True)
        raise
    finally:
        db.close()
