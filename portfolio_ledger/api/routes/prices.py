from fastapi import APIRouter, Depends, HTTPException

from portfolio_ledger.api.dependencies import get_refresher
from portfolio_ledger.api.errors import to_http_exception
from portfolio_ledger.core.errors import LedgerError
from portfolio_ledger.core.logger import logger
from portfolio_ledger.schemas.prices import RefreshReport
from portfolio_ledger.services.market_data import PriceRefresher
from portfolio_ledger.tasks.refresh import refresh_market_data_task

router = APIRouter()


@router.post("/refresh", response_model=RefreshReport)
async def refresh_prices(refresher: PriceRefresher = Depends(get_refresher)):
    """Refresh the latest price of every ticker now."""
    try:
        return await refresher.refresh_all()
    except LedgerError as e:
        logger.warning(f"refresh_prices finished with errors: {e}")
        raise to_http_exception(e)


@router.post("/refresh/async")
def refresh_prices_async():
    """
    Trigger a background task to refresh market data for all tickers.
    """
    try:
        task = refresh_market_data_task.delay()
        return {
            "status": "success",
            "message": "Market data refresh has been queued.",
            "task_id": task.id
        }
    except Exception as e:
        logger.error(f"Failed to queue refresh_market_data task: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to queue market data refresh")
