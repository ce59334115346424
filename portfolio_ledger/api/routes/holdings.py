from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from portfolio_ledger.api.dependencies import get_projector
from portfolio_ledger.api.errors import to_http_exception
from portfolio_ledger.core.errors import LedgerError
from portfolio_ledger.core.logger import logger
from portfolio_ledger.schemas.holdings import HoldingOut
from portfolio_ledger.services.holdings_service import HoldingsProjector

router = APIRouter()


@router.get("/", response_model=List[HoldingOut])
async def list_holdings(
        base_currency: Optional[str] = Query(default=None, min_length=3, max_length=3),
        projector: HoldingsProjector = Depends(get_projector),
):
    """Open positions valued at the latest stored prices and current FX rates."""
    try:
        return await projector.list_holdings(base_currency)
    except LedgerError as e:
        logger.error(f"list_holdings failed: {e}")
        raise to_http_exception(e)
