from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from portfolio_ledger.api.dependencies import get_factory, get_importer
from portfolio_ledger.api.errors import to_http_exception
from portfolio_ledger.core.errors import LedgerError
from portfolio_ledger.core.logger import logger
from portfolio_ledger.models.enums import TransactionType
from portfolio_ledger.repositories.factory import RepositoryFactory
from portfolio_ledger.schemas.transactions import TransactionsOut
from portfolio_ledger.services.import_service import TransactionImporter

router = APIRouter()


@router.get("/", response_model=List[TransactionsOut])
def list_transactions(
        symbol: Optional[str] = None,
        broker: Optional[str] = None,
        type: Optional[TransactionType] = Query(default=None, description="Buy/Sell/Div"),
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        factory: RepositoryFactory = Depends(get_factory),
):
    """Get transactions filtered by optional parameters."""
    try:
        repo = factory.get_transaction_repository()
        return repo.get_by_filters(
            symbol=symbol,
            broker=broker,
            transaction_type=type.value if type else None,
            date_from=date_from,
            date_to=date_to,
        )
    except LedgerError as e:
        logger.error(f"list_transactions failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to list transactions")


@router.delete("/")
def delete_transactions(
        from_no: Optional[int] = Query(default=None, ge=0, description="First transaction number to delete"),
        clear_assets: bool = Query(default=False, description="Also delete tickers and assets on a full reset"),
        importer: TransactionImporter = Depends(get_importer),
):
    """
    Delete the ledger tail starting at ``from_no`` so a corrected file can be
    re-imported from that point. Without ``from_no`` the whole ledger is reset.
    """
    try:
        if from_no is not None:
            return {"status": "ok", "deleted": {"transactions": importer.purge_from(from_no)}}
        return {"status": "ok", "deleted": importer.reset_ledger(clear_assets=clear_assets)}
    except LedgerError as e:
        logger.error(f"delete_transactions failed: {e}", exc_info=True)
        raise to_http_exception(e)
