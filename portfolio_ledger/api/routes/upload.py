from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from portfolio_ledger.api.dependencies import get_importer
from portfolio_ledger.api.errors import to_http_exception
from portfolio_ledger.core.errors import LedgerError
from portfolio_ledger.core.logger import logger
from portfolio_ledger.models.enums import QuoteProvider
from portfolio_ledger.schemas.transactions import ImportSummary
from portfolio_ledger.services.import_service import TransactionImporter

router = APIRouter()


@router.post("/transactions/csv", response_model=ImportSummary)
async def upload_transactions_csv(
        file: UploadFile = File(...),
        provider: Optional[QuoteProvider] = Query(default=None, description="Provider tried first for new symbols"),
        importer: TransactionImporter = Depends(get_importer),
):
    """transaction_no, date, type, symbol, quantity, price, fees, broker, alt_symbol, currency"""
    content = await file.read()
    try:
        return await importer.import_csv(content, default_provider=provider)
    except LedgerError as e:
        logger.warning(f"upload_transactions_csv rejected {file.filename}: {e}")
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"upload_transactions_csv failed: {e}", exc_info=True)
        raise HTTPException(500, detail="Failed to upload transactions CSV")
