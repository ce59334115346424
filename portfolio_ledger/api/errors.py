from fastapi import HTTPException

from portfolio_ledger.core.errors import (
    AccountingError,
    LedgerError,
    LookupFailure,
    ParseError,
    PartialRefreshFailure,
    PersistenceError,
    ProviderError,
    RateUnavailable,
)


def _location(error: LedgerError) -> dict:
    if error.row is None:
        return {}
    return {"row": error.row, "transaction_no": error.transaction_no}


def to_http_exception(error: LedgerError) -> HTTPException:
    """Map a ledger error to an HTTP error with a JSON detail."""
    if isinstance(error, ParseError):
        return HTTPException(400, detail={
            "error": "parse_error",
            "message": str(error),
            "rows": [{"row": row, "message": message} for row, message in error.issues],
        })
    if isinstance(error, LookupFailure):
        return HTTPException(422, detail={
            "error": "lookup_failure",
            "message": str(error),
            "symbols": error.failures,
        })
    if isinstance(error, AccountingError):
        return HTTPException(422, detail={
            "error": "accounting_error", "message": str(error), "row": error.row, "transaction_no": error.transaction_no,
        })
    if isinstance(error, PartialRefreshFailure):
        return HTTPException(502, detail={
            "error": "partial_refresh_failure",
            "message": str(error),
            "failed": error.failures,
            "updated": error.updated,
        })
    if isinstance(error, (RateUnavailable, ProviderError)):
        return HTTPException(502, detail={
            "error": "upstream_unavailable", "message": str(error), **_location(error),
        })
    if isinstance(error, PersistenceError):
        return HTTPException(500, detail={
            "error": "persistence_error", "message": str(error), **_location(error),
        })
    return HTTPException(500, detail={"error": "ledger_error", "message": str(error)})
