"""Error taxonomy of the ledger engine.

Every error raised by the import, resolution and refresh pipelines derives
from ``LedgerError`` so the HTTP layer can map the whole family at once.
"""
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple


class LedgerError(Exception):
    """Base class for ledger errors"""
    row: Optional[int] = None
    transaction_no: Optional[int] = None

    def at_row(self, row: int, transaction_no: Optional[int] = None) -> "LedgerError":
        """Attach the CSV row (and transaction number) the error was raised for."""
        self.row = row
        self.transaction_no = transaction_no
        where = f"row {row}" if transaction_no is None else f"row {row} (transaction #{transaction_no})"
        self.args = (f"{where}: {self}",)
        return self


class ProviderError(LedgerError):
    """A single quote/FX provider call failed (transport, status, payload)."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class ParseError(LedgerError):
    """One or more CSV rows are malformed. Rows are 1-based data row numbers."""

    def __init__(self, issues: Sequence[Tuple[int, str]]):
        self.issues: List[Tuple[int, str]] = list(issues)
        details = "; ".join(f"row {row}: {message}" for row, message in self.issues)
        super().__init__(f"Malformed CSV input ({len(self.issues)} rows): {details}")

    @property
    def rows(self) -> List[int]:
        return [row for row, _ in self.issues]


class LookupFailure(LedgerError):
    """No provider resolved one or more symbols."""

    def __init__(self, failures: Dict[str, str]):
        self.failures = dict(failures)
        details = "; ".join(f"{symbol} ({cause})" for symbol, cause in self.failures.items())
        super().__init__(f"Could not resolve {len(self.failures)} symbol(s): {details}")

    @property
    def symbols(self) -> List[str]:
        return list(self.failures)


class TickerNotFound(LookupFailure):
    """Every configured provider failed or returned nothing for ``symbol``."""

    def __init__(self, symbol: str, causes: Dict[str, str]):
        self.symbol = symbol
        self.causes = dict(causes)
        reason = ", ".join(f"{provider}: {cause}" for provider, cause in self.causes.items())
        super().__init__({symbol: reason or "no providers configured"})


class RateUnavailable(LedgerError):
    """No FX source returned a rate for the requested pair and date."""

    def __init__(self, base: str, quote: str, as_of: Optional[date], cause: str = ""):
        self.base = base
        self.quote = quote
        self.as_of = as_of
        when = as_of.isoformat() if as_of else "latest"
        message = f"No exchange rate {quote}->{base} for {when}"
        super().__init__(f"{message}: {cause}" if cause else message)


class AccountingError(LedgerError):
    """The FIFO replay received input that breaks its invariants."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidInput(AccountingError):
    pass


class PersistenceError(LedgerError):
    """Database I/O or constraint violation"""
    pass


class PartialRefreshFailure(LedgerError):
    """Some tickers could not be refreshed; the rest were updated."""

    def __init__(self, failures: Dict[str, str], updated: Sequence[str]):
        self.failures = dict(failures)
        self.updated = list(updated)
        details = "; ".join(f"{symbol}: {cause}" for symbol, cause in self.failures.items())
        super().__init__(
            f"Price refresh failed for {len(self.failures)} ticker(s), "
            f"{len(self.updated)} updated: {details}"
        )
