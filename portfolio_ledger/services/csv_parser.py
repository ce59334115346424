from decimal import Decimal, InvalidOperation
from io import StringIO
from pathlib import Path
from typing import IO, List, Optional, Tuple, Union

import dateparser
import pandas as pd

from portfolio_ledger.core.errors import ParseError
from portfolio_ledger.core.logger import logger
from portfolio_ledger.models.enums import TransactionType
from portfolio_ledger.schemas.transactions import LedgerRow

LEDGER_COLUMNS = [
    "transaction_no",
    "date",
    "type",
    "symbol",
    "quantity",
    "price",
    "fees",
    "broker",
    "alt_symbol",
    "currency",
]

DATE_SETTINGS = {"DATE_ORDER": "YMD", "STRICT_PARSING": True}

CsvSource = Union[str, Path, bytes, IO]


def _cell(value) -> str:
    # pandas leaves NaN for fields missing at the end of a short line
    return value.strip() if isinstance(value, str) else ""


def _decimal(value: str, field: str) -> Decimal:
    try:
        result = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"invalid {field} '{value}'")
    if not result.is_finite():
        raise ValueError(f"invalid {field} '{value}'")
    return result


def _read_frame(source: CsvSource) -> pd.DataFrame:
    if isinstance(source, bytes):
        source = StringIO(source.decode("utf-8-sig"))
    try:
        return pd.read_csv(
            source,
            header=0,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
        )
    except pd.errors.EmptyDataError:
        raise ParseError([(0, "file is empty")])
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ParseError([(0, f"unreadable CSV: {e}")])


def parse_row(row: int, values: Tuple) -> LedgerRow:
    """Validate one data line. Raises ValueError describing the first problem."""
    cells = dict(zip(LEDGER_COLUMNS, (_cell(v) for v in values)))

    raw_no = cells["transaction_no"]
    if not raw_no.isdigit():
        raise ValueError(f"invalid transaction number '{raw_no}'")

    parsed_date = dateparser.parse(cells["date"], settings=DATE_SETTINGS) if cells["date"] else None
    if parsed_date is None:
        raise ValueError(f"invalid date '{cells['date']}'")

    transaction_type = TransactionType.parse(cells["type"])

    symbol = cells["symbol"].upper()
    if not symbol:
        raise ValueError("symbol is empty")

    quantity = _decimal(cells["quantity"], "quantity")
    if quantity == 0:
        raise ValueError("quantity is zero")
    if quantity < 0:
        raise ValueError(f"quantity must be positive, got {quantity}")

    price = _decimal(cells["price"], "price")
    fees = _decimal(cells["fees"] or "0", "fees")
    if price < 0 or fees < 0:
        raise ValueError("price and fees must not be negative")

    broker = cells["broker"]
    if not broker:
        raise ValueError("broker is empty")

    return LedgerRow(
        row=row,
        transaction_no=int(raw_no),
        date=parsed_date.date(),
        transaction_type=transaction_type,
        symbol=symbol,
        quantity=quantity,
        price=price,
        fees=fees,
        broker=broker,
        alt_symbol=cells["alt_symbol"].upper() or None,
        currency=cells["currency"].upper() or None,
    )


def read_ledger_csv(source: CsvSource) -> List[LedgerRow]:
    """
    Parse a ledger CSV into validated rows.

    The first line is a header and columns are read by position. Every data
    line is checked before anything is returned; all problems are reported
    together in one ParseError. Row numbers are 1-based data line numbers.
    """
    df = _read_frame(source)
    if len(df.columns) < len(LEDGER_COLUMNS):
        raise ParseError([(0, f"expected {len(LEDGER_COLUMNS)} columns, found {len(df.columns)}")])

    rows: List[LedgerRow] = []
    issues: List[Tuple[int, str]] = []
    previous_no: Optional[int] = None

    for i, values in enumerate(df.iloc[:, :len(LEDGER_COLUMNS)].itertuples(index=False, name=None), start=1):
        try:
            record = parse_row(i, values)
        except ValueError as e:
            issues.append((i, str(e)))
            continue

        if previous_no is not None and record.transaction_no <= previous_no:
            issues.append((i, f"transaction number {record.transaction_no} is not above {previous_no}"))
            continue
        previous_no = record.transaction_no
        rows.append(record)

    if issues:
        logger.warning(f"Rejected ledger CSV with {len(issues)} malformed rows")
        raise ParseError(issues)

    logger.debug(f"Parsed {len(rows)} ledger rows")
    return rows
