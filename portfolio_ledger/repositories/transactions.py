from typing import List, Dict, Optional, Tuple
from datetime import date
from decimal import Decimal

import pandas as pd
from sqlalchemy.orm import joinedload, Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import func, select, delete
from portfolio_ledger.core.errors import PersistenceError
from portfolio_ledger.models import Ticker, Transaction
from portfolio_ledger.repositories.base import BaseRepository
import logging

logger = logging.getLogger(__name__)

SNAPSHOT_COLUMNS = [
    "transaction_no",
    "ticker_id",
    "broker",
    "cumulative_units",
    "cumulative_cost",
    "realized_gains",
    "dividends_collected",
]


class TransactionRepository(BaseRepository[Transaction]):
    def __init__(self, db: Session):
        super().__init__(db, Transaction)

    def get_watermark(self) -> Optional[int]:
        """Highest persisted transaction number, None on an empty ledger."""
        try:
            return self.db.execute(select(func.max(Transaction.transaction_no))).scalar()
        except SQLAlchemyError as e:
            logger.error(f"Error getting transaction watermark: {e}")
            raise PersistenceError("Failed to get transaction watermark") from e

    def get_exchange_rate(self, transaction_no: int) -> Optional[Decimal]:
        """Rate fixed when ``transaction_no`` was first imported, if any."""
        try:
            return self.db.execute(
                select(Transaction.exchange_rate).where(Transaction.transaction_no == transaction_no)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error getting exchange rate of transaction {transaction_no}: {e}")
            raise PersistenceError("Failed to get transaction exchange rate") from e

    def get_history(self, ticker_id: int, broker: str) -> List[Transaction]:
        """All transactions of one (ticker, broker) group in replay order."""
        try:
            return list(
                self.db.execute(
                    select(Transaction)
                    .where(Transaction.ticker_id == ticker_id, Transaction.broker == broker)
                    .order_by(Transaction.transaction_no)
                ).scalars()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error getting history of ticker {ticker_id} at {broker}: {e}")
            raise PersistenceError("Failed to get transaction history") from e

    def get_latest_per_group(self) -> Dict[Tuple[int, str], Transaction]:
        """Latest transaction for each (ticker, broker), by transaction number."""
        try:
            latest = (
                select(
                    Transaction.ticker_id,
                    Transaction.broker,
                    func.max(Transaction.transaction_no).label("max_no"),
                )
                .group_by(Transaction.ticker_id, Transaction.broker)
                .subquery()
            )
            rows = self.db.execute(
                select(Transaction)
                .join(latest, Transaction.transaction_no == latest.c.max_no)
                .options(joinedload(Transaction.ticker))
                .order_by(Transaction.transaction_no.desc())
            ).scalars().all()
            return {(row.ticker_id, row.broker): row for row in rows}
        except SQLAlchemyError as e:
            logger.error(f"Error getting latest transactions: {e}")
            raise PersistenceError("Failed to get latest transactions") from e

    def get_snapshots_frame(self) -> pd.DataFrame:
        """Cached position snapshots of every transaction as a DataFrame."""
        try:
            rows = self.db.execute(
                select(*[getattr(Transaction, c) for c in SNAPSHOT_COLUMNS])
                .order_by(Transaction.transaction_no)
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Error loading transaction snapshots: {e}")
            raise PersistenceError("Failed to load transaction snapshots") from e
        return pd.DataFrame([tuple(r) for r in rows], columns=SNAPSHOT_COLUMNS)

    def get_by_filters(
            self,
            symbol: Optional[str] = None,
            broker: Optional[str] = None,
            transaction_type: Optional[str] = None,
            date_from: Optional[date] = None,
            date_to: Optional[date] = None,
            **kwargs
    ) -> List[Transaction]:
        """
        Transactions filtered by symbol, broker, type and date range.
        """
        try:
            query = self.db.query(Transaction).options(joinedload(Transaction.ticker))

            if symbol:
                query = query.join(Transaction.ticker).filter(Ticker.symbol == symbol.strip().upper())

            if broker:
                query = query.filter(Transaction.broker == broker)

            if transaction_type:
                query = query.filter(Transaction.transaction_type == transaction_type)

            if date_from:
                query = query.filter(Transaction.date >= date_from)

            if date_to:
                query = query.filter(Transaction.date <= date_to)

            return query.order_by(Transaction.transaction_no).all()

        except SQLAlchemyError as e:
            logger.error(f"Error filtering transactions: {e}")
            raise PersistenceError("Failed to filter transactions") from e

    def insert_transaction(self, row: Dict) -> int:
        """Insert-or-ignore keyed by transaction number. Returns rows written."""
        return self.insert_ignore([row], index_elements=["transaction_no"])

    def delete_from(self, transaction_no: int) -> int:
        """Delete every transaction numbered ``transaction_no`` or later."""
        try:
            result = self.db.execute(
                delete(Transaction).where(Transaction.transaction_no >= transaction_no)
            )
            self.db.flush()
            return int(result.rowcount or 0)
        except SQLAlchemyError as e:
            logger.error(f"Error deleting transactions from {transaction_no}: {e}")
            raise PersistenceError(f"Failed to delete transactions from {transaction_no}") from e
