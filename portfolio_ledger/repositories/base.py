from typing import Generic, TypeVar, Type, List, Dict, Any, Sequence
from slugify import slugify

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.dialects import postgresql, sqlite
from portfolio_ledger.core.db import Base
from portfolio_ledger.core.errors import PersistenceError
from portfolio_ledger.core.logger import logger

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Query helpers over one model.

    Repositories only flush. The calling service owns the unit of work and
    decides when to commit or roll back.
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model

    def delete_all(self) -> int:
        """Delete all records"""
        try:
            deleted = self.db.query(self.model).delete(synchronize_session=False)
            self.db.flush()
            return int(deleted or 0)
        except SQLAlchemyError as e:
            logger.error(f"Error deleting all {self.model.__name__}: {e}")
            raise PersistenceError(f"Failed to delete all {self.model.__name__}") from e

    @staticmethod
    def _snakeify(s: str) -> str:
        if not isinstance(s, str):
            return s
        s = s.strip()
        return slugify(s, separator="_", lowercase=True)

    @staticmethod
    def normalize_header(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [{BaseRepository._snakeify(k): v for k, v in rec.items()} for rec in rows]

    def _validate_data(self, rows: List[Dict]) -> List[Dict]:
        """Normalizes headers and drops keys that are not columns of the model."""
        if not rows:
            return []
        rows = self.normalize_header(rows)

        model_columns = set(column.name for column in self.model.__table__.columns)

        validated_rows = []
        for i, row in enumerate(rows):
            valid_row = {}
            for key, value in row.items():
                if key in model_columns:
                    valid_row[key] = value
                else:
                    logger.debug(f"Row {i}: ignoring field '{key}' not in model {self.model.__name__}")

            if valid_row:
                validated_rows.append(valid_row)
            else:
                logger.warning(f"Row {i} has no valid fields for model {self.model.__name__}")

        return validated_rows

    def _insert(self):
        """Dialect-specific INSERT so ON CONFLICT is available."""
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(self.model)
        if dialect == "sqlite":
            return sqlite.insert(self.model)
        raise PersistenceError(f"Insert-or-ignore is not supported on dialect '{dialect}'")

    def insert_ignore(
            self,
            data: Sequence[Dict],
            index_elements: List[str],
    ) -> int:
        """Bulk insert, silently skipping rows that collide on ``index_elements``."""
        if not data:
            return 0

        try:
            data = self._validate_data(list(data))
            if not data:
                return 0

            stmt = self._insert().values(data).on_conflict_do_nothing(index_elements=index_elements)
            result = self.db.execute(stmt)
            self.db.flush()

            return int(result.rowcount or 0)

        except SQLAlchemyError as e:
            logger.error(f"Error inserting {self.model.__name__}: {e}")
            raise PersistenceError(f"Failed to insert {self.model.__name__}") from e
