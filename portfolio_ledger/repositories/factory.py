from typing import Type, TypeVar, Dict
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from portfolio_ledger.core.errors import PersistenceError
from portfolio_ledger.core.logger import logger
from portfolio_ledger.repositories.base import BaseRepository
from portfolio_ledger.repositories.ticker import AssetRepository, TickerRepository
from portfolio_ledger.repositories.transactions import TransactionRepository

T = TypeVar('T', bound=BaseRepository)


class RepositoryFactory:
    """
    Factory class for creating repository instances with dependency injection.
    Provides a centralized way to manage repository creation and configuration.
    """

    _repository_mapping: Dict[str, Type[BaseRepository]] = {
        'assets': AssetRepository,
        'transactions': TransactionRepository,
        'ticker': TickerRepository,
    }

    def __init__(self, db: Session):
        self.db = db
        self._instances: Dict[str, BaseRepository] = {}

    def get_repository(self, repository_name: str) -> BaseRepository:
        """
        Get a repository instance by name. Creates a singleton instance per factory.

        Args:
            repository_name: Name of the repository ('assets', 'transactions', 'ticker')

        Returns:
            Repository instance

        Raises:
            ValueError: If repository name is not recognized
        """
        if repository_name not in self._repository_mapping:
            available = ', '.join(self._repository_mapping.keys())
            raise ValueError(f"Unknown repository '{repository_name}'. Available: {available}")

        if repository_name not in self._instances:
            repository_class = self._repository_mapping[repository_name]
            self._instances[repository_name] = repository_class(self.db)

        return self._instances[repository_name]

    def get_asset_repository(self) -> AssetRepository:
        """Get AssetRepository instance"""
        return self.get_repository('assets')

    def get_transaction_repository(self) -> TransactionRepository:
        """Get TransactionRepository instance"""
        return self.get_repository('transactions')

    def get_ticker_repository(self) -> TickerRepository:
        """Get TickerRepository instance"""
        return self.get_repository('ticker')

    def commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Commit failed: {e}")
            raise PersistenceError("Failed to commit") from e

    def rollback(self) -> None:
        self.db.rollback()
