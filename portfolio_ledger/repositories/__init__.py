from portfolio_ledger.repositories.base import BaseRepository
from portfolio_ledger.repositories.ticker import AssetRepository, TickerRepository
from portfolio_ledger.repositories.transactions import TransactionRepository
from portfolio_ledger.repositories.factory import RepositoryFactory

__all__ = [
    "BaseRepository",
    "AssetRepository",
    "TickerRepository",
    "TransactionRepository",
    "RepositoryFactory",
]
