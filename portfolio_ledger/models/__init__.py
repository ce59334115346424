from portfolio_ledger.models.asset import Asset
from portfolio_ledger.models.ticker import Ticker
from portfolio_ledger.models.transaction import Transaction, signed_amount, signed_quantity
from portfolio_ledger.models.enums import AssetType, QuoteProvider, TransactionType

__all__ = [
    "Asset",
    "Ticker",
    "Transaction",
    "AssetType",
    "QuoteProvider",
    "TransactionType",
    "signed_amount",
    "signed_quantity",
]
