"""Transactional import of ledger CSV files.

The import runs in three phases. The file is parsed and validated as a whole;
unknown instruments are resolved concurrently and stored, each in its own
short commit; then the rows are replayed in order through the FIFO calculator
and written in a single transaction that is rolled back on any failure.
"""
import asyncio
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

from portfolio_ledger.core.config import settings
from portfolio_ledger.core.errors import LedgerError, LookupFailure, PersistenceError, ProviderError
from portfolio_ledger.core.logger import logger
from portfolio_ledger.models import Ticker, TransactionType, signed_amount, signed_quantity
from portfolio_ledger.models.enums import QuoteProvider
from portfolio_ledger.models.types import QUANTUM
from portfolio_ledger.repositories.factory import RepositoryFactory
from portfolio_ledger.schemas.positions import PositionState, TransactionGains
from portfolio_ledger.schemas.ticker import TickerQuote
from portfolio_ledger.schemas.transactions import ImportSummary, LedgerRow
from portfolio_ledger.services.calc import calculate_position_state
from portfolio_ledger.services.csv_parser import CsvSource, read_ledger_csv
from portfolio_ledger.services.fx_rates_service import ExchangeRateResolver
from portfolio_ledger.services.ticker_resolver import TickerResolver

GroupKey = Tuple[int, str]


@dataclass
class GroupHistory:
    """Replay inputs of one (ticker, broker) group, oldest first."""
    amounts: List[Decimal] = field(default_factory=list)
    quantities: List[Decimal] = field(default_factory=list)
    state: PositionState = field(default_factory=PositionState)


def derive_gains(
        transaction_type: TransactionType,
        amount: Decimal,
        state: PositionState,
) -> TransactionGains:
    if transaction_type == TransactionType.SELL:
        # net proceeds, negative when fees exceed the sale value
        return TransactionGains(realized_gains=amount - state.cost_of_units_sold)
    if transaction_type == TransactionType.DIV:
        return TransactionGains(dividends_collected=amount)
    return TransactionGains()


class TransactionImporter:
    def __init__(
            self,
            factory: RepositoryFactory,
            resolver: TickerResolver,
            fx: ExchangeRateResolver,
            base_currency: str = settings.BASE_CURRENCY,
    ):
        self.factory = factory
        self.resolver = resolver
        self.fx = fx
        self.base_currency = base_currency.upper()
        self.ticker_repo = factory.get_ticker_repository()
        self.asset_repo = factory.get_asset_repository()
        self.transaction_repo = factory.get_transaction_repository()

    async def import_csv(
            self,
            source: CsvSource,
            default_provider: Optional[Union[str, QuoteProvider]] = None,
    ) -> ImportSummary:
        """
        Import a ledger CSV. Rows at or below the persisted watermark are
        skipped, so importing the same file twice is a no-op the second time.
        """
        rows = read_ledger_csv(source)
        preferred = default_provider or settings.DEFAULT_PROVIDER

        tickers, created = await self.ensure_tickers(rows, preferred)

        watermark = self.transaction_repo.get_watermark()
        summary = ImportSummary(
            rows_read=len(rows),
            tickers_created=created,
            watermark_before=watermark,
            watermark_after=watermark,
        )

        try:
            histories: Dict[GroupKey, GroupHistory] = {}
            for row in rows:
                if watermark is not None and row.transaction_no <= watermark:
                    summary.skipped += 1
                    continue
                try:
                    await self._import_row(row, tickers[row.symbol], histories)
                except LedgerError as e:
                    raise e.at_row(row.row, row.transaction_no)
                summary.imported += 1
                summary.watermark_after = row.transaction_no
            self.factory.commit()
        except Exception:
            self.factory.rollback()
            raise

        logger.info(
            f"Imported {summary.imported} transactions, skipped {summary.skipped} "
            f"(watermark {summary.watermark_before} -> {summary.watermark_after})"
        )
        return summary

    async def ensure_tickers(
            self,
            rows: List[LedgerRow],
            preferred: Union[str, QuoteProvider],
    ) -> Tuple[Dict[str, Ticker], List[str]]:
        """Map every CSV symbol to a stored ticker, resolving unknown ones."""
        pairs: Dict[str, Optional[str]] = {}
        for row in rows:
            if not pairs.get(row.symbol):
                pairs[row.symbol] = row.alt_symbol

        lookup = list(pairs) + [alt for alt in pairs.values() if alt]
        known = self.ticker_repo.get_symbol_map(lookup)

        tickers: Dict[str, Ticker] = {}
        pending: List[str] = []
        for symbol, alt in pairs.items():
            ticker = known.get(symbol) or (known.get(alt) if alt else None)
            if ticker is not None:
                tickers[symbol] = ticker
            else:
                pending.append(symbol)

        if not pending:
            return tickers, []

        logger.info(f"Resolving {len(pending)} unknown symbols: {pending}")
        results = await asyncio.gather(
            *(self._resolve_priced(symbol, pairs[symbol], preferred) for symbol in pending),
            return_exceptions=True,
        )

        quotes: Dict[str, TickerQuote] = {}
        failures: Dict[str, str] = {}
        for symbol, result in zip(pending, results):
            if isinstance(result, LookupFailure):
                failures[symbol] = str(result.failures.get(symbol) or result)
            elif isinstance(result, BaseException):
                raise result
            else:
                quotes[symbol] = result

        created: List[str] = []
        for symbol, quote in quotes.items():
            ticker, is_new = self._store_quote(quote)
            tickers[symbol] = ticker
            if is_new:
                created.append(ticker.symbol)

        if failures:
            raise LookupFailure(failures)
        return tickers, created

    async def _resolve_with_alternative(
            self,
            symbol: str,
            alt_symbol: Optional[str],
            preferred: Union[str, QuoteProvider],
    ) -> TickerQuote:
        try:
            return await self.resolver.resolve(symbol, preferred)
        except LookupFailure as primary:
            if not alt_symbol or alt_symbol == symbol:
                raise
            logger.info(f"Trying alternative symbol {alt_symbol} for {symbol}")
            try:
                return await self.resolver.resolve(alt_symbol, preferred)
            except LookupFailure as alternative:
                raise LookupFailure({symbol: f"{primary}; alternative {alternative}"}) from alternative

    async def _resolve_priced(
            self,
            symbol: str,
            alt_symbol: Optional[str],
            preferred: Union[str, QuoteProvider],
    ) -> TickerQuote:
        """Resolve a new instrument and seed its price so it is valued right after import."""
        quote = await self._resolve_with_alternative(symbol, alt_symbol, preferred)
        try:
            price = await self.resolver.latest_price(quote.symbol, quote.provider)
        except ProviderError as e:
            logger.warning(f"No initial price for {quote.symbol}, left for the next refresh: {e}")
            return quote
        return quote.model_copy(update={"last_price": price.quantize(QUANTUM)})

    def _store_quote(self, quote: TickerQuote) -> Tuple[Ticker, bool]:
        """Insert-or-ignore one resolved instrument in its own short transaction."""
        existing = self.ticker_repo.get_by_symbol(quote.symbol)
        if existing is not None:
            return existing, False
        try:
            asset = self.asset_repo.get_or_create(quote)
            ticker = self.ticker_repo.insert_quote(quote, asset)
            self.factory.commit()
        except PersistenceError:
            self.factory.rollback()
            raise
        logger.info(f"Stored ticker {ticker.symbol} ({quote.provider.value}, {ticker.currency})")
        return ticker, True

    def _history(self, key: GroupKey, histories: Dict[GroupKey, GroupHistory]) -> GroupHistory:
        if key not in histories:
            history = GroupHistory()
            for tx in self.transaction_repo.get_history(*key):
                if tx.type == TransactionType.DIV:
                    continue
                history.amounts.append(tx.amount)
                history.quantities.append(tx.signed_quantity)
                history.state = PositionState(
                    cumulative_units=tx.cumulative_units,
                    cumulative_cost=tx.cumulative_cost,
                )
            histories[key] = history
        return histories[key]

    async def _import_row(
            self,
            row: LedgerRow,
            ticker: Ticker,
            histories: Dict[GroupKey, GroupHistory],
    ) -> None:
        price, fees = row.price, row.fees
        row_currency = row.currency or ticker.currency
        if row_currency != ticker.currency:
            conversion = await self.fx.rate(ticker.currency, row_currency, row.date)
            price, fees = price * conversion, fees * conversion
        # storage precision, so in-run and stored replays agree
        price, fees = price.quantize(QUANTUM), fees.quantize(QUANTUM)

        exchange_rate = self.transaction_repo.get_exchange_rate(row.transaction_no)
        if exchange_rate is None:
            rate = await self.fx.rate(self.base_currency, ticker.currency, row.date)
            exchange_rate = rate.quantize(QUANTUM)

        amount = signed_amount(row.transaction_type, price, row.quantity, fees, exchange_rate)
        history = self._history((ticker.id, row.broker), histories)

        if row.transaction_type == TransactionType.DIV:
            state = PositionState(
                cumulative_units=history.state.cumulative_units,
                cumulative_cost=history.state.cumulative_cost,
            )
        else:
            quantity = signed_quantity(row.transaction_type, row.quantity)
            state = calculate_position_state(
                history.amounts + [amount],
                history.quantities + [quantity],
            )
            history.amounts.append(amount)
            history.quantities.append(quantity)
            history.state = state

        gains = derive_gains(row.transaction_type, amount, state)

        self.transaction_repo.insert_transaction({
            "transaction_no": row.transaction_no,
            "date": row.date,
            "transaction_type": row.transaction_type.value,
            "ticker_id": ticker.id,
            "broker": row.broker,
            "currency": ticker.currency,
            "exchange_rate": exchange_rate,
            "quantity": row.quantity,
            "price": price,
            "fees": fees,
            **state.model_dump(),
            **gains.model_dump(),
        })

    def purge_from(self, transaction_no: int) -> int:
        """Delete the ledger tail starting at ``transaction_no``."""
        try:
            deleted = self.transaction_repo.delete_from(transaction_no)
            self.factory.commit()
        except PersistenceError:
            self.factory.rollback()
            raise
        logger.info(f"Purged {deleted} transactions from #{transaction_no}")
        return deleted

    def reset_ledger(self, clear_assets: bool = False) -> Dict[str, int]:
        """Delete every transaction, and with ``clear_assets`` every ticker and asset."""
        try:
            counts = {"transactions": self.transaction_repo.delete_all()}
            if clear_assets:
                counts["tickers"] = self.ticker_repo.delete_all()
                counts["assets"] = self.asset_repo.delete_all()
            self.factory.commit()
        except PersistenceError:
            self.factory.rollback()
            raise
        logger.info(f"Ledger reset: {counts}")
        return counts
