import asyncio
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from portfolio_ledger.clients.base import FxClient
from portfolio_ledger.core.errors import ProviderError, RateUnavailable
from portfolio_ledger.core.logger import logger

ONE = Decimal("1")


class ExchangeRateResolver:
    """Resolves conversion multipliers from a list of FX sources.

    ``rate(base, quote, as_of)`` returns ``r`` with
    ``amount_in_quote * r == amount_in_base``. Sources are tried in order and
    the first answer wins. Results are memoized for the lifetime of the
    resolver, which is meant to live for one import or one refresh.
    """

    def __init__(self, sources: Sequence[FxClient]):
        self.sources = list(sources)
        self._memo: Dict[Tuple[str, str, Optional[date]], Decimal] = {}

    async def rate(self, base_currency: str, quote_currency: str, as_of: Optional[date]) -> Decimal:
        """Multiplier from ``quote_currency`` into ``base_currency``; ``as_of=None`` means now."""
        base = base_currency.strip().upper()
        quote = quote_currency.strip().upper()
        if base == quote:
            return ONE

        key = (base, quote, as_of)
        if key in self._memo:
            return self._memo[key]

        causes: List[str] = []
        for source in self.sources:
            try:
                value = await source.rate(quote, base, as_of)
            except ProviderError as e:
                logger.info(f"FX source {source.name} failed for {quote}->{base} on {as_of}: {e.message}")
                causes.append(str(e))
                continue
            if value <= 0:
                causes.append(f"{source.name}: non-positive rate {value}")
                continue
            self._memo[key] = value
            return value

        raise RateUnavailable(base, quote, as_of, "; ".join(causes) or "no FX sources configured")

    async def to_base(self, amount: Decimal, base_currency: str, quote_currency: str, as_of: Optional[date]) -> Decimal:
        return amount * await self.rate(base_currency, quote_currency, as_of)


class ExchangeRateCache:
    """"As of now" multipliers into one base currency, built per request.

    Distinct from the transaction-date rates fixed at import time.
    """

    def __init__(self, base_currency: str, rates: Dict[str, Decimal]):
        self.base_currency = base_currency.upper()
        self._rates = dict(rates)
        self._rates[self.base_currency] = ONE

    @classmethod
    async def build(
            cls,
            resolver: ExchangeRateResolver,
            base_currency: str,
            currencies: Iterable[str],
    ) -> "ExchangeRateCache":
        """Resolve every currency concurrently, then fold the results."""
        base = base_currency.upper()
        wanted = sorted({c.upper() for c in currencies if c and c.upper() != base})
        results = await asyncio.gather(
            *(resolver.rate(base, currency, None) for currency in wanted),
            return_exceptions=True,
        )

        rates: Dict[str, Decimal] = {}
        for currency, result in zip(wanted, results):
            if isinstance(result, RateUnavailable):
                logger.warning(f"No current rate for {currency}->{base}: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            rates[currency] = result
        return cls(base, rates)

    def to_base(self, currency: str) -> Decimal:
        try:
            return self._rates[currency.upper()]
        except KeyError:
            raise RateUnavailable(self.base_currency, currency.upper(), None, "not in current rate cache")

    def __contains__(self, currency: str) -> bool:
        return currency.upper() in self._rates
