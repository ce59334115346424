from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Union

from portfolio_ledger.clients.base import QuoteClient
from portfolio_ledger.core.errors import ProviderError, TickerNotFound
from portfolio_ledger.core.logger import logger
from portfolio_ledger.models.enums import QuoteProvider
from portfolio_ledger.schemas.ticker import TickerQuote

# payload shapes an adapter did not anticipate
MAPPING_ERRORS = (AttributeError, KeyError, IndexError, TypeError, ValueError)


class TickerResolver:
    """Resolves a symbol by walking the quote providers in priority order.

    The preferred provider is tried first, then every other configured provider
    in ``priority`` order. Providers missing from ``clients`` are skipped.
    """

    def __init__(
            self,
            clients: Mapping[QuoteProvider, QuoteClient],
            priority: Iterable[Union[str, QuoteProvider]],
    ):
        self.clients = dict(clients)
        self.priority: List[QuoteProvider] = []
        for name in priority:
            provider = QuoteProvider.parse(name)
            if provider not in self.priority:
                self.priority.append(provider)
        for provider in self.clients:
            if provider not in self.priority:
                self.priority.append(provider)

    def order(self, preferred: Optional[Union[str, QuoteProvider]] = None) -> List[QuoteProvider]:
        chain = [p for p in self.priority if p in self.clients]
        if preferred is not None:
            preferred = QuoteProvider.parse(preferred)
            if preferred in self.clients:
                chain.remove(preferred)
                chain.insert(0, preferred)
        return chain

    async def resolve(
            self,
            symbol: str,
            preferred_provider: Optional[Union[str, QuoteProvider]] = None,
    ) -> TickerQuote:
        """First successful provider wins; TickerNotFound carries every failure."""
        symbol = symbol.strip().upper()
        causes: Dict[str, str] = {}

        for provider in self.order(preferred_provider):
            client = self.clients[provider]
            try:
                quote = await client.search(symbol)
            except ProviderError as e:
                logger.info(f"{provider.value} could not resolve {symbol}: {e.message}")
                causes[provider.value] = e.message
                continue
            except MAPPING_ERRORS as e:
                logger.warning(f"{provider.value} returned an unreadable result for {symbol}: {e!r}")
                causes[provider.value] = f"unreadable result: {e!r}"
                continue

            if quote is None or not quote.currency:
                causes[provider.value] = "empty result"
                continue

            if quote.provider != provider:
                quote = quote.model_copy(update={"provider": provider})
            logger.debug(f"Resolved {symbol} via {provider.value}")
            return quote

        raise TickerNotFound(symbol, causes)

    async def latest_price(self, symbol: str, provider: Union[str, QuoteProvider]) -> Decimal:
        """Latest price from the provider the ticker is bound to."""
        provider = QuoteProvider.parse(provider)
        client = self.clients.get(provider)
        if client is None:
            raise ProviderError(provider.value, "provider is not configured")
        price = await client.latest_price(symbol)
        if price is None or price <= 0:
            raise ProviderError(provider.value, f"no usable price for {symbol}")
        return price
