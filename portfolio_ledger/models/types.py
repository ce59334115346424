from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator

from portfolio_ledger.models.enums import QuoteProvider, provider_from_tag, provider_to_tag

SCALE = 8
QUANTUM = Decimal(1).scaleb(-SCALE)


class ExactDecimal(TypeDecorator):
    """NUMERIC(20, 8) that never round-trips through float.

    SQLite has no decimal storage class, so values are kept as text there.
    """
    impl = Numeric(20, SCALE)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(40))
        return dialect.type_descriptor(Numeric(20, SCALE, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = Decimal(value).quantize(QUANTUM)
        return str(value) if dialect.name == "sqlite" else value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(str(value))


class ProviderTag(TypeDecorator):
    """Stores QuoteProvider as a versioned tag and validates it on read."""
    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return provider_to_tag(value)

    def process_result_value(self, value, dialect) -> QuoteProvider | None:
        if value is None:
            return None
        return provider_from_tag(value)
