from enum import Enum
from typing import Dict


class TransactionType(str, Enum):
    BUY = "Buy"
    SELL = "Sell"
    DIV = "Div"

    @classmethod
    def parse(cls, value: str) -> "TransactionType":
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        if normalized == "dividend":
            return cls.DIV
        raise ValueError(f"Unknown transaction type '{value}'")


class AssetType(str, Enum):
    STOCK = "Stock"
    BOND = "Bond"
    ETF = "ETF"
    MUTUAL_FUND = "MutualFund"
    CRYPTO = "Crypto"
    PRECIOUS_METALS = "PreciousMetals"
    OTHER = "Other"

    @classmethod
    def from_provider(cls, value: str | None) -> "AssetType":
        """Map the free-form instrument type reported by a provider."""
        if not value:
            return cls.STOCK
        key = str(value).strip().lower().replace(" ", "").replace("_", "")
        mapping = {
            "stock": cls.STOCK,
            "equity": cls.STOCK,
            "commonstock": cls.STOCK,
            "cs": cls.STOCK,
            "etf": cls.ETF,
            "etp": cls.ETF,
            "mutualfund": cls.MUTUAL_FUND,
            "fund": cls.MUTUAL_FUND,
            "bond": cls.BOND,
            "cryptocurrency": cls.CRYPTO,
            "crypto": cls.CRYPTO,
        }
        return mapping.get(key, cls.OTHER)


class QuoteProvider(str, Enum):
    """Closed set of quote sources a ticker can be bound to."""
    FMP = "fmp"
    ALPHA_VANTAGE = "alpha_vantage"
    MARKETSTACK = "marketstack"
    YAHOO = "yahoo"

    @classmethod
    def parse(cls, value: "str | QuoteProvider") -> "QuoteProvider":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            legacy = LEGACY_PROVIDER_NAMES.get(str(value).strip())
            if legacy is not None:
                return legacy
            raise ValueError(f"Unknown quote provider '{value}'")


PROVIDER_DISPLAY_NAMES: Dict[QuoteProvider, str] = {
    QuoteProvider.FMP: "Financial Modeling Prep",
    QuoteProvider.ALPHA_VANTAGE: "Alpha Vantage",
    QuoteProvider.MARKETSTACK: "Marketstack",
    QuoteProvider.YAHOO: "Yahoo Finance",
}

# Stored tags are versioned so the mapping can change without rewriting rows.
PROVIDER_TAGS_V1: Dict[QuoteProvider, str] = {
    QuoteProvider.FMP: "v1:fmp",
    QuoteProvider.ALPHA_VANTAGE: "v1:alpha_vantage",
    QuoteProvider.MARKETSTACK: "v1:marketstack",
    QuoteProvider.YAHOO: "v1:yahoo",
}

# Unversioned display names written by older databases.
LEGACY_PROVIDER_NAMES: Dict[str, QuoteProvider] = {
    name: provider for provider, name in PROVIDER_DISPLAY_NAMES.items()
}


def provider_to_tag(provider: QuoteProvider) -> str:
    return PROVIDER_TAGS_V1[QuoteProvider.parse(provider)]


def provider_from_tag(tag: str) -> QuoteProvider:
    for provider, stored in PROVIDER_TAGS_V1.items():
        if stored == tag:
            return provider
    if tag in LEGACY_PROVIDER_NAMES:
        return LEGACY_PROVIDER_NAMES[tag]
    raise ValueError(f"Unknown stored provider tag '{tag}'")
