from typing import Dict, Optional

EURO_AREA = ("DE", "FR", "IT", "ES", "NL", "BE", "FI", "AT", "IE", "PT", "LU", "GR")

COUNTRY_CURRENCIES: Dict[str, str] = {
    "US": "USD",
    "GB": "GBP",
    "JP": "JPY",
    "CN": "CNY",
    "HK": "HKD",
    "IN": "INR",
    "CH": "CHF",
    "CA": "CAD",
    "AU": "AUD",
    "KR": "KRW",
    "BR": "BRL",
    "SE": "SEK",
    "SG": "SGD",
    "ZA": "ZAR",
    "MX": "MXN",
    "RU": "RUB",
    "SA": "SAR",
    "TR": "TRY",
    "TW": "TWD",
    "ID": "IDR",
    "TH": "THB",
    "MY": "MYR",
    "PL": "PLN",
    "NO": "NOK",
    "DK": "DKK",
    "AE": "AED",
    "AR": "ARS",
    "CL": "CLP",
    "NZ": "NZD",
    **{code: "EUR" for code in EURO_AREA},
}


def currency_from_country_code(country_code: Optional[str]) -> Optional[str]:
    """ISO 4217 currency of an exchange's ISO 3166 country code."""
    if not country_code:
        return None
    return COUNTRY_CURRENCIES.get(country_code.strip().upper())
