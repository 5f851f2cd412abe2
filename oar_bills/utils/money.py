"""Integer minor-unit money helpers"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict

from oar_bills.config import settings


@dataclass(frozen=True)
class Currency:
    """ISO 4217 currency configuration"""

    code: str
    minor_units: int  # decimal places: 2 for PLN, 0 for JPY
    symbol: str


CURRENCIES: Dict[str, Currency] = {
    "PLN": Currency("PLN", 2, "zł"),
    "USD": Currency("USD", 2, "$"),
    "EUR": Currency("EUR", 2, "€"),
    "GBP": Currency("GBP", 2, "£"),
    "JPY": Currency("JPY", 0, "¥"),
}


def _currency(code: str | None) -> Currency:
    code = code or settings.currency
    try:
        return CURRENCIES[code]
    except KeyError:
        raise ValueError(f"Unsupported currency: {code}") from None


def round_half_up(numerator: int, denominator: int) -> int:
    """
    Integer division rounded to nearest, ties towards +infinity.

    Example:
        round_half_up(100000, 12) -> 8333
        round_half_up(5, 2) -> 3
    """
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (2 * numerator + denominator) // (2 * denominator)


def to_major_units(minor_amount: int, currency: str | None = None) -> Decimal:
    """Convert minor units back to a decimal amount for display"""
    config = _currency(currency)
    return Decimal(minor_amount).scaleb(-config.minor_units)


def format_money(minor_amount: int, currency: str | None = None) -> str:
    """Render minor units with the currency symbol, e.g. 4999 PLN -> '49.99 zł'"""
    config = _currency(currency)
    major = to_major_units(minor_amount, config.code)
    text = f"{major:,.{config.minor_units}f}"
    if config.code == "PLN":
        return f"{text} {config.symbol}"
    return f"{config.symbol}{text}"
