"""Presentation helpers exposed to email templates."""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from .timestamps import parse_iso_datetime

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
}

# Currencies without minor units
ZERO_DECIMAL_CURRENCIES = {"JPY"}

Number = Union[int, float, Decimal, str]


def format_currency(amount: Optional[Number], currency: Optional[str] = "USD") -> str:
    """Format an amount the way en-US locales display money.

    Args:
        amount: Numeric amount (strings are accepted, None renders as zero)
        currency: ISO 4217 code, defaults to USD

    Returns:
        Formatted amount, e.g. "$1,234.50", "-€3.00" or "CHF 12.00"

    Raises:
        ValueError: If amount is not numeric

    Example:
        >>> format_currency(1234.5)
        '$1,234.50'
    """
    code = (currency or "USD").upper()

    try:
        value = Decimal(str(amount if amount is not None else 0))
    except InvalidOperation as e:
        raise ValueError(f"Cannot format non-numeric amount: {amount!r}") from e

    places = Decimal("1") if code in ZERO_DECIMAL_CURRENCIES else Decimal("0.01")
    value = value.quantize(places, rounding=ROUND_HALF_UP)

    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,}"

    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{code} {digits}"


def format_date(value: Optional[Union[datetime, date, str]]) -> str:
    """Format a date as "Month D, YYYY" (e.g. "November 4, 2025").

    ISO strings are parsed; unparseable strings are returned unchanged and
    None renders as an empty string.
    """
    if value is None:
        return ""

    if isinstance(value, str):
        parsed = parse_iso_datetime(value)
        if parsed is None:
            return value
        value = parsed

    return f"{value.strftime('%B')} {value.day}, {value.year}"
