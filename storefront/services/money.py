"""
Money Utilities - Safe Decimal operations for monetary values.

Avoids float precision issues by using Decimal throughout.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

from storefront.config import DEFAULT_CURRENCY_SYMBOL

Number = Union[str, int, float, Decimal]

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")

# Precision for whole-pound display (EGP prices are shown without piasters)
INTEGER_PRECISION = Decimal("1")

# Currency symbols shown without decimals
INTEGER_CURRENCIES = {"ج.م", "EGP"}

_ARABIC_INDIC_DIGITS = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")


def to_decimal(value: Union[Number, None]) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    try:
        # Go through str for floats to keep the printed precision
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def round_money(value: Number, to_int: bool = False) -> Decimal:
    """
    Round monetary value to appropriate precision.

    Args:
        value: Value to round
        to_int: If True, round to whole units

    Returns:
        Rounded Decimal value
    """
    decimal_value = to_decimal(value)
    precision = INTEGER_PRECISION if to_int else MONEY_PRECISION
    return decimal_value.quantize(precision, rounding=ROUND_HALF_UP)


def to_float(value: Number) -> float:
    """Convert to float for JSON responses. Use only at API boundaries."""
    return float(to_decimal(value))


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)


def percent(value: Number, rate: Number) -> Decimal:
    """Fraction of a value, e.g. percent(200, "0.14") == 28."""
    return multiply(value, rate)


def format_price(
    value: Number,
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
    decimals: int | None = None,
    lang: str = "ar",
) -> str:
    """
    Format a price for display, e.g. "١٬٢٥٠ ج.م" or "1,250 ج.م".

    Egyptian pounds are shown without decimals, other currencies with two.
    Arabic output uses Arabic-Indic digits with the Arabic thousands and
    decimal separators.

    Args:
        value: Amount to format
        currency_symbol: Symbol placed after the number
        decimals: Override the number of decimal places
        lang: "ar" for Arabic digits, anything else for Latin digits

    Returns:
        Formatted string
    """
    if decimals is None:
        decimals = 0 if currency_symbol in INTEGER_CURRENCIES else 2

    amount = to_decimal(value).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
    formatted = f"{amount:,.{decimals}f}"

    if lang == "ar":
        formatted = (
            formatted.replace(",", "٬")
            .replace(".", "٫")
            .translate(_ARABIC_INDIC_DIGITS)
        )

    return f"{formatted} {currency_symbol}".strip()
