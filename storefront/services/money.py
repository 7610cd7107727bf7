"""
Money Utilities - Safe Decimal operations for monetary values.

Avoids float precision issues by using Decimal throughout. Every coercion
here is total: unparsable input becomes Decimal("0") instead of raising,
because cart and favourites entries must stay renderable.
"""
from decimal import Decimal, DecimalException, ROUND_HALF_UP, InvalidOperation
from typing import Union

Number = Union[str, int, float, Decimal, None]

MONEY_PRECISION = Decimal("0.01")

# Anything at or above this is a data error, not a price
MAX_PRICE = Decimal("1000000000")

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
}


def to_decimal(value: Number) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation, or Decimal("0") if None/invalid/non-finite
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")

    if isinstance(value, Decimal):
        result = value
    else:
        try:
            if isinstance(value, float):
                # Via str to keep the printed precision
                result = Decimal(str(value))
            elif isinstance(value, str):
                result = Decimal(value.strip())
            else:
                result = Decimal(value)
        except (InvalidOperation, ValueError, TypeError):
            return Decimal("0")

    if not result.is_finite():
        return Decimal("0")
    return result


def to_price(value: Number) -> Decimal:
    """Coerce to a non-negative price below MAX_PRICE, rounded to cents."""
    decimal_value = to_decimal(value)
    if decimal_value < 0 or decimal_value >= MAX_PRICE:
        return Decimal("0")
    return round_money(decimal_value)


def round_money(value: Number) -> Decimal:
    """Round monetary value to cents. Values too large to quantize become 0."""
    try:
        return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)
    except DecimalException:
        return Decimal("0")


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor (0 on overflow)."""
    try:
        return to_decimal(value) * to_decimal(factor)
    except DecimalException:
        return Decimal("0")


def format_money(value: Number, currency: str = "EUR") -> str:
    """
    Format monetary value with currency symbol.

    Args:
        value: Value to format
        currency: Currency code (EUR, USD, GBP)

    Returns:
        Formatted string, e.g. "€1,250.00"
    """
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    formatted = f"{round_money(value):,.2f}"
    if currency in CURRENCY_SYMBOLS:
        return f"{symbol}{formatted}"
    return f"{formatted} {symbol}"
