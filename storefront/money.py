"""
Money Utilities - Safe Decimal operations for monetary values.

Avoids float precision issues by using Decimal throughout.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

Number = Union[str, int, float, Decimal]

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")

CURRENCY_SYMBOL = "₹"


def to_decimal(value: Union[Number, None]) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    parsed = parse_price(value)
    return parsed if parsed is not None else Decimal("0")


def parse_price(value: object) -> Optional[Decimal]:
    """
    Convert a price to Decimal, keeping "missing" distinguishable from zero.

    Returns:
        Decimal value, or None if the value is missing, boolean,
        non-numeric or not finite
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        return value if value.is_finite() else None

    if not isinstance(value, (str, int, float)):
        return None

    try:
        # Convert floats via string to avoid binary precision artifacts
        result = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return None

    return result if result.is_finite() else None


def round_money(value: Number) -> Decimal:
    """Round monetary value to 2 decimal places."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)


def to_float(value: Number) -> float:
    """
    Convert Decimal to float for scoring or JSON serialization.

    Use only at boundaries, not for cart totals.
    """
    return float(to_decimal(value))


def format_money(value: Number) -> str:
    """Format amount in rupees, e.g. ₹1,500.00."""
    return f"{CURRENCY_SYMBOL}{round_money(value):,.2f}"
