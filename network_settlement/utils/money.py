"""
Integer-cent money helpers.

All arithmetic goes through Decimal; floats are rejected.
"""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal


def to_decimal(value: Decimal | int | str) -> Decimal:
    """
    Convert a rate or amount to Decimal without passing through float.

    Args:
        value: Decimal, int or numeric string

    Returns:
        Decimal value

    Raises:
        TypeError: If value is a float
    """
    if isinstance(value, float):
        raise TypeError("Floats are not accepted for money or rates")
    return value if isinstance(value, Decimal) else Decimal(value)


def apply_rate(amount_cents: int, rate: Decimal) -> int:
    """
    Multiply an amount by a rate, rounding half up to whole cents.

    Example:
        >>> apply_rate(10000, Decimal("0.05"))
        500
        >>> apply_rate(5, Decimal("0.5"))
        3
    """
    product = Decimal(amount_cents) * to_decimal(rate)
    return int(product.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def cap_cents(amount_cents: int, ratio: Decimal) -> int:
    """
    Largest whole number of cents not above ``amount_cents * ratio``.

    Example:
        >>> cap_cents(999, Decimal("0.5"))
        499
    """
    product = Decimal(amount_cents) * to_decimal(ratio)
    return int(product.quantize(Decimal(1), rounding=ROUND_FLOOR))


def format_cents(amount_cents: int) -> str:
    """
    Render cents as a dollar string for messages.

    Example:
        >>> format_cents(15050)
        '$150.50'
    """
    sign = "-" if amount_cents < 0 else ""
    whole, cents = divmod(abs(amount_cents), 100)
    return f"{sign}${whole:,}.{cents:02d}"
