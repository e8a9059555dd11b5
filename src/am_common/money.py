"""Decimal money helpers.

Prices and bids are Decimal end to end (NUMERIC(12,2) in PostgreSQL).
Never route an amount through float: comparisons must be exact.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

AMOUNT_QUANT = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")  # NUMERIC(12,2)


def to_amount(value: Decimal | int | str) -> Decimal:
    """Coerce to a 2-place Decimal. Floats are rejected to keep binary rounding out."""
    if isinstance(value, float):
        raise TypeError("amounts must not be floats")
    try:
        return Decimal(value).quantize(AMOUNT_QUANT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"not a decimal amount: {value!r}") from exc


def is_whole_cents(value: Decimal) -> bool:
    """True when value has no digits past the cent: 100.50 and 100.500 pass, 100.005 fails."""
    return value == value.quantize(AMOUNT_QUANT)


def is_valid_amount(value: Decimal) -> bool:
    """Positive, finite, whole cents and within the column's range."""
    return value.is_finite() and Decimal(0) < value <= MAX_AMOUNT and is_whole_cents(value)


def amount_to_display(amount: Decimal | None) -> str | None:
    """Display string: Decimal('1234.5') -> '$1,234.50'. None passes through."""
    if amount is None:
        return None
    q = amount.quantize(AMOUNT_QUANT, rounding=ROUND_HALF_UP)
    if q < 0:
        return f"-${-q:,.2f}"
    return f"${q:,.2f}"
