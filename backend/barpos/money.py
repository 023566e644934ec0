# Overview: Decimal money helpers shared by models, services and routes.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Numeric(10, 2) ceiling
MAX_AMOUNT = Decimal("99999999.99")


def to_decimal(value, field: str = "amount") -> Decimal:
    """
    Coerce JSON input (str, int, float, Decimal) to a 2-place Decimal.

    Floats go through str() so 12.1 stays 12.10 rather than 12.0999...
    Booleans are rejected even though they are ints.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"{field} must be a decimal amount")
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError):
        raise ValueError(f"{field} must be a decimal amount")
    if not amount.is_finite():
        raise ValueError(f"{field} must be a decimal amount")
    amount = quantize(amount)
    if abs(amount) > MAX_AMOUNT:
        raise ValueError(f"{field} cannot exceed {MAX_AMOUNT}")
    return amount


def quantize(amount) -> Decimal:
    if amount is None:
        return ZERO
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(amount) -> str | None:
    """Serialize as a fixed 2-decimal string ("12.50")."""
    if amount is None:
        return None
    return f"{quantize(amount):.2f}"
