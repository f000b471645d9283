"""Decimal money helpers.

All monetary values are Decimal with two decimal places (halalas). Floats
never enter the arithmetic; inputs are converted through str() first.
"""

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from core.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Decimal | int | float | str, field: str = "amount") -> Decimal:
    """
    Convert a user-supplied number to Decimal.

    Raises:
        ValidationError: If the value is not a finite number
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number, got {value!r}")

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def round_money(value: Decimal) -> Decimal:
    """Round to two decimal places, half-up (currency display rounding)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Decimal | int | float | str, field: str = "amount") -> Decimal:
    """
    Convert a user-supplied price to a two-place Decimal without rounding.

    Raises:
        ValidationError: If the value is not a number or has sub-cent precision
    """
    amount = to_decimal(value, field)
    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} cannot have more than two decimal places, got {amount}")
    return amount.quantize(CENT)


def require_positive_amount(value: Decimal | int | float | str, field: str = "amount") -> Decimal:
    """
    Validate a ledger amount: strictly positive with at most two decimals.

    Returns:
        The amount as a two-place Decimal

    Raises:
        ValidationError: If the amount is zero, negative or has sub-cent precision
    """
    amount = to_decimal(value, field)
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0, got {amount}")
    return to_cents(amount, field)
