"""
Quotation cost calculator.

Pure and deterministic: the same inputs always produce the same totals.
Prices come in whole halalas; only the VAT is rounded.

    spare_parts_total = sum(quantity * unit_price)
    subtotal          = additional_cost + spare_parts_total
    vat_amount        = round_half_up(subtotal * vat_rate, 2)
    total_amount      = subtotal + vat_amount
"""

from decimal import Decimal
from typing import Iterable

from core.exceptions import ValidationError
from core.models import QuotationTotals, SparePartLine
from core.money import ZERO, round_money, to_cents

DEFAULT_VAT_RATE = Decimal("0.15")


def unit_price_of(line: SparePartLine) -> Decimal:
    """
    The line's unit price as a two-place Decimal.

    Raises:
        ValidationError: If unit_price is negative or has sub-cent precision
    """
    unit_price = to_cents(line.unit_price, "unit_price")
    if unit_price < 0:
        raise ValidationError(
            f"Spare part {line.spare_part_id}: unit_price cannot be negative, got {unit_price}"
        )
    return unit_price


def line_total(line: SparePartLine) -> Decimal:
    """
    Validate one line and return quantity * unit_price.

    Raises:
        ValidationError: If quantity is not a positive integer or unit_price is invalid
    """
    if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity <= 0:
        raise ValidationError(
            f"Spare part {line.spare_part_id}: quantity must be a positive integer, got {line.quantity}"
        )
    return unit_price_of(line) * line.quantity


def additional_cost_of(value: Decimal | int | str) -> Decimal:
    """
    Labour cost as a two-place Decimal.

    Raises:
        ValidationError: If negative or with sub-cent precision
    """
    cost = to_cents(value, "additional_cost")
    if cost < 0:
        raise ValidationError(f"additional_cost cannot be negative, got {cost}")
    return cost


def compute_quotation(
    additional_cost: Decimal | int | str,
    line_items: Iterable[SparePartLine],
    vat_rate: Decimal = DEFAULT_VAT_RATE
) -> QuotationTotals:
    """
    Compute quotation totals.

    Args:
        additional_cost: Extra labour cost (>= 0)
        line_items: Spare part lines
        vat_rate: Fraction, e.g. Decimal("0.15")

    Returns:
        QuotationTotals with two-place Decimals

    Raises:
        ValidationError: On negative or sub-cent cost, bad quantity or bad unit price
    """
    cost = additional_cost_of(additional_cost)
    spare_parts_total = sum((line_total(line) for line in line_items), ZERO)
    subtotal = cost + spare_parts_total
    vat_amount = round_money(subtotal * vat_rate)

    return QuotationTotals(
        spare_parts_total=spare_parts_total,
        vat_amount=vat_amount,
        total_amount=subtotal + vat_amount,
    )
