"""Quote totals: subtotal, VAT, deposit and balance from line items.

VAT applies only to taxable lines. All amounts rounded to cents, half up.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from quotedesk.schemas.quotes import QuoteItemData


def _to_rand(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class QuoteTotals:
    subtotal_excl_vat: Decimal
    vat_amount: Decimal
    total_incl_vat: Decimal
    deposit_amount: Decimal
    balance_remaining: Decimal


def calculate_quote_totals(
    items: Sequence[QuoteItemData],
    vat_percentage: Decimal,
    deposit_percentage: Decimal = Decimal("0"),
) -> QuoteTotals:
    """Compute all quote amounts from its items."""
    subtotal = sum((item.quantity * item.unit_price for item in items), Decimal("0"))
    taxable = sum((item.quantity * item.unit_price for item in items if item.taxable), Decimal("0"))

    vat = _to_rand(taxable * vat_percentage / 100)
    subtotal = _to_rand(subtotal)
    total = subtotal + vat
    deposit = _to_rand(total * deposit_percentage / 100)

    return QuoteTotals(
        subtotal_excl_vat=subtotal,
        vat_amount=vat,
        total_incl_vat=total,
        deposit_amount=deposit,
        balance_remaining=total - deposit,
    )
