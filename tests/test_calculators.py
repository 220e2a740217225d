"""Tests for the breach penalty and quote totals calculators.

Tests cover:
- Penalty = revenue × percentage × severity, capped at revenue × cap
- Negative inputs rejected
- VAT only on taxable lines, deposit and balance split
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from quotedesk.calculators import calculate_breach_penalty, calculate_quote_totals
from quotedesk.schemas.quotes import QuoteItemData


class TestBreachPenalty:
    """Test calculate_breach_penalty."""

    def test_below_cap(self) -> None:
        """R10 000 revenue, 0.5% × severity 3 → R150, cap R1 000."""
        result = calculate_breach_penalty(Decimal("10000"), Decimal("0.5"), Decimal("3"), Decimal("10"))
        assert result.calculated_penalty == Decimal("150.00")
        assert result.penalty_cap == Decimal("1000.00")
        assert result.final_penalty == Decimal("150.00")
        assert result.capped is False

    def test_capped(self) -> None:
        result = calculate_breach_penalty(Decimal("10000"), Decimal("0.5"), Decimal("300"), Decimal("10"))
        assert result.calculated_penalty == Decimal("15000.00")
        assert result.final_penalty == Decimal("1000.00")
        assert result.capped is True

    def test_zero_revenue(self) -> None:
        result = calculate_breach_penalty(Decimal("0"), Decimal("0.5"), Decimal("3"), Decimal("10"))
        assert result.final_penalty == Decimal("0.00")

    def test_rounding(self) -> None:
        result = calculate_breach_penalty(Decimal("333.33"), Decimal("1"), Decimal("1.5"), Decimal("100"))
        assert result.calculated_penalty == Decimal("5.00")

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            calculate_breach_penalty(Decimal("-1"), Decimal("0.5"), Decimal("1"), Decimal("10"))


class TestQuoteTotals:
    """Test calculate_quote_totals."""

    def test_vat_only_on_taxable_lines(self) -> None:
        items = [
            QuoteItemData(description="Build", quantity=Decimal("2"), unit_price=Decimal("1000")),
            QuoteItemData(description="Domain fee", unit_price=Decimal("500"), taxable=False),
        ]
        totals = calculate_quote_totals(items, Decimal("15"), Decimal("50"))
        assert totals.subtotal_excl_vat == Decimal("2500.00")
        assert totals.vat_amount == Decimal("300.00")
        assert totals.total_incl_vat == Decimal("2800.00")
        assert totals.deposit_amount == Decimal("1400.00")
        assert totals.balance_remaining == Decimal("1400.00")

    def test_no_deposit(self) -> None:
        items = [QuoteItemData(description="Hosting", unit_price=Decimal("99.99"))]
        totals = calculate_quote_totals(items, Decimal("15"))
        assert totals.vat_amount == Decimal("15.00")
        assert totals.total_incl_vat == Decimal("114.99")
        assert totals.deposit_amount == Decimal("0.00")
        assert totals.balance_remaining == totals.total_incl_vat

    def test_empty(self) -> None:
        totals = calculate_quote_totals([], Decimal("15"))
        assert totals.total_incl_vat == Decimal("0.00")
