"""SLA breach penalty calculator.

Pure Python, Decimal arithmetic:
- calculated = monthly revenue × penalty % × severity
- cap        = monthly revenue × cap %
- final      = min(calculated, cap)
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from quotedesk.schemas.sla import PenaltyResult


def _to_rand(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half up."""
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def calculate_breach_penalty(
    monthly_revenue: Decimal,
    penalty_percentage: Decimal,
    severity: Decimal,
    penalty_cap_percentage: Decimal,
) -> PenaltyResult:
    """Penalty for one breach, capped as a share of monthly revenue.

    Args:
        monthly_revenue: Monthly value of the agreement.
        penalty_percentage: Penalty per severity unit, in percent (0.5 = 0.5%).
        severity: Breach severity multiplier.
        penalty_cap_percentage: Ceiling as a percentage of monthly revenue.

    Returns:
        PenaltyResult with calculated, cap and final amounts.
    """
    if monthly_revenue < 0 or penalty_percentage < 0 or severity < 0 or penalty_cap_percentage < 0:
        msg = "Penalty inputs must be non-negative"
        raise ValueError(msg)

    calculated = _to_rand(monthly_revenue * penalty_percentage / 100 * severity)
    cap = _to_rand(monthly_revenue * penalty_cap_percentage / 100)
    final = min(calculated, cap)

    return PenaltyResult(
        calculated_penalty=calculated,
        penalty_cap=cap,
        final_penalty=final,
        capped=calculated > cap,
    )
