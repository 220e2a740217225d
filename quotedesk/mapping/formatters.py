"""South African (en-ZA) display formatting for rendered agreements.

Space as thousands separator, comma as decimal mark, long-form dates.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal


def _to_cents(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_number(value: Decimal | float | int | None) -> str:
    """Format with 2 decimals: 120000 -> "120 000,00"."""
    if value is None:
        return ""
    d = _to_cents(Decimal(str(value)))
    # US: 120,000.00 -> en-ZA: 120 000,00
    return f"{d:,.2f}".replace(",", " ").replace(".", ",")


def format_quantity(value: Decimal | float | int | None) -> str:
    """Format at the value's own precision: 24 -> "24", 99.9 -> "99,9"."""
    if value is None:
        return ""
    d = Decimal(str(value))
    places = max(-d.as_tuple().exponent, 0)
    return f"{d:,.{places}f}".replace(",", " ").replace(".", ",")


def format_currency(value: Decimal | float | int | None) -> str:
    """Format as Rand: 120000 -> "R120 000,00"."""
    if value is None:
        return "-"
    formatted = format_number(value)
    if formatted.startswith("-"):
        return f"-R{formatted[1:]}"
    return f"R{formatted}"


def format_date(value: date | datetime | None) -> str:
    """Long date: 17 October 2026."""
    if value is None:
        return ""
    return f"{value.day} {value.strftime('%B %Y')}"


def format_boolean(value: bool | None) -> str:
    if value is None:
        return ""
    return "Yes" if value else "No"
