"""Financial calculators: breach penalties and quote totals."""

from quotedesk.calculators.penalty import calculate_breach_penalty
from quotedesk.calculators.totals import QuoteTotals, calculate_quote_totals

__all__ = [
    "calculate_breach_penalty",
    "calculate_quote_totals",
    "QuoteTotals",
]
