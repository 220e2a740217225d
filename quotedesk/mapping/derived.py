"""Derived fields: values computed from a quote rather than read from it.

Pure Python, Decimal arithmetic. Feeds the ``derived`` branch of the
mapping context.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from quotedesk.schemas.quotes import ClientData, QuoteData

# Value tiers: (exclusive lower bound, uptime %, response h, resolution h)
_SLA_VALUE_TIERS: tuple[tuple[Decimal, Decimal, int, int], ...] = (
    (Decimal("500000"), Decimal("99.9"), 1, 4),
    (Decimal("100000"), Decimal("99.5"), 4, 24),
)
_SLA_BASE_TIER = (Decimal("99.0"), 8, 72)

_DURATION_TIERS: tuple[tuple[Decimal, str], ...] = (
    (Decimal("50000"), "2-4 weeks"),
    (Decimal("100000"), "1-2 months"),
    (Decimal("250000"), "2-3 months"),
    (Decimal("500000"), "3-6 months"),
)

_PAGE_KEYWORDS = ("page", "pages", "landing", "home", "about", "contact")
_PRODUCT_KEYWORDS = ("product", "products", "item", "catalog", "inventory")
BASE_PAGES = 5
PAGES_PER_HIT = 2
MAX_PAGES = 50
MAX_PRODUCTS = 1000

_INDUSTRY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("technology", ("tech", "software", "digital", "innovation", "systems")),
    ("finance", ("finance", "bank", "investment", "capital")),
    ("healthcare", ("health", "medical", "clinic", "hospital")),
    ("retail", ("retail", "shop", "store", "market")),
    ("manufacturing", ("manufacturing", "factory", "production", "industrial")),
)

_COMPLIANCE_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("POPIA", ("popia", "protection of personal information")),
    ("GDPR", ("gdpr", "general data protection")),
    ("PAIA", ("paia", "promotion of access to information")),
    ("PCI DSS", ("pci", "payment card industry")),
)

# Most demanding level first
_SECURITY_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Advanced (Encryption, Firewall, SSL/HTTPS)", ("encryption", "advanced security")),
    ("Enhanced (Firewall, SSL/HTTPS)", ("firewall", "security")),
    ("Standard (SSL/HTTPS)", ("ssl", "https")),
)
_BASIC_SECURITY = "Basic (Standard security measures)"

SUPPORT_HOURS = "9:00 - 17:00, Monday - Friday"
MAINTENANCE_WINDOW = "Sunday 2:00 AM - 4:00 AM"
BACKUP_FREQUENCY = "Daily"
DATA_RETENTION_DAYS = 365


def _to_rand(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _terms_text(quote: QuoteData) -> str:
    return f"{quote.terms_text or ''} {quote.notes or ''}".lower()


# ── Value-based estimates ────────────────────────────────────────────


def sla_metrics_for_value(total: Decimal) -> dict[str, Any]:
    """Default uptime/response/resolution targets scaled by contract value."""
    for floor, uptime, response, resolution in _SLA_VALUE_TIERS:
        if total > floor:
            return {"uptime_target": uptime, "response_time_hours": response, "resolution_time_hours": resolution}
    uptime, response, resolution = _SLA_BASE_TIER
    return {"uptime_target": uptime, "response_time_hours": response, "resolution_time_hours": resolution}


def estimate_duration(total: Decimal) -> str:
    for ceiling, label in _DURATION_TIERS:
        if total < ceiling:
            return label
    return "6+ months"


def project_timeline_days(total: Decimal) -> int:
    """One day per R10 000, between 3 and 90 days."""
    return max(3, min(90, int(total // 10000)))


def project_complexity(total: Decimal) -> str:
    if total > 100000:
        return "enterprise"
    if total > 50000:
        return "standard"
    return "basic"


def support_level(total: Decimal) -> str:
    return "premium" if total > 75000 else "standard"


def client_size(total: Decimal) -> str:
    if total > 200000:
        return "enterprise"
    if total > 75000:
        return "medium"
    if total > 25000:
        return "small"
    return "startup"


# ── Text-based estimates ─────────────────────────────────────────────


def estimate_pages(quote: QuoteData) -> int:
    """Five pages plus two per page keyword found in each item description."""
    pages = BASE_PAGES
    for item in quote.items:
        description = item.description.lower()
        pages += PAGES_PER_HIT * sum(1 for kw in _PAGE_KEYWORDS if kw in description)
    return min(pages, MAX_PAGES)


def estimate_products(quote: QuoteData) -> int:
    """Item quantity counted once per product keyword in its description."""
    products = 0
    for item in quote.items:
        description = item.description.lower()
        hits = sum(1 for kw in _PRODUCT_KEYWORDS if kw in description)
        if hits:
            quantity = int(item.quantity) or 1
            products += hits * quantity
    return min(products, MAX_PRODUCTS)


def infer_client_industry(company: str | None) -> str:
    name = (company or "").lower()
    for industry, keywords in _INDUSTRY_KEYWORDS:
        if any(kw in name for kw in keywords):
            return industry
    return "general"


def detect_compliance(quote: QuoteData) -> list[str]:
    text = _terms_text(quote)
    frameworks = [name for name, needles in _COMPLIANCE_RULES if any(n in text for n in needles)]
    return frameworks or ["POPIA"]


def detect_security_level(quote: QuoteData) -> str:
    text = _terms_text(quote)
    for level, needles in _SECURITY_RULES:
        if any(n in text for n in needles):
            return level
    return _BASIC_SECURITY


def detect_data_protection(quote: QuoteData) -> str:
    text = _terms_text(quote)
    if "backup" in text:
        return "Daily backups with 30-day retention"
    if "redundancy" in text or "high availability" in text:
        return "Real-time replication with daily backups"
    return "Daily backups with standard retention"


# ── Aggregate ────────────────────────────────────────────────────────


def derive_fields(
    quote: QuoteData,
    client: ClientData,
    warranty_months: int,
    today: date | None = None,
) -> dict[str, Any]:
    """Compute every derived field for one quote."""
    today = today or date.today()
    total = quote.total_incl_vat
    timeline = project_timeline_days(total)
    descriptions = ", ".join(item.description for item in quote.items if item.description)

    derived: dict[str, Any] = {
        "total_contract_value": total,
        "monthly_value": _to_rand(total / 12),
        "balance_percentage": Decimal("100") - quote.deposit_percentage,
        "item_count": len(quote.items),
        "estimated_duration": estimate_duration(total),
        "estimated_pages": estimate_pages(quote),
        "estimated_products": estimate_products(quote),
        "project_timeline_days": timeline,
        "project_complexity": project_complexity(total),
        "project_start_date": today,
        "project_end_date": today + timedelta(days=timeline),
        "project_scope": f"Development project as specified in quote {quote.quote_number or ''}".rstrip(),
        "service_description": (
            f"Custom software development services for: {descriptions}"
            if descriptions
            else "Custom software development project"
        ),
        "support_level": support_level(total),
        "client_industry": infer_client_industry(client.company),
        "client_size": client_size(total),
        "compliance_frameworks": detect_compliance(quote),
        "security_level": detect_security_level(quote),
        "data_protection": detect_data_protection(quote),
        "support_hours": SUPPORT_HOURS,
        "maintenance_window": MAINTENANCE_WINDOW,
        "backup_frequency": BACKUP_FREQUENCY,
        "data_retention_days": DATA_RETENTION_DAYS,
        "warranty_months": warranty_months,
        "agreement_date": today,
    }
    derived.update(sla_metrics_for_value(total))
    return derived
