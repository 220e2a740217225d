"""Keyword dictionaries and typical ranges per package type.

Static configuration, built once at import. Profiles are frozen dataclasses
and every lookup table is a read-only ``MappingProxyType``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from quotedesk.models.enums import ConfidenceLevel, PackageType

DEFAULT_KEYWORD_WEIGHT = 1.0
ITEM_PATTERN_WEIGHT = 1.5

# Secondary signals
VALUE_IN_RANGE_SCORE = 2.0
VALUE_NEAR_RANGE_SCORE = 1.0
ITEM_COUNT_IN_RANGE_SCORE = 1.5
ITEM_COUNT_BELOW_RANGE_SCORE = 0.5

# Confidence bands
CONFIDENCE_THRESHOLDS: Mapping[ConfidenceLevel, int] = MappingProxyType({
    ConfidenceLevel.HIGH: 80,
    ConfidenceLevel.MEDIUM: 60,
    ConfidenceLevel.LOW: 40,
})
NO_MATCH_CONFIDENCE = 40
LEAD_RATIO = 1.5  # winner must beat runner-up by this factor to get the boost
LEAD_BOOST = 20
MAX_BOOSTED_CONFIDENCE = 95

# Fixed tie-break order, earlier wins
TIE_BREAK_ORDER: tuple[PackageType, ...] = (
    PackageType.ECOM_SITE,
    PackageType.BUSINESS_PROCESS_SYSTEMS,
    PackageType.MARKETING,
    PackageType.GENERAL_WEBSITE,
)
DEFAULT_PACKAGE_TYPE = PackageType.GENERAL_WEBSITE


@dataclass(frozen=True)
class PackageProfile:
    """Detection signals for one package type."""

    package_type: PackageType
    display_name: str
    keywords: Mapping[str, float]  # keyword -> weight
    item_patterns: tuple[str, ...]
    value_range: tuple[Decimal, Decimal]
    item_count_range: tuple[int, int]


def _weighted(keywords: tuple[str, ...], weights: dict[str, float]) -> Mapping[str, float]:
    """Merge plain keywords with weighted ones into one read-only map."""
    merged = {kw: DEFAULT_KEYWORD_WEIGHT for kw in keywords}
    merged.update(weights)
    return MappingProxyType(merged)


PACKAGE_PROFILES: Mapping[PackageType, PackageProfile] = MappingProxyType({
    PackageType.ECOM_SITE: PackageProfile(
        package_type=PackageType.ECOM_SITE,
        display_name="E-commerce Site",
        keywords=_weighted(
            (
                "ecommerce", "e-commerce", "online store", "shopping cart", "product catalog",
                "payment gateway", "checkout", "products", "inventory", "woocommerce", "shopify",
                "magento", "opencart", "prestashop", "bigcommerce", "product management",
                "order management", "cart system", "online shop", "webstore", "digital storefront",
            ),
            {
                "payment gateway": 3,
                "shopping cart": 3,
                "product catalog": 2,
                "inventory management": 2,
                "ecommerce": 3,
                "online store": 2,
            },
        ),
        item_patterns=(
            "product page", "category page", "shopping cart", "checkout process",
            "payment integration", "order management", "inventory system", "product search",
            "user account", "wishlist", "product reviews", "shipping calculation",
        ),
        value_range=(Decimal("50000"), Decimal("500000")),
        item_count_range=(10, 50),
    ),
    PackageType.GENERAL_WEBSITE: PackageProfile(
        package_type=PackageType.GENERAL_WEBSITE,
        display_name="General Website",
        keywords=_weighted(
            (
                "website", "web site", "portfolio", "brochure", "informational", "blog",
                "corporate", "business website", "landing page", "company website", "presentation",
                "brand website", "marketing website", "showcase", "web presence", "online brochure",
            ),
            {
                "company website": 2,
                "corporate website": 2,
                "portfolio website": 2,
                "informational website": 2,
                "landing page": 1,
            },
        ),
        item_patterns=(
            "home page", "about page", "contact page", "services page", "portfolio",
            "gallery", "blog section", "news section", "testimonials", "team page",
            "faq page", "privacy policy", "terms of service", "sitemap",
        ),
        value_range=(Decimal("15000"), Decimal("150000")),
        item_count_range=(5, 20),
    ),
    PackageType.BUSINESS_PROCESS_SYSTEMS: PackageProfile(
        package_type=PackageType.BUSINESS_PROCESS_SYSTEMS,
        display_name="Business Process Systems",
        keywords=_weighted(
            (
                "crm", "erp", "business process", "workflow", "automation", "system",
                "management system", "dashboard", "reporting", "analytics", "database",
                "business intelligence", "process automation", "workflow management",
                "enterprise system", "business software", "management platform",
            ),
            {
                "crm system": 3,
                "erp system": 3,
                "business process": 2,
                "workflow management": 2,
                "management system": 2,
                "automation": 2,
            },
        ),
        item_patterns=(
            "user management", "role-based access", "data entry forms", "reporting dashboard",
            "analytics dashboard", "workflow automation", "process management", "data export",
            "system integration", "api development", "database design", "user authentication",
            "permission system", "audit trail", "notification system",
        ),
        value_range=(Decimal("100000"), Decimal("1000000")),
        item_count_range=(8, 30),
    ),
    PackageType.MARKETING: PackageProfile(
        package_type=PackageType.MARKETING,
        display_name="Marketing Platform",
        keywords=_weighted(
            (
                "marketing", "campaign", "lead generation", "seo", "sem", "social media",
                "email marketing", "content marketing", "digital marketing", "advertising",
                "marketing automation", "brand promotion", "online marketing", "web marketing",
            ),
            {
                "digital marketing": 3,
                "marketing automation": 3,
                "lead generation": 2,
                "social media marketing": 2,
                "email marketing": 2,
                "seo optimization": 2,
            },
        ),
        item_patterns=(
            "social media integration", "email campaign", "seo optimization", "content management",
            "landing page", "lead capture", "analytics tracking", "marketing automation",
            "brand guidelines", "advertising banner", "social media management",
            "email template", "marketing dashboard", "campaign management",
        ),
        value_range=(Decimal("25000"), Decimal("200000")),
        item_count_range=(5, 25),
    ),
})

# Weights at or above this count as "high weight" in reasoning output
HIGH_WEIGHT = 2.0
