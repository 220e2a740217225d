"""Default performance metrics and penalty terms per package type.

Used when a template is created without its own metrics and when an
agreement's template leaves a metric unset.
"""

from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import Any, Mapping

from quotedesk.models.enums import PackageType

PACKAGE_DEFAULT_METRICS: Mapping[PackageType, Mapping[str, Any]] = MappingProxyType({
    PackageType.ECOM_SITE: MappingProxyType({
        "uptime_target": Decimal("99.9"),
        "response_time_hours": 1,
        "resolution_time_hours": 4,
        "availability_hours": "24/7",
    }),
    PackageType.GENERAL_WEBSITE: MappingProxyType({
        "uptime_target": Decimal("99.5"),
        "response_time_hours": 2,
        "resolution_time_hours": 8,
        "availability_hours": "Business hours",
    }),
    PackageType.BUSINESS_PROCESS_SYSTEMS: MappingProxyType({
        "uptime_target": Decimal("99.0"),
        "response_time_hours": 4,
        "resolution_time_hours": 24,
        "availability_hours": "Business hours",
    }),
    PackageType.MARKETING: MappingProxyType({
        "uptime_target": Decimal("98.0"),
        "response_time_hours": 8,
        "resolution_time_hours": 48,
        "availability_hours": "Business hours",
    }),
})

# Percent of monthly revenue per severity unit, capped at a percent of monthly revenue; grace in hours
PACKAGE_DEFAULT_PENALTIES: Mapping[PackageType, Mapping[str, Any]] = MappingProxyType({
    PackageType.ECOM_SITE: MappingProxyType(
        {"penalty_percentage": Decimal("1.0"), "penalty_cap_percentage": Decimal("15"), "grace_period_hours": 1}
    ),
    PackageType.GENERAL_WEBSITE: MappingProxyType(
        {"penalty_percentage": Decimal("0.5"), "penalty_cap_percentage": Decimal("10"), "grace_period_hours": 2}
    ),
    PackageType.BUSINESS_PROCESS_SYSTEMS: MappingProxyType(
        {"penalty_percentage": Decimal("1.5"), "penalty_cap_percentage": Decimal("20"), "grace_period_hours": 4}
    ),
    PackageType.MARKETING: MappingProxyType(
        {"penalty_percentage": Decimal("0.5"), "penalty_cap_percentage": Decimal("5"), "grace_period_hours": 8}
    ),
})

UPTIME_MIN = Decimal("90")
UPTIME_MAX = Decimal("100")


def default_metrics(package_type: PackageType) -> dict[str, Any]:
    """JSON-safe copy of the package's default metrics."""
    return {k: str(v) if isinstance(v, Decimal) else v for k, v in PACKAGE_DEFAULT_METRICS[package_type].items()}


def default_penalties(package_type: PackageType) -> dict[str, Any]:
    return {k: str(v) if isinstance(v, Decimal) else v for k, v in PACKAGE_DEFAULT_PENALTIES[package_type].items()}
