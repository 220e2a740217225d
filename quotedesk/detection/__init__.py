"""Package-type detection: keyword scoring over quote, item and client text."""

from quotedesk.detection.detector import (
    confidence_level,
    detect_package_type,
    package_catalog,
    score_package_types,
    validate_detection,
)
from quotedesk.detection.keywords import PACKAGE_PROFILES, TIE_BREAK_ORDER, PackageProfile

__all__ = [
    "detect_package_type",
    "score_package_types",
    "validate_detection",
    "confidence_level",
    "package_catalog",
    "PACKAGE_PROFILES",
    "TIE_BREAK_ORDER",
    "PackageProfile",
]
