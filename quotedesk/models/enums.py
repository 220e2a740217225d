"""Domain enums used across SQLAlchemy models and Pydantic schemas.

All enums use str mixin for JSON serialization; columns store the ``.value``.
"""

from __future__ import annotations

from enum import Enum


class PackageType(str, Enum):
    """Project category inferred from quote text, drives template choice."""

    ECOM_SITE = "ecom_site"
    GENERAL_WEBSITE = "general_website"
    BUSINESS_PROCESS_SYSTEMS = "business_process_systems"
    MARKETING = "marketing"


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"


class ItemType(str, Enum):
    """How a line item is billed."""

    FIXED = "fixed"
    HOURLY = "hourly"
    EXPENSE = "expense"


class AgreementStatus(str, Enum):
    """ServiceAgreement lifecycle."""

    DRAFT = "draft"
    GENERATED = "generated"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class SignatureStatus(str, Enum):
    PENDING = "pending"
    SIGNED = "signed"
    DECLINED = "declined"


class VariableType(str, Enum):
    """Declared type of a template variable, drives coercion and display."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


class ConfidenceLevel(str, Enum):
    """Detection confidence bands (high ≥80, medium ≥60, low ≥40)."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MINIMAL = "minimal"


class BreachMetric(str, Enum):
    UPTIME = "uptime"
    RESPONSE_TIME = "response_time"
    RESOLUTION_TIME = "resolution_time"


class AutomationTrigger(str, Enum):
    """What caused an agreement to be generated."""

    MANUAL = "manual"
    QUOTE_ACCEPTED = "quote_accepted"


# Agreements in these statuses no longer block a new one for the same quote
INACTIVE_AGREEMENT_STATUSES: frozenset[str] = frozenset(
    {AgreementStatus.REJECTED.value, AgreementStatus.EXPIRED.value}
)
