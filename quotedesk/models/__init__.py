"""SQLAlchemy ORM models for QuoteDesk.

Import all models here so Alembic and Base.metadata.create_all() discover them.
"""

from __future__ import annotations

from quotedesk.models.agreement import BreachIncident, ServiceAgreement
from quotedesk.models.audit import AuditLog
from quotedesk.models.base import Base
from quotedesk.models.client import Client
from quotedesk.models.enums import (
    AgreementStatus,
    AutomationTrigger,
    BreachMetric,
    ConfidenceLevel,
    InvoiceStatus,
    ItemType,
    PackageType,
    QuoteStatus,
    SignatureStatus,
    VariableType,
)
from quotedesk.models.invoice import Invoice, InvoiceItem
from quotedesk.models.quote import Quote, QuoteItem
from quotedesk.models.sla_template import SLATemplate, TemplateVariable

__all__ = [
    # Base
    "Base",
    # Models
    "Client",
    "Quote",
    "QuoteItem",
    "SLATemplate",
    "TemplateVariable",
    "ServiceAgreement",
    "BreachIncident",
    "Invoice",
    "InvoiceItem",
    "AuditLog",
    # Enums
    "PackageType",
    "QuoteStatus",
    "InvoiceStatus",
    "ItemType",
    "AgreementStatus",
    "SignatureStatus",
    "VariableType",
    "ConfidenceLevel",
    "BreachMetric",
    "AutomationTrigger",
]
