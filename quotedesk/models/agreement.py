"""ServiceAgreement and BreachIncident models.

At most one active (not rejected/expired) agreement per quote is enforced by
the partial unique index ``uq_service_agreements_active_quote``.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotedesk.models.base import Base, TimestampMixin
from quotedesk.models.enums import AgreementStatus, AutomationTrigger, SignatureStatus

if TYPE_CHECKING:
    from quotedesk.models.client import Client
    from quotedesk.models.quote import Quote
    from quotedesk.models.sla_template import SLATemplate


class ServiceAgreement(TimestampMixin, Base):
    """A rendered SLA generated from a quote and a template."""

    __tablename__ = "service_agreements"
    __table_args__ = (
        Index(
            "uq_service_agreements_active_quote",
            "quote_id",
            unique=True,
            postgresql_where=text("status NOT IN ('rejected', 'expired')"),
        ),
    )

    agreement_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    # Foreign keys
    quote_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quotes.id"), nullable=False, index=True
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True
    )
    template_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("sla_templates.id")
    )

    # Rendered output
    package_type: Mapped[str] = mapped_column(String(50), nullable=False)
    detection_confidence: Mapped[int | None] = mapped_column(Integer)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    variables: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    missing_variables: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)

    # Performance terms
    uptime_guarantee: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    response_time_hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    resolution_time_hours: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)

    # Penalty terms
    penalty_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    penalty_cap_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    monthly_revenue: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20), default=AgreementStatus.DRAFT.value, nullable=False, index=True
    )
    generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    expired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    signature_status: Mapped[str] = mapped_column(
        String(20), default=SignatureStatus.PENDING.value, nullable=False
    )
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Provenance
    auto_generated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    automation_trigger: Mapped[str] = mapped_column(
        String(30), default=AutomationTrigger.MANUAL.value, nullable=False
    )
    created_by: Mapped[str | None] = mapped_column(String(100))

    # Relationships
    quote: Mapped[Quote] = relationship("Quote")
    client: Mapped[Client] = relationship("Client")
    template: Mapped[SLATemplate | None] = relationship("SLATemplate")
    breaches: Mapped[list[BreachIncident]] = relationship(
        "BreachIncident", back_populates="agreement", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<ServiceAgreement number={self.agreement_number} status={self.status}>"


class BreachIncident(TimestampMixin, Base):
    """A recorded miss of a contracted metric with its computed penalty."""

    __tablename__ = "breach_incidents"

    agreement_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("service_agreements.id"), nullable=False, index=True
    )
    metric: Mapped[str] = mapped_column(String(30), nullable=False, comment="BreachMetric enum value")
    severity: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    incident_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    calculated_penalty: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    penalty_cap: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    final_penalty: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    resolution_status: Mapped[str] = mapped_column(String(20), default="open", nullable=False)

    agreement: Mapped[ServiceAgreement] = relationship("ServiceAgreement", back_populates="breaches")

    def __repr__(self) -> str:
        return f"<BreachIncident metric={self.metric} penalty={self.final_penalty}>"
