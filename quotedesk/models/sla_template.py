"""SLATemplate and TemplateVariable models.

A template body contains ``{{variable}}`` placeholders; each placeholder is
declared as a TemplateVariable row carrying its type, default and data source.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotedesk.models.base import Base, TimestampMixin
from quotedesk.models.enums import VariableType



class SLATemplate(TimestampMixin, Base):
    """A reusable agreement body for one package type."""

    __tablename__ = "sla_templates"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    package_type: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True, comment="PackageType enum value"
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # {"uptime_target", "response_time_hours", "resolution_time_hours", "availability_hours", "exclusions"}
    default_metrics: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    # {"penalty_percentage", "penalty_cap_percentage", "grace_period_hours", "credit_terms"}
    default_penalties: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_customizable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    requires_legal_review: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    parent_template_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("sla_templates.id")
    )
    created_by: Mapped[str | None] = mapped_column(String(100))

    # Relationships
    variables: Mapped[list[TemplateVariable]] = relationship(
        "TemplateVariable",
        back_populates="template",
        lazy="selectin",
        order_by="TemplateVariable.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<SLATemplate name={self.name!r} package={self.package_type}>"


class TemplateVariable(TimestampMixin, Base):
    """A declared placeholder of a template."""

    __tablename__ = "template_variables"

    template_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("sla_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(20), default=VariableType.TEXT.value, nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    default_value: Mapped[Any] = mapped_column(JSONB)
    data_source: Mapped[str | None] = mapped_column(String(255), comment="Dotted path into the mapping context")
    # {"min", "max", "pattern", "options"}
    validation: Mapped[dict[str, Any] | None] = mapped_column(JSONB)
    description: Mapped[str | None] = mapped_column(Text)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    template: Mapped[SLATemplate] = relationship("SLATemplate", back_populates="variables")

    def __repr__(self) -> str:
        return f"<TemplateVariable {self.name} type={self.type}>"
