"""Invoice and InvoiceItem models: created by converting an accepted quote."""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotedesk.models.base import Base, TimestampMixin
from quotedesk.models.enums import InvoiceStatus, ItemType

if TYPE_CHECKING:
    from quotedesk.models.client import Client


class Invoice(TimestampMixin, Base):
    """A bill issued to a client, at most one per quote."""

    __tablename__ = "invoices"

    invoice_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    quote_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quotes.id"), unique=True
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True
    )

    date_issued: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)

    subtotal_excl_vat: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    vat_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_incl_vat: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    deposit_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deposit_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    balance_remaining: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=InvoiceStatus.DRAFT.value, nullable=False, index=True
    )
    notes: Mapped[str | None] = mapped_column(Text)

    # Relationships
    client: Mapped[Client] = relationship("Client")
    items: Mapped[list[InvoiceItem]] = relationship(
        "InvoiceItem",
        back_populates="invoice",
        lazy="selectin",
        order_by="InvoiceItem.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Invoice number={self.invoice_number} status={self.status}>"


class InvoiceItem(TimestampMixin, Base):
    """A line copied from the originating quote."""

    __tablename__ = "invoice_items"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    item_type: Mapped[str] = mapped_column(String(20), default=ItemType.FIXED.value, nullable=False)
    unit: Mapped[str | None] = mapped_column(String(30))
    taxable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    invoice: Mapped[Invoice] = relationship("Invoice", back_populates="items")
