"""Quote and QuoteItem models.

A quote is created by a user, mutated only on status transition, and
referenced by at most one active ServiceAgreement and at most one Invoice.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotedesk.models.base import Base, TimestampMixin
from quotedesk.models.enums import ItemType, QuoteStatus

if TYPE_CHECKING:
    from quotedesk.models.client import Client


class Quote(TimestampMixin, Base):
    """A priced proposal sent to a client."""

    __tablename__ = "quotes"

    quote_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True
    )

    date_issued: Mapped[date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[date | None] = mapped_column(Date)

    # Totals (ZAR, VAT inclusive where stated)
    subtotal_excl_vat: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    vat_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    total_incl_vat: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    deposit_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)
    deposit_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    balance_remaining: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=QuoteStatus.DRAFT.value, nullable=False, index=True
    )
    terms_text: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)

    # Relationships
    client: Mapped[Client] = relationship("Client", back_populates="quotes", lazy="selectin")
    items: Mapped[list[QuoteItem]] = relationship(
        "QuoteItem",
        back_populates="quote",
        lazy="selectin",
        order_by="QuoteItem.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Quote number={self.quote_number} status={self.status}>"


class QuoteItem(TimestampMixin, Base):
    """A single priced line on a quote."""

    __tablename__ = "quote_items"

    quote_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("1"), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    item_type: Mapped[str] = mapped_column(String(20), default=ItemType.FIXED.value, nullable=False)
    unit: Mapped[str | None] = mapped_column(String(30))
    taxable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    quote: Mapped[Quote] = relationship("Quote", back_populates="items")

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price

    def __repr__(self) -> str:
        return f"<QuoteItem {self.description[:30]!r} qty={self.quantity}>"
