"""Client model: the customer a quote, invoice or agreement is issued to."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quotedesk.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from quotedesk.models.quote import Quote


class Client(TimestampMixin, Base):
    """A customer of the consultancy."""

    __tablename__ = "clients"

    name: Mapped[str | None] = mapped_column(String(200))
    company: Mapped[str | None] = mapped_column(String(200))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    billing_address: Mapped[str | None] = mapped_column(Text)
    delivery_address: Mapped[str | None] = mapped_column(Text)
    vat_number: Mapped[str | None] = mapped_column(String(50))

    # Relationships
    quotes: Mapped[list[Quote]] = relationship("Quote", back_populates="client")

    @property
    def display_name(self) -> str:
        return self.company or self.name or ""

    def __repr__(self) -> str:
        return f"<Client name={self.name} company={self.company}>"
