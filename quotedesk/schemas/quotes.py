"""Pydantic schemas for clients, quotes and invoices.

``ClientData`` and ``QuoteData`` are the in-memory shapes the detector and
mapper consume. They validate from ORM rows (``from_attributes``) and from
posted JSON alike.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from quotedesk.models.enums import InvoiceStatus, ItemType, QuoteStatus


class ClientData(BaseModel):
    """Client identity and contact details."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID | str | None = None
    name: str | None = None
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    billing_address: str | None = None
    delivery_address: str | None = None
    vat_number: str | None = None


class QuoteItemData(BaseModel):
    """One priced line."""

    model_config = ConfigDict(from_attributes=True)

    description: str = ""
    quantity: Decimal = Field(default=Decimal("1"), ge=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    item_type: ItemType = ItemType.FIXED
    unit: str | None = None
    taxable: bool = True


class QuoteData(BaseModel):
    """A quote with its line items, as seen by detection and mapping."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID | str | None = None
    quote_number: str | None = None
    date_issued: date | None = None
    valid_until: date | None = None
    items: list[QuoteItemData] = Field(default_factory=list)
    subtotal_excl_vat: Decimal = Decimal("0")
    vat_amount: Decimal = Decimal("0")
    total_incl_vat: Decimal = Decimal("0")
    deposit_percentage: Decimal = Decimal("0")
    deposit_amount: Decimal = Decimal("0")
    balance_remaining: Decimal = Decimal("0")
    status: QuoteStatus = QuoteStatus.DRAFT
    terms_text: str | None = None
    notes: str | None = None


# ── Request bodies ───────────────────────────────────────────────────


class ClientCreate(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    company: str | None = Field(default=None, max_length=200)
    email: str | None = None
    phone: str | None = None
    billing_address: str | None = None
    delivery_address: str | None = None
    vat_number: str | None = None


class QuoteCreate(BaseModel):
    """New quote; totals are computed server-side from the items."""

    client_id: uuid.UUID
    quote_number: str | None = Field(default=None, description="Generated when omitted")
    date_issued: date | None = None
    valid_until: date | None = None
    items: list[QuoteItemData] = Field(min_length=1)
    deposit_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    terms_text: str | None = None
    notes: str | None = None


class QuoteStatusUpdate(BaseModel):
    status: QuoteStatus


# ── Responses ────────────────────────────────────────────────────────


class ClientRead(ClientData):
    id: uuid.UUID


class QuoteRead(QuoteData):
    id: uuid.UUID
    client_id: uuid.UUID


class InvoiceItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    description: str
    quantity: Decimal
    unit_price: Decimal
    item_type: str
    unit: str | None = None
    taxable: bool


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    invoice_number: str
    quote_id: uuid.UUID | None
    client_id: uuid.UUID
    date_issued: date
    due_date: date
    subtotal_excl_vat: Decimal
    vat_amount: Decimal
    total_incl_vat: Decimal
    deposit_required: bool
    deposit_amount: Decimal
    balance_remaining: Decimal
    status: InvoiceStatus
    items: list[InvoiceItemRead] = Field(default_factory=list)
