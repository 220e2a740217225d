"""Quote service: create quotes, move them through their lifecycle, invoice them.

Accepting a quote can trigger automatic agreement generation when
``SLA_AUTO_GENERATE_ON_ACCEPTANCE`` is enabled.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.calculators.totals import calculate_quote_totals
from quotedesk.config import settings
from quotedesk.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    QuoteDeskError,
    ValidationError,
)
from quotedesk.models.client import Client
from quotedesk.models.enums import AutomationTrigger, InvoiceStatus, QuoteStatus
from quotedesk.models.invoice import Invoice, InvoiceItem
from quotedesk.models.quote import Quote, QuoteItem
from quotedesk.schemas.quotes import ClientCreate, QuoteCreate
from quotedesk.services.agreements import agreement_service
from quotedesk.services.audit import record_audit
from quotedesk.services.queries import (
    get_client,
    get_invoice_for_quote,
    get_quote,
    next_document_number,
)

logger = logging.getLogger(__name__)

QUOTE_TRANSITIONS: dict[QuoteStatus, frozenset[QuoteStatus]] = {
    QuoteStatus.DRAFT: frozenset({QuoteStatus.SENT, QuoteStatus.EXPIRED}),
    QuoteStatus.SENT: frozenset({QuoteStatus.ACCEPTED, QuoteStatus.DECLINED, QuoteStatus.EXPIRED}),
    QuoteStatus.ACCEPTED: frozenset(),
    QuoteStatus.DECLINED: frozenset({QuoteStatus.DRAFT}),
    QuoteStatus.EXPIRED: frozenset({QuoteStatus.DRAFT}),
}

DEFAULT_QUOTE_VALIDITY_DAYS = 30


class ClientService:
    """Create and look up clients."""

    async def create_client(self, db: AsyncSession, data: ClientCreate, actor: str | None = None) -> Client:
        if not (data.name or data.company):
            raise ValidationError("Client name or company is required", {"field": "name"})
        client = Client(**data.model_dump())
        db.add(client)
        await db.flush()
        record_audit(db, "client.created", "clients", client.id, actor)
        logger.info("Client created: id=%s", client.id)
        return client

    async def get_client(self, db: AsyncSession, client_id: uuid.UUID) -> Client:
        client = await get_client(db, client_id)
        if client is None:
            raise NotFoundError("Client not found", {"client_id": str(client_id)})
        return client


class QuoteService:
    """Quote lifecycle and quote → invoice conversion."""

    async def get_quote(self, db: AsyncSession, quote_id: uuid.UUID) -> Quote:
        quote = await get_quote(db, quote_id)
        if quote is None:
            raise NotFoundError("Quote not found", {"quote_id": str(quote_id)})
        return quote

    async def create_quote(self, db: AsyncSession, data: QuoteCreate, actor: str | None = None) -> Quote:
        """Create a draft quote with totals computed from its items."""
        client = await get_client(db, data.client_id)
        if client is None:
            raise NotFoundError("Client not found", {"client_id": str(data.client_id)})

        totals = calculate_quote_totals(data.items, settings.provider.vat_percentage, data.deposit_percentage)
        issued = data.date_issued or date.today()
        quote = Quote(
            quote_number=data.quote_number or await next_document_number(db, Quote.quote_number, "Q", issued),
            client_id=client.id,
            date_issued=issued,
            valid_until=data.valid_until or issued + timedelta(days=DEFAULT_QUOTE_VALIDITY_DAYS),
            subtotal_excl_vat=totals.subtotal_excl_vat,
            vat_amount=totals.vat_amount,
            total_incl_vat=totals.total_incl_vat,
            deposit_percentage=data.deposit_percentage,
            deposit_amount=totals.deposit_amount,
            balance_remaining=totals.balance_remaining,
            status=QuoteStatus.DRAFT.value,
            terms_text=data.terms_text,
            notes=data.notes,
            items=[
                QuoteItem(
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    item_type=item.item_type.value,
                    unit=item.unit,
                    taxable=item.taxable,
                    position=position,
                )
                for position, item in enumerate(data.items)
            ],
        )
        db.add(quote)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError("Quote number already in use", {"quote_number": quote.quote_number}) from exc

        record_audit(
            db, "quote.created", "quotes", quote.id, actor, {"total_incl_vat": str(quote.total_incl_vat)}
        )
        logger.info("Quote created: number=%s total=%s", quote.quote_number, quote.total_incl_vat)
        return quote

    async def transition_quote(
        self,
        db: AsyncSession,
        quote_id: uuid.UUID,
        new_status: QuoteStatus,
        actor: str | None = None,
    ) -> Quote:
        """Change quote status; acceptance may auto-generate an agreement."""
        quote = await self.get_quote(db, quote_id)
        current = QuoteStatus(quote.status)
        if new_status not in QUOTE_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Cannot move quote from {current.value} to {new_status.value}",
                {"quote_id": str(quote_id), "from": current.value, "to": new_status.value},
            )

        quote.status = new_status.value
        record_audit(
            db, f"quote.{new_status.value}", "quotes", quote.id, actor, {"from": current.value, "to": new_status.value}
        )
        await db.flush()
        logger.info("Quote transitioned: number=%s %s -> %s", quote.quote_number, current.value, new_status.value)

        if new_status == QuoteStatus.ACCEPTED and settings.sla.auto_generate_on_acceptance:
            await self._auto_generate_agreement(db, quote, actor)
        return quote

    async def _auto_generate_agreement(self, db: AsyncSession, quote: Quote, actor: str | None) -> None:
        """Generate an agreement inside a savepoint; a failure leaves the acceptance intact."""
        try:
            async with db.begin_nested():
                outcome = await agreement_service.generate_agreement(
                    db,
                    quote.id,
                    trigger=AutomationTrigger.QUOTE_ACCEPTED,
                    actor=actor,
                )
        except QuoteDeskError as exc:
            logger.warning(
                "Automatic agreement generation skipped: quote=%s code=%s reason=%s",
                quote.quote_number,
                exc.code,
                exc.message,
            )
            return
        logger.info(
            "Agreement auto-generated on acceptance: quote=%s agreement=%s",
            quote.quote_number,
            outcome.agreement.agreement_number,
        )

    async def convert_to_invoice(self, db: AsyncSession, quote_id: uuid.UUID, actor: str | None = None) -> Invoice:
        """Create the single invoice for an accepted quote, copying its items.

        Raises:
            NotFoundError: quote absent.
            ValidationError: quote not accepted.
            ConflictError: quote already invoiced.
        """
        quote = await self.get_quote(db, quote_id)
        if quote.status != QuoteStatus.ACCEPTED.value:
            raise ValidationError(
                "Only accepted quotes can be converted to invoices",
                {"quote_id": str(quote_id), "status": quote.status},
            )
        existing = await get_invoice_for_quote(db, quote_id)
        if existing is not None:
            raise ConflictError(
                "Quote has already been converted to an invoice",
                {"quote_id": str(quote_id), "invoice_id": str(existing.id)},
            )

        today = date.today()
        invoice = Invoice(
            invoice_number=await next_document_number(db, Invoice.invoice_number, "INV", today),
            quote_id=quote.id,
            client_id=quote.client_id,
            date_issued=today,
            due_date=today + timedelta(days=settings.sla.invoice_due_days),
            subtotal_excl_vat=quote.subtotal_excl_vat,
            vat_amount=quote.vat_amount,
            total_incl_vat=quote.total_incl_vat,
            deposit_required=quote.deposit_percentage > 0,
            deposit_amount=quote.deposit_amount,
            balance_remaining=quote.total_incl_vat - quote.deposit_amount,
            status=InvoiceStatus.DRAFT.value,
            notes=quote.notes,
            items=[
                InvoiceItem(
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    item_type=item.item_type,
                    unit=item.unit,
                    taxable=item.taxable,
                    position=item.position,
                )
                for item in quote.items
            ],
        )
        db.add(invoice)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise ConflictError("Quote has already been converted to an invoice", {"quote_id": str(quote_id)}) from exc

        record_audit(
            db, "quote.invoiced", "invoices", invoice.id, actor, {"quote_id": str(quote.id)}
        )
        logger.info("Quote converted: quote=%s invoice=%s", quote.quote_number, invoice.invoice_number)
        return invoice


# Module-level singletons
client_service = ClientService()
quote_service = QuoteService()
