"""Database query functions shared by the services and API routers.

Thin SQLAlchemy 2.0 selects; services own the business rules.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any

from sqlalchemy import Integer, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from quotedesk.models.agreement import ServiceAgreement
from quotedesk.models.client import Client
from quotedesk.models.enums import INACTIVE_AGREEMENT_STATUSES
from quotedesk.models.invoice import Invoice
from quotedesk.models.quote import Quote
from quotedesk.models.sla_template import SLATemplate

logger = logging.getLogger(__name__)


# ── Quotes & clients ─────────────────────────────────────────────────


async def get_quote(db: AsyncSession, quote_id: uuid.UUID) -> Quote | None:
    """Quote with items and client loaded (selectin relationships)."""
    result = await db.execute(select(Quote).where(Quote.id == quote_id))
    return result.scalar_one_or_none()


async def get_client(db: AsyncSession, client_id: uuid.UUID) -> Client | None:
    result = await db.execute(select(Client).where(Client.id == client_id))
    return result.scalar_one_or_none()


async def list_clients(db: AsyncSession, search: str | None = None, limit: int = 50) -> list[Client]:
    query = select(Client).order_by(Client.company, Client.name).limit(limit)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Client.name.ilike(pattern), Client.company.ilike(pattern)))
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_quotes(
    db: AsyncSession,
    status: str | None = None,
    client_id: uuid.UUID | None = None,
    limit: int = 50,
) -> list[Quote]:
    query = select(Quote).order_by(Quote.date_issued.desc(), Quote.created_at.desc()).limit(limit)
    if status:
        query = query.where(Quote.status == status)
    if client_id:
        query = query.where(Quote.client_id == client_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_invoice_for_quote(db: AsyncSession, quote_id: uuid.UUID) -> Invoice | None:
    result = await db.execute(select(Invoice).where(Invoice.quote_id == quote_id))
    return result.scalar_one_or_none()


# ── Templates ────────────────────────────────────────────────────────


async def get_template(db: AsyncSession, template_id: uuid.UUID) -> SLATemplate | None:
    result = await db.execute(select(SLATemplate).where(SLATemplate.id == template_id))
    return result.scalar_one_or_none()


async def get_default_template(db: AsyncSession, package_type: str) -> SLATemplate | None:
    """Most used active template for a package type."""
    result = await db.execute(
        select(SLATemplate)
        .where(SLATemplate.package_type == package_type, SLATemplate.is_active.is_(True))
        .order_by(SLATemplate.usage_count.desc(), SLATemplate.created_at.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_templates(
    db: AsyncSession,
    package_type: str | None = None,
    is_active: bool | None = True,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[SLATemplate], int]:
    """Filtered, paginated templates ordered by usage. Returns (templates, total)."""
    filters: list[Any] = []
    if package_type:
        filters.append(SLATemplate.package_type == package_type)
    if is_active is not None:
        filters.append(SLATemplate.is_active.is_(is_active))
    if search:
        pattern = f"%{search}%"
        filters.append(or_(SLATemplate.name.ilike(pattern), SLATemplate.description.ilike(pattern)))

    total_result = await db.execute(select(func.count(SLATemplate.id)).where(*filters))
    total = total_result.scalar() or 0

    result = await db.execute(
        select(SLATemplate)
        .where(*filters)
        .order_by(SLATemplate.usage_count.desc(), SLATemplate.name)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


# ── Agreements ───────────────────────────────────────────────────────


async def get_agreement(db: AsyncSession, agreement_id: uuid.UUID) -> ServiceAgreement | None:
    result = await db.execute(select(ServiceAgreement).where(ServiceAgreement.id == agreement_id))
    return result.scalar_one_or_none()


async def get_active_agreement(db: AsyncSession, quote_id: uuid.UUID) -> ServiceAgreement | None:
    """The agreement (if any) that blocks generating another for this quote."""
    result = await db.execute(
        select(ServiceAgreement)
        .where(
            ServiceAgreement.quote_id == quote_id,
            ServiceAgreement.status.not_in(INACTIVE_AGREEMENT_STATUSES),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_latest_agreement(db: AsyncSession, quote_id: uuid.UUID) -> ServiceAgreement | None:
    result = await db.execute(
        select(ServiceAgreement)
        .where(ServiceAgreement.quote_id == quote_id)
        .order_by(ServiceAgreement.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


# ── Document numbering ───────────────────────────────────────────────


async def next_document_number(
    db: AsyncSession,
    column: InstrumentedAttribute[str],
    prefix: str,
    on: date | None = None,
) -> str:
    """Next ``PREFIX-YYYY-NNNN`` number for the year, from the highest suffix in use."""
    year = (on or date.today()).year
    stem = f"{prefix}-{year}-"
    result = await db.execute(
        select(func.max(cast(func.substring(column, r"\d+$"), Integer))).where(column.like(f"{stem}%"))
    )
    current = result.scalar() or 0
    return f"{stem}{current + 1:04d}"
