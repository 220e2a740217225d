"""Quotes and clients API: CRUD, status changes and invoice conversion.

All routes require HTTP Basic Auth via the verify_user dependency.
"""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.api.auth import verify_user
from quotedesk.db.engine import get_session
from quotedesk.models.enums import QuoteStatus
from quotedesk.schemas.quotes import (
    ClientCreate,
    ClientRead,
    InvoiceRead,
    QuoteCreate,
    QuoteRead,
    QuoteStatusUpdate,
)
from quotedesk.services.queries import list_clients, list_quotes
from quotedesk.services.quotes import client_service, quote_service

router = APIRouter(prefix="/api", tags=["quotes"])


# ── Clients ──────────────────────────────────────────────────────────


@router.get("/clients", response_model=list[ClientRead])
async def clients_list(
    search: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> list[ClientRead]:
    return [ClientRead.model_validate(c) for c in await list_clients(db, search=search, limit=limit)]


@router.post("/clients", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
async def client_create(
    body: ClientCreate,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> ClientRead:
    return ClientRead.model_validate(await client_service.create_client(db, body, actor=user))


@router.get("/clients/{client_id}", response_model=ClientRead)
async def client_detail(
    client_id: uuid.UUID,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> ClientRead:
    return ClientRead.model_validate(await client_service.get_client(db, client_id))


# ── Quotes ───────────────────────────────────────────────────────────


@router.get("/quotes", response_model=list[QuoteRead])
async def quotes_list(
    quote_status: QuoteStatus | None = Query(None, alias="status"),
    client_id: uuid.UUID | None = None,
    limit: int = Query(50, ge=1, le=200),
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> list[QuoteRead]:
    quotes = await list_quotes(
        db,
        status=quote_status.value if quote_status else None,
        client_id=client_id,
        limit=limit,
    )
    return [QuoteRead.model_validate(q) for q in quotes]


@router.post("/quotes", response_model=QuoteRead, status_code=status.HTTP_201_CREATED)
async def quote_create(
    body: QuoteCreate,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> QuoteRead:
    return QuoteRead.model_validate(await quote_service.create_quote(db, body, actor=user))


@router.get("/quotes/{quote_id}", response_model=QuoteRead)
async def quote_detail(
    quote_id: uuid.UUID,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> QuoteRead:
    return QuoteRead.model_validate(await quote_service.get_quote(db, quote_id))


@router.patch("/quotes/{quote_id}/status", response_model=QuoteRead)
async def quote_status_update(
    quote_id: uuid.UUID,
    body: QuoteStatusUpdate,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> QuoteRead:
    quote = await quote_service.transition_quote(db, quote_id, body.status, actor=user)
    return QuoteRead.model_validate(quote)


@router.post("/quotes/{quote_id}/convert-to-invoice", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
async def quote_convert(
    quote_id: uuid.UUID,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> InvoiceRead:
    return InvoiceRead.model_validate(await quote_service.convert_to_invoice(db, quote_id, actor=user))
