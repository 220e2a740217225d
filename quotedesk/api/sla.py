"""SLA API: package detection, templates, agreement generation and penalties.

All routes require HTTP Basic Auth via the verify_user dependency.
"""
# ruff: noqa: B008  — Depends() in function defaults is standard FastAPI

from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.api.auth import verify_user
from quotedesk.calculators.penalty import calculate_breach_penalty
from quotedesk.db.engine import get_session
from quotedesk.detection.detector import detect_package_type, package_catalog, validate_detection
from quotedesk.errors import NotFoundError
from quotedesk.models.enums import PackageType
from quotedesk.schemas.detection import DetectRequest, DetectResponse
from quotedesk.schemas.sla import (
    AgreementRead,
    AgreementStatusForQuote,
    AgreementStatusUpdate,
    BreachCreate,
    BreachRead,
    GenerateRequest,
    GenerateResponse,
    PenaltyRequest,
    PenaltyResult,
    PreviewRequest,
    PreviewResponse,
    TemplateClone,
    TemplateCreate,
    TemplateListResponse,
    TemplateRead,
    TemplateUpdate,
)
from quotedesk.services.agreements import agreement_service
from quotedesk.services.queries import get_agreement, list_templates
from quotedesk.services.templates import template_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sla", tags=["sla"])


# ── Package detection ────────────────────────────────────────────────


@router.get("/detect-package-type")
async def supported_package_types(user: str = Depends(verify_user)) -> dict[str, Any]:
    """Supported package types with their typical ranges and thresholds."""
    return {"success": True, **package_catalog()}


@router.post("/detect-package-type", response_model=DetectResponse)
async def detect(body: DetectRequest, user: str = Depends(verify_user)) -> DetectResponse:
    detection = detect_package_type(body.quote, body.client, body.context)
    validation = validate_detection(detection, body.quote) if body.include_validation and body.quote else None
    return DetectResponse(detection=detection, validation=validation)


# ── Templates ────────────────────────────────────────────────────────


@router.get("/templates", response_model=TemplateListResponse)
async def templates_list(
    package_type: PackageType | None = None,
    is_active: bool | None = True,
    search: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> TemplateListResponse:
    templates, total = await list_templates(
        db,
        package_type=package_type.value if package_type else None,
        is_active=is_active,
        search=search,
        page=page,
        page_size=page_size,
    )
    return TemplateListResponse(
        templates=[TemplateRead.model_validate(t) for t in templates],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/templates", response_model=TemplateRead, status_code=status.HTTP_201_CREATED)
async def template_create(
    body: TemplateCreate,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> TemplateRead:
    template = await template_service.create_template(db, body, actor=user)
    return TemplateRead.model_validate(template)


@router.get("/templates/{template_id}", response_model=TemplateRead)
async def template_detail(
    template_id: uuid.UUID,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> TemplateRead:
    return TemplateRead.model_validate(await template_service.get_template(db, template_id))


@router.put("/templates/{template_id}", response_model=TemplateRead)
async def template_update(
    template_id: uuid.UUID,
    body: TemplateUpdate,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> TemplateRead:
    template = await template_service.update_template(db, template_id, body, actor=user)
    return TemplateRead.model_validate(template)


@router.delete("/templates/{template_id}")
async def template_delete(
    template_id: uuid.UUID,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    await template_service.delete_template(db, template_id, actor=user)
    return {"success": True, "template_id": str(template_id)}


@router.post("/templates/{template_id}/clone", response_model=TemplateRead, status_code=status.HTTP_201_CREATED)
async def template_clone(
    template_id: uuid.UUID,
    body: TemplateClone,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> TemplateRead:
    clone = await template_service.clone_template(db, template_id, name=body.name, actor=user)
    return TemplateRead.model_validate(clone)


@router.post("/templates/{template_id}/preview", response_model=PreviewResponse)
async def template_preview(
    template_id: uuid.UUID,
    body: PreviewRequest,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> PreviewResponse:
    return await template_service.preview_template(db, template_id, body.quote_id, body.overrides)


# ── Agreements ───────────────────────────────────────────────────────


@router.post("/generate", response_model=GenerateResponse, status_code=status.HTTP_201_CREATED)
async def generate(
    body: GenerateRequest,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> GenerateResponse:
    outcome = await agreement_service.generate_agreement(
        db,
        body.quote_id,
        template_id=body.template_id,
        overrides=body.overrides,
        context=body.context,
        actor=user,
    )
    return GenerateResponse(
        agreement=AgreementRead.model_validate(outcome.agreement),
        detection=outcome.detection,
        missing_variables=outcome.mapping.missing_required,
        unresolved_tokens=outcome.mapping.unresolved_tokens,
    )


@router.get("/quotes/{quote_id}/status", response_model=AgreementStatusForQuote)
async def quote_agreement_status(
    quote_id: uuid.UUID,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> AgreementStatusForQuote:
    return await agreement_service.agreement_status_for_quote(db, quote_id)


@router.get("/agreements/{agreement_id}", response_model=AgreementRead)
async def agreement_detail(
    agreement_id: uuid.UUID,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> AgreementRead:
    agreement = await get_agreement(db, agreement_id)
    if agreement is None:
        raise NotFoundError("Agreement not found", {"agreement_id": str(agreement_id)})
    return AgreementRead.model_validate(agreement)


@router.patch("/agreements/{agreement_id}/status", response_model=AgreementRead)
async def agreement_status_update(
    agreement_id: uuid.UUID,
    body: AgreementStatusUpdate,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> AgreementRead:
    agreement = await agreement_service.transition_agreement(db, agreement_id, body.status, actor=user)
    return AgreementRead.model_validate(agreement)


@router.post("/agreements/{agreement_id}/breaches", response_model=BreachRead, status_code=status.HTTP_201_CREATED)
async def breach_report(
    agreement_id: uuid.UUID,
    body: BreachCreate,
    user: str = Depends(verify_user),
    db: AsyncSession = Depends(get_session),
) -> BreachRead:
    incident = await agreement_service.report_breach(db, agreement_id, body, actor=user)
    return BreachRead.model_validate(incident)


@router.post("/penalty", response_model=PenaltyResult)
async def penalty(body: PenaltyRequest, user: str = Depends(verify_user)) -> PenaltyResult:
    return calculate_breach_penalty(
        body.monthly_revenue,
        body.penalty_percentage,
        body.severity,
        body.penalty_cap_percentage,
    )
