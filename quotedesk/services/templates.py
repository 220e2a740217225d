"""Template service: CRUD, cloning and previews of SLA templates."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.config import settings
from quotedesk.errors import ExtractionError, MappingError, NotFoundError, ServiceError, ValidationError
from quotedesk.mapping.mapper import (
    build_context,
    company_from_settings,
    map_template,
    suggest_mappings,
    validate_template_content,
)
from quotedesk.models.enums import PackageType
from quotedesk.models.sla_template import SLATemplate, TemplateVariable
from quotedesk.schemas.quotes import ClientData, QuoteData, QuoteItemData
from quotedesk.schemas.sla import (
    PreviewResponse,
    TemplateCreate,
    TemplateUpdate,
    TemplateVariableSchema,
)
from quotedesk.services.audit import record_audit
from quotedesk.services.package_defaults import (
    UPTIME_MAX,
    UPTIME_MIN,
    default_metrics,
    default_penalties,
)
from quotedesk.services.queries import get_quote, get_template

logger = logging.getLogger(__name__)


def _sample_quote(package_type: PackageType) -> tuple[QuoteData, ClientData]:
    """Stand-in quote used to preview a template without real data."""
    quote = QuoteData(
        id="preview",
        quote_number="Q-PREVIEW-0001",
        items=[QuoteItemData(description="Sample project deliverable", unit_price=Decimal("100000.00"))],
        subtotal_excl_vat=Decimal("100000.00"),
        vat_amount=Decimal("15000.00"),
        total_incl_vat=Decimal("115000.00"),
        notes=f"Sample {package_type.value.replace('_', ' ')} project",
    )
    client = ClientData(id="preview", name="Sample Client", company="Sample Company (Pty) Ltd")
    return quote, client


def _metric_errors(metrics: dict[str, Any] | None) -> list[str]:
    if not metrics or metrics.get("uptime_target") is None:
        return []
    try:
        uptime = Decimal(str(metrics["uptime_target"]))
    except InvalidOperation:
        return ["Uptime target must be a number"]
    if not UPTIME_MIN <= uptime <= UPTIME_MAX:
        return [f"Uptime target must be between {UPTIME_MIN} and {UPTIME_MAX}"]
    return []


def _variable_rows(variables: list[TemplateVariableSchema]) -> list[TemplateVariable]:
    return [
        TemplateVariable(
            name=v.name,
            display_name=v.display_name,
            type=v.type.value,
            is_required=v.is_required,
            default_value=v.model_dump(mode="json", include={"default_value"})["default_value"],
            data_source=v.data_source,
            validation=v.validation.model_dump(mode="json", exclude_none=True) if v.validation else None,
            description=v.description,
            position=position,
        )
        for position, v in enumerate(variables)
    ]


class TemplateService:
    """Manages SLA templates."""

    def _validate(
        self,
        content: str,
        variables: list[TemplateVariableSchema],
        metrics: dict[str, Any] | None,
    ) -> None:
        errors = validate_template_content(content, variables, settings.sla.max_template_size)
        errors.extend(_metric_errors(metrics))
        if errors:
            raise ValidationError("Invalid template", {"errors": errors})

    async def get_template(self, db: AsyncSession, template_id: uuid.UUID) -> SLATemplate:
        template = await get_template(db, template_id)
        if template is None:
            raise NotFoundError("Template not found", {"template_id": str(template_id)})
        return template

    async def create_template(
        self,
        db: AsyncSession,
        data: TemplateCreate,
        actor: str | None = None,
    ) -> SLATemplate:
        """Create a template; package defaults fill metrics and penalties left unset."""
        self._validate(data.content, data.variables, data.default_metrics)

        template = SLATemplate(
            name=data.name,
            description=data.description,
            package_type=data.package_type.value,
            content=data.content,
            default_metrics={**default_metrics(data.package_type), **(data.default_metrics or {})},
            default_penalties={**default_penalties(data.package_type), **(data.default_penalties or {})},
            is_active=True,
            is_customizable=data.is_customizable,
            requires_legal_review=data.requires_legal_review,
            usage_count=0,
            version=1,
            created_by=actor,
            variables=_variable_rows(data.variables),
        )
        db.add(template)
        await db.flush()

        record_audit(db, "template.created", "sla_templates", template.id, actor, {"name": template.name})
        logger.info("Template created: id=%s name=%r package=%s", template.id, template.name, template.package_type)
        return template

    async def update_template(
        self,
        db: AsyncSession,
        template_id: uuid.UUID,
        data: TemplateUpdate,
        actor: str | None = None,
    ) -> SLATemplate:
        """Apply a partial update; a new variable list replaces the old one and bumps the version."""
        template = await self.get_template(db, template_id)
        changes = data.model_dump(exclude_unset=True, exclude={"variables"})

        content = changes.get("content", template.content)
        if data.variables is not None:
            variables = data.variables
        else:
            variables = [TemplateVariableSchema.model_validate(v) for v in template.variables]
        self._validate(content, variables, changes.get("default_metrics"))

        for field, value in changes.items():
            if value is None and field != "description":
                continue
            if field == "package_type":
                value = PackageType(value).value
            setattr(template, field, value)

        if data.variables is not None:
            template.variables = _variable_rows(data.variables)
        if "content" in changes or data.variables is not None:
            template.version = (template.version or 1) + 1

        await db.flush()
        record_audit(
            db,
            "template.updated",
            "sla_templates",
            template.id,
            actor,
            {"fields": sorted(changes) + (["variables"] if data.variables is not None else [])},
        )
        logger.info("Template updated: id=%s version=%s", template.id, template.version)
        return template

    async def delete_template(self, db: AsyncSession, template_id: uuid.UUID, actor: str | None = None) -> SLATemplate:
        """Soft delete: the template stays referenced by past agreements."""
        template = await self.get_template(db, template_id)
        template.is_active = False
        await db.flush()
        record_audit(db, "template.deactivated", "sla_templates", template.id, actor)
        logger.info("Template deactivated: id=%s", template.id)
        return template

    async def clone_template(
        self,
        db: AsyncSession,
        template_id: uuid.UUID,
        name: str | None = None,
        actor: str | None = None,
    ) -> SLATemplate:
        source = await self.get_template(db, template_id)
        variables = [TemplateVariableSchema.model_validate(v) for v in source.variables]

        clone = SLATemplate(
            name=name or f"{source.name} (Copy)",
            description=f"{source.description or ''} (Clone)".strip(),
            package_type=source.package_type,
            content=source.content,
            default_metrics=dict(source.default_metrics or {}),
            default_penalties=dict(source.default_penalties or {}),
            is_active=True,
            is_customizable=source.is_customizable,
            requires_legal_review=source.requires_legal_review,
            usage_count=0,
            version=1,
            parent_template_id=source.id,
            created_by=actor,
            variables=_variable_rows(variables),
        )
        db.add(clone)
        await db.flush()

        record_audit(db, "template.cloned", "sla_templates", clone.id, actor, {"source_id": str(source.id)})
        logger.info("Template cloned: source=%s clone=%s", source.id, clone.id)
        return clone

    async def preview_template(
        self,
        db: AsyncSession,
        template_id: uuid.UUID,
        quote_id: uuid.UUID | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> PreviewResponse:
        """Render a template against a real or sample quote without persisting anything."""
        template = await self.get_template(db, template_id)
        package_type = PackageType(template.package_type)

        if quote_id is not None:
            quote = await get_quote(db, quote_id)
            if quote is None:
                raise NotFoundError("Quote not found", {"quote_id": str(quote_id)})
            quote_data = QuoteData.model_validate(quote)
            client_data = ClientData.model_validate(quote.client)
        else:
            quote_data, client_data = _sample_quote(package_type)

        try:
            variables = [TemplateVariableSchema.model_validate(v) for v in template.variables]
            context = build_context(
                quote_data,
                client_data,
                company_from_settings(settings.provider),
                overrides=overrides,
                package_type=package_type,
                warranty_months=settings.sla.warranty_months,
            )
            mapping = map_template(template.content, variables, context, package_type, overrides)
        except (ExtractionError, MappingError) as exc:
            logger.exception("Template preview failed: template=%s quote=%s", template.id, quote_id)
            raise ServiceError(
                "Failed to preview template",
                {"template_id": str(template.id), "cause": exc.code},
            ) from exc

        return PreviewResponse(
            content=mapping.content,
            variables=mapping.variables,
            missing_variables=mapping.missing_required,
            validation_errors=validate_template_content(template.content, variables, settings.sla.max_template_size),
            suggestions=suggest_mappings(variables, context, package_type),
        )


# Module-level singleton
template_service = TemplateService()
