"""Agreement service: generate, transition and penalise service agreements.

Wires the package detector and the variable mapper into a persisted
ServiceAgreement. At most one active agreement per quote is guaranteed by
the partial unique index on ``service_agreements.quote_id``; the pre-check
here only gives a friendlier error in the common case.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

import pydantic
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.calculators.penalty import calculate_breach_penalty
from quotedesk.config import settings
from quotedesk.detection.detector import detect_package_type
from quotedesk.errors import (
    ConflictError,
    ExtractionError,
    InvalidTransitionError,
    MappingError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from quotedesk.mapping.mapper import build_context, company_from_settings, map_template
from quotedesk.models.agreement import BreachIncident, ServiceAgreement
from quotedesk.models.enums import (
    INACTIVE_AGREEMENT_STATUSES,
    AgreementStatus,
    AutomationTrigger,
    PackageType,
    QuoteStatus,
    SignatureStatus,
)
from quotedesk.models.quote import Quote
from quotedesk.models.sla_template import SLATemplate
from quotedesk.schemas.detection import DetectionResult
from quotedesk.schemas.quotes import ClientData, QuoteData
from quotedesk.schemas.sla import (
    AgreementStatusForQuote,
    BreachCreate,
    MappingResult,
    TemplateVariableSchema,
)
from quotedesk.services.audit import record_audit
from quotedesk.services.package_defaults import PACKAGE_DEFAULT_METRICS
from quotedesk.services.queries import (
    get_active_agreement,
    get_agreement,
    get_default_template,
    get_latest_agreement,
    get_quote,
    get_template,
    next_document_number,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[AgreementStatus, frozenset[AgreementStatus]] = {
    AgreementStatus.DRAFT: frozenset({AgreementStatus.GENERATED, AgreementStatus.EXPIRED}),
    AgreementStatus.GENERATED: frozenset({AgreementStatus.SENT, AgreementStatus.EXPIRED}),
    AgreementStatus.SENT: frozenset(
        {AgreementStatus.ACCEPTED, AgreementStatus.REJECTED, AgreementStatus.EXPIRED}
    ),
    AgreementStatus.ACCEPTED: frozenset({AgreementStatus.EXPIRED}),
    AgreementStatus.REJECTED: frozenset(),
    AgreementStatus.EXPIRED: frozenset(),
}

_TIMESTAMP_FIELDS: dict[AgreementStatus, str] = {
    AgreementStatus.GENERATED: "generated_at",
    AgreementStatus.SENT: "sent_at",
    AgreementStatus.ACCEPTED: "accepted_at",
    AgreementStatus.REJECTED: "rejected_at",
    AgreementStatus.EXPIRED: "expired_at",
}

_ACTIVE_QUOTE_INDEX = "uq_service_agreements_active_quote"


@dataclass
class GenerationOutcome:
    agreement: ServiceAgreement
    detection: DetectionResult
    mapping: MappingResult


def quote_eligibility(quote: Quote | QuoteData, today: date | None = None) -> tuple[bool, str | None]:
    """Whether a quote may receive an agreement, with the reason when not.

    Eligible statuses come from ``SLA_ELIGIBLE_QUOTE_STATUSES``. A sent quote
    must also still be within its validity period.
    """
    status = quote.status.value if isinstance(quote.status, QuoteStatus) else str(quote.status)
    if status not in settings.sla.eligible_statuses:
        allowed = ", ".join(sorted(settings.sla.eligible_statuses))
        return False, f"Quote status '{status}' is not eligible (allowed: {allowed})"
    if quote.total_incl_vat is None or quote.total_incl_vat <= 0:
        return False, "Quote total must be greater than zero"
    today = today or date.today()
    if status == QuoteStatus.SENT.value and quote.valid_until is not None and quote.valid_until < today:
        return False, "Quote validity period has passed"
    return True, None


def _template_variables(template: SLATemplate) -> list[TemplateVariableSchema]:
    try:
        return [TemplateVariableSchema.model_validate(v) for v in template.variables]
    except pydantic.ValidationError as exc:
        raise MappingError(
            "Template declares an invalid variable",
            {"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def _decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _first_decimal(*candidates: Any) -> Decimal:
    for candidate in candidates:
        number = _decimal(candidate)
        if number is not None:
            return number
    msg = "No numeric candidate"
    raise ValueError(msg)


class AgreementService:
    """Generates agreements from quotes and manages their lifecycle."""

    async def generate_agreement(
        self,
        db: AsyncSession,
        quote_id: uuid.UUID,
        template_id: uuid.UUID | None = None,
        overrides: dict[str, Any] | None = None,
        context: dict[str, Any] | None = None,
        trigger: AutomationTrigger = AutomationTrigger.MANUAL,
        actor: str | None = None,
    ) -> GenerationOutcome:
        """Detect, map, render and persist a new agreement for a quote.

        Raises:
            NotFoundError: quote or template absent.
            ValidationError: quote not eligible or lacks client identity.
            ConflictError: the quote already has an active agreement.
            ServiceError: context extraction or template mapping failed.
        """
        quote = await get_quote(db, quote_id)
        if quote is None:
            raise NotFoundError("Quote not found", {"quote_id": str(quote_id)})

        eligible, reason = quote_eligibility(quote)
        if not eligible:
            raise ValidationError(reason or "Quote is not eligible", {"quote_id": str(quote_id)})

        existing = await get_active_agreement(db, quote_id)
        if existing is not None:
            raise ConflictError(
                "An active agreement already exists for this quote",
                {"quote_id": str(quote_id), "agreement_id": str(existing.id)},
            )

        quote_data = QuoteData.model_validate(quote)
        client_data = ClientData.model_validate(quote.client)
        detection = detect_package_type(quote_data, client_data, context)

        template = await self._pick_template(db, template_id, detection.package_type)
        package_type = PackageType(template.package_type)

        try:
            mapping_context = build_context(
                quote_data,
                client_data,
                company_from_settings(settings.provider),
                overrides=overrides,
                package_type=package_type,
                warranty_months=settings.sla.warranty_months,
            )
            mapping = map_template(
                template.content,
                _template_variables(template),
                mapping_context,
                package_type,
                overrides,
            )
        except (ExtractionError, MappingError) as exc:
            logger.exception(
                "Agreement mapping failed: quote=%s template=%s code=%s",
                quote_id,
                template.id,
                exc.code,
            )
            raise ServiceError(
                "Failed to generate agreement",
                {"quote_id": str(quote_id), "template_id": str(template.id), "cause": exc.code},
            ) from exc

        terms = self._agreement_terms(template, package_type, mapping_context["derived"], mapping)
        now = datetime.now(UTC)
        agreement = ServiceAgreement(
            agreement_number=await next_document_number(db, ServiceAgreement.agreement_number, "SLA"),
            quote_id=quote.id,
            client_id=quote.client_id,
            template_id=template.id,
            package_type=package_type.value,
            detection_confidence=detection.confidence,
            content=mapping.content,
            variables={name: var["value"] for name, var in mapping.model_dump(mode="json")["variables"].items()},
            missing_variables=list(mapping.missing_required),
            status=AgreementStatus.GENERATED.value,
            generated_at=now,
            expires_at=now + timedelta(days=settings.sla.agreement_validity_days),
            signature_status=SignatureStatus.PENDING.value,
            auto_generated=trigger != AutomationTrigger.MANUAL,
            automation_trigger=trigger.value,
            created_by=actor,
            **terms,
        )
        db.add(agreement)
        try:
            await db.flush()
        except IntegrityError as exc:
            if _ACTIVE_QUOTE_INDEX in str(exc.orig):
                raise ConflictError(
                    "An active agreement already exists for this quote", {"quote_id": str(quote_id)}
                ) from exc
            raise ConflictError("Agreement number already in use, retry", {"quote_id": str(quote_id)}) from exc

        template.usage_count = (template.usage_count or 0) + 1
        record_audit(
            db,
            "agreement.generated",
            "service_agreements",
            agreement.id,
            actor,
            {
                "quote_id": str(quote.id),
                "template_id": str(template.id),
                "package_type": package_type.value,
                "confidence": detection.confidence,
                "missing_variables": list(mapping.missing_required),
                "trigger": trigger.value,
            },
        )
        await db.flush()

        logger.info(
            "Agreement generated: number=%s quote=%s template=%s type=%s missing=%d",
            agreement.agreement_number,
            quote.id,
            template.id,
            package_type.value,
            len(mapping.missing_required),
        )
        return GenerationOutcome(agreement=agreement, detection=detection, mapping=mapping)

    async def _pick_template(
        self,
        db: AsyncSession,
        template_id: uuid.UUID | None,
        package_type: PackageType,
    ) -> SLATemplate:
        if template_id is not None:
            template = await get_template(db, template_id)
            if template is None or not template.is_active:
                raise NotFoundError("Template not found", {"template_id": str(template_id)})
            return template

        template = await get_default_template(db, package_type.value)
        if template is None:
            raise NotFoundError(
                f"No active template for package type {package_type.value}",
                {"package_type": package_type.value},
            )
        return template

    @staticmethod
    def _agreement_terms(
        template: SLATemplate,
        package_type: PackageType,
        derived: dict[str, Any],
        mapping: MappingResult,
    ) -> dict[str, Decimal]:
        """Performance and penalty terms.

        Precedence per term: resolved template variable, template defaults,
        package defaults, then the value-tier derived metric.
        """
        resolved = {
            name: var.value
            for name, var in mapping.variables.items()
            if var.source not in ("placeholder", "none")
        }
        metrics = template.default_metrics or {}
        penalties = template.default_penalties or {}
        package_metrics = PACKAGE_DEFAULT_METRICS[package_type]

        def metric(variable: str, key: str) -> Decimal:
            return _first_decimal(resolved.get(variable), metrics.get(key), package_metrics.get(key), derived[key])

        return {
            "uptime_guarantee": metric("uptime_guarantee", "uptime_target"),
            "response_time_hours": metric("response_time_hours", "response_time_hours"),
            "resolution_time_hours": metric("resolution_time_hours", "resolution_time_hours"),
            "penalty_percentage": _first_decimal(
                resolved.get("penalty_percentage"),
                penalties.get("penalty_percentage"),
                settings.sla.default_penalty_percentage,
            ),
            "penalty_cap_percentage": _first_decimal(
                resolved.get("penalty_cap_percentage"),
                penalties.get("penalty_cap_percentage"),
                settings.sla.default_penalty_cap_percentage,
            ),
            "monthly_revenue": _first_decimal(resolved.get("monthly_revenue"), derived["monthly_value"]),
        }

    async def transition_agreement(
        self,
        db: AsyncSession,
        agreement_id: uuid.UUID,
        new_status: AgreementStatus,
        actor: str | None = None,
    ) -> ServiceAgreement:
        """Move an agreement to a new status, stamping the matching timestamp.

        Raises:
            NotFoundError: agreement absent.
            InvalidTransitionError: move not allowed from the current status.
        """
        agreement = await get_agreement(db, agreement_id)
        if agreement is None:
            raise NotFoundError("Agreement not found", {"agreement_id": str(agreement_id)})

        current = AgreementStatus(agreement.status)
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Cannot move agreement from {current.value} to {new_status.value}",
                {"agreement_id": str(agreement_id), "from": current.value, "to": new_status.value},
            )

        now = datetime.now(UTC)
        agreement.status = new_status.value
        setattr(agreement, _TIMESTAMP_FIELDS[new_status], now)
        if new_status == AgreementStatus.ACCEPTED:
            agreement.signature_status = SignatureStatus.SIGNED.value
            agreement.signed_at = now
        elif new_status == AgreementStatus.REJECTED:
            agreement.signature_status = SignatureStatus.DECLINED.value

        record_audit(
            db,
            f"agreement.{new_status.value}",
            "service_agreements",
            agreement.id,
            actor,
            {"from": current.value, "to": new_status.value},
        )
        await db.flush()

        logger.info(
            "Agreement transitioned: id=%s %s -> %s",
            agreement.id,
            current.value,
            new_status.value,
        )
        return agreement

    async def agreement_status_for_quote(self, db: AsyncSession, quote_id: uuid.UUID) -> AgreementStatusForQuote:
        """Whether a quote has an agreement and whether a new one may be generated."""
        quote = await get_quote(db, quote_id)
        if quote is None:
            raise NotFoundError("Quote not found", {"quote_id": str(quote_id)})

        eligible, reason = quote_eligibility(quote)
        latest = await get_latest_agreement(db, quote_id)
        if latest is None:
            return AgreementStatusForQuote(has_agreement=False, can_generate=eligible, reason=reason)

        status = AgreementStatus(latest.status)
        if latest.status in INACTIVE_AGREEMENT_STATUSES:
            return AgreementStatusForQuote(
                has_agreement=True,
                can_generate=eligible,
                agreement_id=latest.id,
                status=status,
                reason=reason or f"Previous agreement {status.value}; a new one may be generated",
            )
        return AgreementStatusForQuote(
            has_agreement=True,
            can_generate=False,
            agreement_id=latest.id,
            status=status,
            reason="An active agreement already exists for this quote",
        )

    async def report_breach(
        self,
        db: AsyncSession,
        agreement_id: uuid.UUID,
        breach: BreachCreate,
        actor: str | None = None,
    ) -> BreachIncident:
        """Record a breach against an accepted agreement with its computed penalty."""
        agreement = await get_agreement(db, agreement_id)
        if agreement is None:
            raise NotFoundError("Agreement not found", {"agreement_id": str(agreement_id)})
        if agreement.status != AgreementStatus.ACCEPTED.value:
            raise ValidationError(
                "Breaches can only be reported against accepted agreements",
                {"agreement_id": str(agreement_id), "status": agreement.status},
            )

        penalty = calculate_breach_penalty(
            agreement.monthly_revenue,
            agreement.penalty_percentage,
            breach.severity,
            agreement.penalty_cap_percentage,
        )
        incident = BreachIncident(
            agreement_id=agreement.id,
            metric=breach.metric.value,
            severity=breach.severity,
            description=breach.description,
            incident_date=breach.incident_date or datetime.now(UTC),
            calculated_penalty=penalty.calculated_penalty,
            penalty_cap=penalty.penalty_cap,
            final_penalty=penalty.final_penalty,
        )
        db.add(incident)
        await db.flush()

        record_audit(
            db,
            "agreement.breach_reported",
            "breach_incidents",
            incident.id,
            actor,
            {
                "agreement_id": str(agreement.id),
                "metric": breach.metric.value,
                "final_penalty": str(penalty.final_penalty),
            },
        )
        logger.info(
            "Breach recorded: agreement=%s metric=%s penalty=%s (capped=%s)",
            agreement.agreement_number,
            breach.metric.value,
            penalty.final_penalty,
            penalty.capped,
        )
        return incident


# Module-level singleton
agreement_service = AgreementService()
