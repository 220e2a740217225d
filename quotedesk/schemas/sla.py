"""Pydantic schemas for SLA templates, variable mapping and agreements."""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quotedesk.models.enums import (
    AgreementStatus,
    AutomationTrigger,
    BreachMetric,
    PackageType,
    SignatureStatus,
    VariableType,
)
from quotedesk.schemas.detection import DetectionResult

VARIABLE_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


# ── Template variables ───────────────────────────────────────────────


class VariableValidation(BaseModel):
    """Optional constraints on a variable's resolved value."""

    min: Decimal | None = None
    max: Decimal | None = None
    pattern: str | None = None
    options: list[str] | None = None


class TemplateVariableSchema(BaseModel):
    """A declared template placeholder."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(max_length=100)
    display_name: str = Field(max_length=200)
    type: VariableType = VariableType.TEXT
    is_required: bool = False
    default_value: Any = None
    data_source: str | None = None
    validation: VariableValidation | None = None
    description: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not VARIABLE_NAME_RE.match(v):
            msg = f"Invalid variable name: {v!r}"
            raise ValueError(msg)
        return v


class ResolvedVariable(BaseModel):
    """Outcome of resolving one variable."""

    name: str
    value: Any = None
    display_value: str = ""
    source: str = Field(description="override, data_source, static, fuzzy, package, default, placeholder, none")
    path: str | None = None
    confidence: float = 0.0


class MappingResult(BaseModel):
    """All resolved variables of a template plus the rendered body."""

    variables: dict[str, ResolvedVariable] = Field(default_factory=dict)
    missing_required: list[str] = Field(default_factory=list)
    unresolved_tokens: list[str] = Field(default_factory=list)
    content: str = ""


class MappingSuggestion(BaseModel):
    """Best candidate source for a variable, used by template previews."""

    variable: str
    path: str | None
    source: str
    confidence: float
    suggested_value: Any = None


# ── Templates ────────────────────────────────────────────────────────


class TemplateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    package_type: PackageType
    content: str = Field(min_length=1)
    variables: list[TemplateVariableSchema] = Field(default_factory=list)
    default_metrics: dict[str, Any] | None = None
    default_penalties: dict[str, Any] | None = None
    is_customizable: bool = True
    requires_legal_review: bool = False


class TemplateUpdate(BaseModel):
    """Partial update; ``variables`` replaces the full declaration list when given."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    package_type: PackageType | None = None
    content: str | None = Field(default=None, min_length=1)
    variables: list[TemplateVariableSchema] | None = None
    default_metrics: dict[str, Any] | None = None
    default_penalties: dict[str, Any] | None = None
    is_active: bool | None = None
    is_customizable: bool | None = None
    requires_legal_review: bool | None = None


class TemplateClone(BaseModel):
    name: str | None = None


class TemplateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None
    package_type: PackageType
    content: str
    variables: list[TemplateVariableSchema]
    default_metrics: dict[str, Any]
    default_penalties: dict[str, Any]
    is_active: bool
    is_customizable: bool
    requires_legal_review: bool
    usage_count: int
    version: int
    parent_template_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class TemplateListResponse(BaseModel):
    templates: list[TemplateRead]
    total: int
    page: int
    page_size: int


class PreviewRequest(BaseModel):
    quote_id: uuid.UUID | None = Field(default=None, description="Preview against a real quote")
    overrides: dict[str, Any] = Field(default_factory=dict)


class PreviewResponse(BaseModel):
    content: str
    variables: dict[str, ResolvedVariable]
    missing_variables: list[str]
    validation_errors: list[str]
    suggestions: list[MappingSuggestion] = Field(default_factory=list)


# ── Agreements ───────────────────────────────────────────────────────


class GenerateRequest(BaseModel):
    quote_id: uuid.UUID
    template_id: uuid.UUID | None = None
    overrides: dict[str, Any] = Field(default_factory=dict)
    context: dict[str, Any] = Field(default_factory=dict, description="Extra free text for detection")


class AgreementStatusUpdate(BaseModel):
    status: AgreementStatus


class AgreementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    agreement_number: str
    quote_id: uuid.UUID
    client_id: uuid.UUID
    template_id: uuid.UUID | None
    package_type: PackageType
    detection_confidence: int | None
    content: str
    variables: dict[str, Any]
    missing_variables: list[str]
    uptime_guarantee: Decimal
    response_time_hours: Decimal
    resolution_time_hours: Decimal
    penalty_percentage: Decimal
    penalty_cap_percentage: Decimal
    monthly_revenue: Decimal
    status: AgreementStatus
    signature_status: SignatureStatus
    generated_at: datetime | None
    sent_at: datetime | None
    accepted_at: datetime | None
    rejected_at: datetime | None
    expired_at: datetime | None
    expires_at: datetime | None
    signed_at: datetime | None
    auto_generated: bool
    automation_trigger: AutomationTrigger


class AgreementStatusForQuote(BaseModel):
    has_agreement: bool
    can_generate: bool
    agreement_id: uuid.UUID | None = None
    status: AgreementStatus | None = None
    reason: str | None = None


# ── Penalties ────────────────────────────────────────────────────────


class PenaltyRequest(BaseModel):
    monthly_revenue: Decimal = Field(ge=0)
    penalty_percentage: Decimal = Field(ge=0, le=100)
    severity: Decimal = Field(ge=0)
    penalty_cap_percentage: Decimal = Field(ge=0, le=100)


class PenaltyResult(BaseModel):
    calculated_penalty: Decimal
    penalty_cap: Decimal
    final_penalty: Decimal
    capped: bool


class BreachCreate(BaseModel):
    metric: BreachMetric
    severity: Decimal = Field(gt=0)
    description: str | None = None
    incident_date: datetime | None = None


class BreachRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    agreement_id: uuid.UUID
    metric: BreachMetric
    severity: Decimal
    description: str | None
    incident_date: datetime
    calculated_penalty: Decimal
    penalty_cap: Decimal
    final_penalty: Decimal
    resolution_status: str


class GenerateResponse(BaseModel):
    success: bool = True
    agreement: AgreementRead
    detection: DetectionResult
    missing_variables: list[str]
    unresolved_tokens: list[str]
