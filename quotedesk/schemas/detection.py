"""Pydantic schemas for package-type detection."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from quotedesk.models.enums import ConfidenceLevel, PackageType
from quotedesk.schemas.quotes import ClientData, QuoteData


class DetectionResult(BaseModel):
    """Outcome of classifying one quote."""

    package_type: PackageType
    confidence: int = Field(ge=0, le=100)
    level: ConfidenceLevel
    scores: dict[PackageType, float] = Field(default_factory=dict)
    reasoning: dict[PackageType, list[str]] = Field(default_factory=dict)
    rationale: str = ""


class DetectionValidation(BaseModel):
    """Sanity checks on a detection result."""

    is_valid: bool
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[PackageType] = Field(default_factory=list)


class DetectRequest(BaseModel):
    """Body of POST /api/sla/detect-package-type."""

    quote: QuoteData | None = None
    client: ClientData | None = None
    context: dict[str, Any] = Field(default_factory=dict)
    include_validation: bool = False


class DetectResponse(BaseModel):
    success: bool = True
    detection: DetectionResult
    validation: DetectionValidation | None = None
