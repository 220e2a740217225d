"""Error taxonomy shared by the detector, the mapper and the services.

Every error carries a machine-readable ``code`` and an HTTP status used by
the exception handler installed in ``quotedesk.main``.
"""

from __future__ import annotations

from typing import Any


class QuoteDeskError(Exception):
    """Base class for all domain errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"success": False, "error": error}


class ValidationError(QuoteDeskError):
    """Malformed or missing required input."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(QuoteDeskError):
    """Quote, client, template or agreement absent."""

    code = "NOT_FOUND"
    status_code = 404


class ConflictError(QuoteDeskError):
    """A uniqueness rule rejected the write (e.g. second active agreement)."""

    code = "CONFLICT"
    status_code = 409


class InvalidTransitionError(QuoteDeskError):
    """Status change not allowed from the current status."""

    code = "INVALID_TRANSITION"
    status_code = 409


class ExtractionError(QuoteDeskError):
    """Unexpected shape in source data while building the mapping context."""

    code = "EXTRACTION_ERROR"


class MappingError(QuoteDeskError):
    """Unrecoverable structural issue while resolving or rendering a template."""

    code = "MAPPING_ERROR"


class ServiceError(QuoteDeskError):
    """Generic wrapper for internal failures surfaced to callers."""

    code = "SERVICE_ERROR"
