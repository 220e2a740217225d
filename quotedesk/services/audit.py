"""Audit trail writer: adds an AuditLog row in the caller's transaction."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from quotedesk.models.audit import AuditLog

logger = logging.getLogger(__name__)


def record_audit(
    db: AsyncSession,
    event_type: str,
    entity: str,
    entity_id: uuid.UUID | None,
    actor: str | None = None,
    data: dict[str, Any] | None = None,
) -> AuditLog:
    """Stage an audit entry; it commits or rolls back with the change it records."""
    entry = AuditLog(
        event_type=event_type,
        entity=entity,
        entity_id=entity_id,
        actor=actor or "system",
        data=data,
    )
    db.add(entry)
    logger.debug("Audit staged: %s %s:%s by %s", event_type, entity, entity_id, entry.actor)
    return entry
