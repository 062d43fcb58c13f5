"""Service / helper functions shared by every app."""
from __future__ import annotations

from typing import Any

from core.models import AuditLog


def create_audit_log(
    actor,
    action: str,
    entity_type: str,
    entity_id: str,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
) -> AuditLog:
    """Create and return a new :class:`~core.models.AuditLog` entry."""
    return AuditLog.objects.create(
        actor=actor,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        before_json=before,
        after_json=after,
    )
