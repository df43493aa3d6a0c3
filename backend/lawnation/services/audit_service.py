"""Workflow audit trail.

Entries are flushed inside the caller's transaction, so an article
transition and its audit row commit or roll back together. A failed audit
write is logged and re-raised; the caller rolls back the whole unit.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.core.correlation import get_correlation_id, get_request_id
from lawnation.core.logging import get_logger
from lawnation.domain.workflow.capabilities import Actor
from lawnation.models import ActionAuditLog
from lawnation.utils.text import utcnow

logger = get_logger("services.audit")


def _actor_fields(actor: Actor | None) -> dict[str, Any]:
    if actor is None:
        return {"actor_user_id": None, "actor_roles": []}
    return {"actor_user_id": actor.id, "actor_roles": sorted(actor.roles)}


class AuditService:
    async def log_action(
        self,
        db: AsyncSession,
        *,
        action: str,
        entity_type: str,
        entity_id: str | int | None = None,
        actor: Actor | None = None,
        reason: str | None = None,
        from_state: str | None = None,
        to_state: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        entry = ActionAuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=None if entity_id is None else str(entity_id),
            from_state=from_state,
            to_state=to_state,
            reason=reason,
            details_json=dict(details or {}),
            request_id=get_request_id() or None,
            correlation_id=get_correlation_id() or None,
            created_at=utcnow(),
            **_actor_fields(actor),
        )
        db.add(entry)
        try:
            await db.flush()
        except SQLAlchemyError as exc:
            logger.warning("audit_log_failed", action=action, entity_type=entity_type, error=type(exc).__name__)
            raise

    async def timeline(self, db: AsyncSession, *, entity_type: str, entity_id: str | int) -> list[ActionAuditLog]:
        """Entries for one entity, oldest first."""
        stmt = (
            select(ActionAuditLog)
            .where(ActionAuditLog.entity_type == entity_type)
            .where(ActionAuditLog.entity_id == str(entity_id))
            .order_by(ActionAuditLog.created_at, ActionAuditLog.id)
        )
        return list((await db.scalars(stmt)).all())


audit_service = AuditService()
