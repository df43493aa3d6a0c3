"""Fire-and-forget workflow notifications (structured log + optional webhook)."""

from __future__ import annotations

from typing import Any

import httpx

from lawnation.core.config import get_settings
from lawnation.core.logging import get_logger

logger = get_logger("notification_service")
settings = get_settings()

# Workflow events that fan out to people.
ARTICLE_SUBMITTED = "article.submitted"
VERIFICATION_CODE_ISSUED = "submission.verification_code"
EDITOR_ASSIGNED = "article.editor_assigned"
REVIEWER_ASSIGNED = "article.reviewer_assigned"
EDITOR_APPROVED = "article.editor_approved"
REVIEWER_APPROVED = "article.reviewer_approved"
CORRECTION_UPLOADED = "article.correction_uploaded"
ASSIGNMENT_RELEASED = "article.assignment_released"
ARTICLE_PUBLISHED = "article.published"
ARTICLE_REJECTED = "article.rejected"


class NotificationService:
    def __init__(self, *, webhook_url: str | None = None, enabled: bool | None = None) -> None:
        self.webhook_url = webhook_url if webhook_url is not None else settings.notification_webhook_url
        self.enabled = settings.notifications_enabled if enabled is None else enabled

    async def notify(self, event: str, recipients: list[str], context: dict[str, Any] | None = None) -> bool:
        """Never raises; returns whether the webhook accepted the event."""
        if not self.enabled:
            return False
        clean = sorted({r for r in recipients if r})
        # Verification codes must not end up in logs.
        safe_context = {k: v for k, v in (context or {}).items() if k not in {"code", "token"}}
        logger.info("notification_emitted", notification_event=event, recipients=clean, **safe_context)
        if not self.webhook_url:
            return False

        payload = {"event": event, "recipients": clean, "context": context or {}}
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(self.webhook_url, json=payload, timeout=10)
                if resp.status_code < 300:
                    return True
                logger.error("notification_webhook_error", status=resp.status_code, notification_event=event)
                return False
        except Exception as e:  # noqa: BLE001
            logger.error("notification_webhook_exception", error=str(e), notification_event=event)
            return False


notification_service = NotificationService()
