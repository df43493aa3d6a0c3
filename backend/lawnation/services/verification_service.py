"""
Law Nation Editorial - Guest Submission Verification
===================================================
A guest submission is parked here (PENDING_VERIFICATION) until the guest
confirms the emailed link or types the 6-digit code. Only then is the Article
created, at PENDING_ADMIN_REVIEW.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.core.config import get_settings
from lawnation.core.exceptions import InvalidPayloadError, VerificationError
from lawnation.core.logging import get_logger
from lawnation.core.security import (
    fingerprint_token,
    hash_secret,
    new_verification_code,
    new_verification_token,
    verify_secret,
)
from lawnation.domain.workflow.capabilities import Actor
from lawnation.domain.workflow.state_machine import WorkflowAction
from lawnation.models import Article, ArticleStatus, SubmissionVerification
from lawnation.schemas.submission import SubmissionPayload
from lawnation.services import notification_service as events
from lawnation.services.workflow_service import TransitionResult, WorkflowService, workflow_service
from lawnation.utils.text import normalize_email, utcnow

logger = get_logger("services.verification")
settings = get_settings()


@dataclass(slots=True)
class PendingSubmission:
    verification_id: int
    email: str
    status: ArticleStatus
    expires_at: Any


class VerificationService:
    def __init__(self, *, workflow: WorkflowService | None = None, notifier: Any | None = None) -> None:
        self.workflow = workflow or workflow_service
        self.notifier = notifier or events.notification_service

    def _ttl(self) -> timedelta:
        return timedelta(hours=settings.verification_ttl_hours)

    async def start(self, db: AsyncSession, *, payload: dict[str, Any]) -> PendingSubmission:
        """Guest submission: store the payload and send a token link plus a code."""
        try:
            data = SubmissionPayload.model_validate(payload)
        except ValidationError as exc:
            raise InvalidPayloadError(
                "Invalid submission payload",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

        token = new_verification_token()
        code = new_verification_code(settings.verification_code_length)
        record = SubmissionVerification(
            email=data.author_email,
            token_hash=fingerprint_token(token),
            code_hash=hash_secret(code),
            payload_json=data.model_dump(mode="json"),
            expires_at=utcnow() + self._ttl(),
            created_at=utcnow(),
        )
        db.add(record)
        await db.commit()
        await db.refresh(record)

        logger.info("guest_submission_pending", verification_id=record.id, email=record.email)
        await self.notifier.notify(
            events.VERIFICATION_CODE_ISSUED,
            [record.email],
            {"verification_id": record.id, "title": data.title, "token": token, "code": code},
        )
        return PendingSubmission(
            verification_id=record.id,
            email=record.email,
            status=ArticleStatus.PENDING_VERIFICATION,
            expires_at=record.expires_at,
        )

    def _check_usable(self, record: SubmissionVerification) -> None:
        if record.is_consumed:
            raise VerificationError("Token already used", details={"verification_id": record.id})
        if record.expires_at <= utcnow():
            raise VerificationError("Verification expired. Please submit again.", details={"verification_id": record.id})

    async def _consume(self, db: AsyncSession, record: SubmissionVerification) -> TransitionResult:
        async def _mark_consumed(article: Article) -> None:
            record.consumed_at = utcnow()
            record.article_id = article.id

        return await self.workflow.create_article(
            db,
            payload=record.payload_json,
            actor=Actor.system(),
            action=WorkflowAction.VERIFY,
            before_commit=_mark_consumed,
        )

    async def confirm_by_token(self, db: AsyncSession, token: str) -> TransitionResult:
        row = await db.execute(
            select(SubmissionVerification)
            .where(SubmissionVerification.token_hash == fingerprint_token(token or ""))
            .with_for_update()
        )
        record = row.scalar_one_or_none()
        if record is None:
            raise VerificationError("Invalid verification link")
        self._check_usable(record)
        return await self._consume(db, record)

    async def verify_by_code(self, db: AsyncSession, *, email: str, code: str) -> TransitionResult:
        rows = await db.execute(
            select(SubmissionVerification)
            .where(
                SubmissionVerification.email == normalize_email(email),
                SubmissionVerification.consumed_at.is_(None),
            )
            .order_by(SubmissionVerification.created_at.desc(), SubmissionVerification.id.desc())
            .limit(1)
            .with_for_update()
        )
        record = rows.scalar_one_or_none()
        if record is None:
            raise VerificationError("No pending submission for this email")
        self._check_usable(record)
        if not verify_secret((code or "").strip(), record.code_hash):
            raise VerificationError("Invalid verification code")
        return await self._consume(db, record)

    async def resend_code(self, db: AsyncSession, *, email: str) -> PendingSubmission:
        """Issue a fresh code (and link) for the newest pending record."""
        rows = await db.execute(
            select(SubmissionVerification)
            .where(
                SubmissionVerification.email == normalize_email(email),
                SubmissionVerification.consumed_at.is_(None),
            )
            .order_by(SubmissionVerification.created_at.desc(), SubmissionVerification.id.desc())
            .limit(1)
        )
        record = rows.scalar_one_or_none()
        if record is None:
            raise VerificationError("No pending submission for this email")

        token = new_verification_token()
        code = new_verification_code(settings.verification_code_length)
        record.token_hash = fingerprint_token(token)
        record.code_hash = hash_secret(code)
        record.expires_at = utcnow() + self._ttl()
        record.resend_count = int(record.resend_count or 0) + 1
        await db.commit()

        logger.info("verification_code_resent", verification_id=record.id, resend_count=record.resend_count)
        await self.notifier.notify(
            events.VERIFICATION_CODE_ISSUED,
            [record.email],
            {"verification_id": record.id, "token": token, "code": code, "resend": True},
        )
        return PendingSubmission(
            verification_id=record.id,
            email=record.email,
            status=ArticleStatus.PENDING_VERIFICATION,
            expires_at=record.expires_at,
        )

    async def cleanup_expired(self, db: AsyncSession) -> int:
        result = await db.execute(
            delete(SubmissionVerification).where(
                SubmissionVerification.expires_at < utcnow(),
                SubmissionVerification.consumed_at.is_(None),
            )
        )
        await db.commit()
        deleted = int(result.rowcount or 0)
        if deleted:
            logger.info("expired_verifications_deleted", deleted=deleted)
        return deleted


verification_service = VerificationService()
