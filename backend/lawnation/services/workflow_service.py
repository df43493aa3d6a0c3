"""
Law Nation Editorial - Workflow Service
======================================
Executes every article transition as one unit of work:

    lock row -> check table -> check capability -> action guards/effects
    -> field consistency -> audit row -> COMMIT -> background jobs, notifications

Any error before the commit rolls back the status change together with every
version, change-log, assignment and audit row written for it. Background jobs
and notifications run only after a successful commit and cannot fail the
transition.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from lawnation.core.config import get_settings
from lawnation.core.exceptions import (
    ArticleNotFoundError,
    AssigneeNotFoundError,
    CitationRequiredError,
    DuplicateCitationError,
    InvalidPayloadError,
    InvalidTransitionError,
    TransitionConflictError,
    WorkflowError,
)
from lawnation.core.logging import get_logger
from lawnation.domain.citation import validate_citation
from lawnation.domain.workflow.capabilities import Actor, Capability, require_capability
from lawnation.domain.workflow.state_machine import (
    EDITOR_STAGE,
    REVIEWER_STAGE,
    WorkflowAction,
    allowed_actions,
    consistency_violations,
)
from lawnation.models import (
    Article,
    ArticleStatus,
    ChangeLogEntry,
    DocumentFormat,
    User,
    UserRole,
    VersionRole,
)
from lawnation.repositories import (
    article_repository,
    change_log_repository,
    document_version_store,
    user_repository,
)
from lawnation.schemas.submission import SubmissionPayload
from lawnation.services import notification_service as events
from lawnation.services.assignment_history_service import AssignmentStage, assignment_history_service
from lawnation.services.audit_service import audit_service
from lawnation.services.job_queue_service import (
    JOB_CHANGE_DIFF,
    JOB_DOCUMENT_CONVERT,
    JOB_ORIGINAL_CONVERT,
    job_queue_service,
)
from lawnation.services.state_transition_service import state_transition_service
from lawnation.utils.text import utcnow

logger = get_logger("services.workflow")
settings = get_settings()

AUDIT_ACTION_NAMES = {
    WorkflowAction.REASSIGN_EDITOR: "EDITOR_REASSIGN",
    WorkflowAction.REASSIGN_REVIEWER: "REVIEWER_REASSIGN",
    WorkflowAction.RELEASE_EDITOR: "EDITOR_UNASSIGN",
    WorkflowAction.RELEASE_REVIEWER: "REVIEWER_UNASSIGN",
}

_OTHER_FORMAT = {DocumentFormat.PDF: DocumentFormat.DOCX, DocumentFormat.DOCX: DocumentFormat.PDF}


@dataclass(slots=True)
class TransitionRequest:
    action: WorkflowAction
    article_id: int | None
    actor: Actor
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class TransitionResult:
    new_status: ArticleStatus
    article: Article
    change_log_entry: ChangeLogEntry | None = None


@dataclass(slots=True)
class _Effects:
    """Work collected inside the unit and released only after commit."""

    jobs: list[tuple[str, dict[str, Any], str | None]] = field(default_factory=list)
    notifications: list[tuple[str, list[str], dict[str, Any]]] = field(default_factory=list)
    audit_details: dict[str, Any] = field(default_factory=dict)
    reason: str | None = None

    def job(self, job_type: str, payload: dict[str, Any], entity_id: int | str | None = None) -> None:
        self.jobs.append((job_type, payload, str(entity_id) if entity_id is not None else None))

    def notify(self, event: str, recipients: list[str | None], context: dict[str, Any] | None = None) -> None:
        self.notifications.append((event, [r for r in recipients if r], context or {}))


Handler = Callable[[AsyncSession, Article, ArticleStatus, TransitionRequest, _Effects], Awaitable[ChangeLogEntry | None]]


def _payload_int(payload: dict[str, Any], key: str) -> int:
    value = payload.get(key)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidPayloadError(f"'{key}' must be a user id", details={"field": key}) from None


def _payload_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidPayloadError(f"'{key}' must be a string", details={"field": key})
    return value.strip() or None


class WorkflowService:
    def __init__(self, *, dispatcher: Any | None = None, notifier: Any | None = None) -> None:
        self.dispatcher = dispatcher or job_queue_service
        self.notifier = notifier or events.notification_service
        self._handlers: dict[WorkflowAction, Handler] = {
            WorkflowAction.ASSIGN_EDITOR: self._assign_editor,
            WorkflowAction.REASSIGN_EDITOR: self._reassign_editor,
            WorkflowAction.UPLOAD_EDITOR_CORRECTION: self._upload_editor_correction,
            WorkflowAction.EDITOR_APPROVE: self._editor_approve,
            WorkflowAction.ASSIGN_REVIEWER: self._assign_reviewer,
            WorkflowAction.REASSIGN_REVIEWER: self._reassign_reviewer,
            WorkflowAction.UPLOAD_REVIEWER_CORRECTION: self._upload_reviewer_correction,
            WorkflowAction.REVIEWER_APPROVE: self._reviewer_approve,
            WorkflowAction.SET_CITATION_NUMBER: self._set_citation_number,
            WorkflowAction.PUBLISH: self._publish,
            WorkflowAction.RELEASE_EDITOR: self._release_editor,
            WorkflowAction.RELEASE_REVIEWER: self._release_reviewer,
            WorkflowAction.REJECT: self._reject,
            WorkflowAction.DELETE: self._delete,
        }

    # ── Entry points ──

    async def dispatch(self, db: AsyncSession, request: TransitionRequest) -> TransitionResult:
        action = WorkflowAction(request.action)
        if action == WorkflowAction.SUBMIT and request.article_id is None:
            return await self.submit(db, payload=request.payload, actor=request.actor)
        if request.article_id is None:
            raise InvalidPayloadError("article_id is required", details={"action": action.value})
        if action not in self._handlers:
            # submit/verify never apply to an existing article.
            article = await article_repository.get(db, request.article_id)
            if article is None:
                raise ArticleNotFoundError(request.article_id)
            raise InvalidTransitionError(
                action=action.value,
                current_status=article.status.value,
                allowed_actions=[a.value for a in allowed_actions(article.status)],
            )
        return await self._run(db, request)

    async def submit(self, db: AsyncSession, *, payload: dict[str, Any], actor: Actor) -> TransitionResult:
        """Authenticated submission: the article starts at admin review."""
        return await self.create_article(
            db,
            payload=payload,
            actor=actor,
            action=WorkflowAction.SUBMIT,
            author_user_id=actor.id,
        )

    async def create_article(
        self,
        db: AsyncSession,
        *,
        payload: dict[str, Any] | SubmissionPayload,
        actor: Actor,
        action: WorkflowAction,
        author_user_id: int | None = None,
        before_commit: Callable[[Article], Awaitable[None]] | None = None,
    ) -> TransitionResult:
        try:
            data = payload if isinstance(payload, SubmissionPayload) else SubmissionPayload.model_validate(payload)
        except ValidationError as exc:
            raise InvalidPayloadError(
                "Invalid submission payload",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            ) from exc

        effects = _Effects()
        try:
            article = Article(
                slug=await article_repository.unique_slug(db, data.title),
                title=data.title,
                abstract=data.abstract,
                category=data.category,
                keywords=data.keywords,
                author_name=data.author_name,
                author_email=data.author_email,
                author_user_id=author_user_id,
                second_author_name=data.second_author_name,
                second_author_email=data.second_author_email,
                status=ArticleStatus.PENDING_ADMIN_REVIEW,
                original_pdf_url=data.pdf_url,
                original_word_url=data.docx_url,
            )
            db.add(article)
            await db.flush()

            pdf = await document_version_store.record(
                db,
                article_id=article.id,
                role=VersionRole.ORIGINAL,
                format=DocumentFormat.PDF,
                url=data.pdf_url,
                produced_by=actor.id,
                revision=1,
                status_at_upload=ArticleStatus.PENDING_ADMIN_REVIEW,
            )
            if data.docx_url:
                await document_version_store.record(
                    db,
                    article_id=article.id,
                    role=VersionRole.ORIGINAL,
                    format=DocumentFormat.DOCX,
                    url=data.docx_url,
                    produced_by=actor.id,
                    revision=1,
                    status_at_upload=ArticleStatus.PENDING_ADMIN_REVIEW,
                )
            else:
                effects.job(
                    JOB_ORIGINAL_CONVERT,
                    {"article_id": article.id, "version_id": pdf.id, "target_format": DocumentFormat.DOCX.value},
                    f"version:{pdf.id}",
                )
            await self._refresh_current_pointers(db, article)

            if before_commit is not None:
                await before_commit(article)

            await audit_service.log_action(
                db,
                action=action.value.upper(),
                entity_type="article",
                entity_id=article.id,
                actor=actor,
                from_state=ArticleStatus.PENDING_VERIFICATION.value if action == WorkflowAction.VERIFY else None,
                to_state=article.status.value,
                details={"slug": article.slug},
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        effects.notify(events.ARTICLE_SUBMITTED, [article.author_email], {"article_id": article.id, "title": article.title})
        logger.info(
            "article_created",
            article_id=article.id,
            slug=article.slug,
            action=action.value,
            actor_id=actor.id,
        )
        await self._after_commit(db, effects, actor)
        return TransitionResult(new_status=article.status, article=article)

    async def release_assignments(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        stage: AssignmentStage,
        actor: Actor,
        reason: str | None = None,
    ) -> list[TransitionResult]:
        """Release every in-flight article of a user who lost editor/reviewer access."""
        stage = AssignmentStage(stage)
        require_capability(actor, Capability.MANAGE_WORKFLOW)
        if stage == AssignmentStage.EDITOR:
            action, statuses = WorkflowAction.RELEASE_EDITOR, EDITOR_STAGE
        else:
            action, statuses = WorkflowAction.RELEASE_REVIEWER, REVIEWER_STAGE
        articles = await article_repository.list_assigned(db, user_id=user_id, stage=stage.value, statuses=statuses)
        article_ids = [article.id for article in articles]

        results: list[TransitionResult] = []
        for article_id in article_ids:
            try:
                results.append(
                    await self.dispatch(
                        db,
                        TransitionRequest(
                            action=action,
                            article_id=article_id,
                            actor=actor,
                            payload={"reason": reason or "access_removed"},
                        ),
                    )
                )
            except WorkflowError as exc:
                logger.warning("assignment_release_skipped", article_id=article_id, user_id=user_id, error=exc.code)
        logger.info("assignments_released", user_id=user_id, stage=stage.value, released=len(results))
        return results

    # ── Unit of work ──

    async def _run(self, db: AsyncSession, request: TransitionRequest) -> TransitionResult:
        action = WorkflowAction(request.action)
        effects = _Effects()
        try:
            article, from_status, rule = await state_transition_service.transition_article(
                db=db,
                article_id=request.article_id,
                action=action,
            )
            require_capability(request.actor, rule.capability, article)
            entry = await self._handlers[action](db, article, from_status, request, effects)

            violations = consistency_violations(article)
            if violations:
                raise InvalidTransitionError(
                    action=action.value,
                    current_status=from_status.value,
                    allowed_actions=[a.value for a in allowed_actions(from_status)],
                )

            details = dict(effects.audit_details)
            if entry is not None:
                details["change_log_id"] = entry.id
            await audit_service.log_action(
                db,
                action=AUDIT_ACTION_NAMES.get(action, action.value.upper()),
                entity_type="article",
                entity_id=article.id,
                actor=request.actor,
                reason=effects.reason,
                from_state=from_status.value,
                to_state=article.status.value,
                details=details,
            )
            await db.commit()
        except StaleDataError as exc:
            await db.rollback()
            raise TransitionConflictError(
                "The article was modified concurrently. Retry.",
                details={"article_id": request.article_id},
            ) from exc
        except IntegrityError as exc:
            await db.rollback()
            raise TransitionConflictError(
                "The transition conflicts with a concurrent change. Retry.",
                details={"article_id": request.article_id, "error": exc.__class__.__name__},
            ) from exc
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "workflow_transition_committed",
            article_id=article.id,
            action=action.value,
            from_state=from_status.value,
            to_state=article.status.value,
            actor_id=request.actor.id,
            change_log_id=entry.id if entry is not None else None,
        )
        await self._after_commit(db, effects, request.actor)
        return TransitionResult(new_status=article.status, article=article, change_log_entry=entry)

    async def _after_commit(self, db: AsyncSession, effects: _Effects, actor: Actor) -> None:
        for job_type, payload, entity_id in effects.jobs:
            try:
                await self.dispatcher.submit(
                    db,
                    job_type=job_type,
                    payload=payload,
                    entity_id=entity_id,
                    actor_user_id=actor.id,
                )
            except Exception as exc:  # noqa: BLE001
                logger.error("post_commit_dispatch_failed", job_type=job_type, entity_id=entity_id, error=str(exc))
        for event, recipients, context in effects.notifications:
            try:
                await self.notifier.notify(event, recipients, context)
            except Exception as exc:  # noqa: BLE001
                logger.error("post_commit_notify_failed", notification_event=event, error=str(exc))

    # ── Shared helpers ──

    async def _load_assignee(self, db: AsyncSession, user_id: int, role: UserRole) -> User:
        user = await user_repository.get(db, user_id)
        if user is None or not user.is_active:
            raise AssigneeNotFoundError(f"User {user_id} not found", details={"user_id": user_id})
        if not user.has_role(role):
            raise AssigneeNotFoundError(
                f"User {user_id} does not have the {role.value} role",
                details={"user_id": user_id, "required_role": role.value},
            )
        return user

    async def _admin_emails(self, db: AsyncSession) -> list[str]:
        rows = await db.execute(select(User).where(User.is_active.is_(True)))
        return [user.email for user in rows.scalars().all() if user.has_role(UserRole.admin)]

    async def _refresh_current_pointers(self, db: AsyncSession, article: Article) -> None:
        """current_* always mirror the lineage tip; a format still being converted is None."""
        article.current_pdf_url, article.current_word_url = await document_version_store.current_urls(db, article.id)

    async def _record_upload(
        self,
        db: AsyncSession,
        article: Article,
        from_status: ArticleStatus,
        *,
        role: VersionRole,
        actor: Actor,
        pdf_url: str | None,
        docx_url: str | None,
        comments: str | None,
        effects: _Effects,
    ) -> ChangeLogEntry:
        uploads = {fmt: url for fmt, url in ((DocumentFormat.DOCX, docx_url), (DocumentFormat.PDF, pdf_url)) if url}
        primary_format = next(iter(uploads))
        # Diff base: previous tip in the same format, else the previous tip at all.
        base = await document_version_store.lineage_tip(db, article.id, format=primary_format)
        if base is None:
            base = await document_version_store.lineage_tip(db, article.id)

        entry = await change_log_repository.append(
            db,
            article_id=article.id,
            role=role,
            actor_id=actor.id,
            old_file_url=base.url if base else None,
            old_version_id=base.id if base else None,
            new_file_url=uploads[primary_format],
            status_from=from_status,
            status_to=article.status,
            comments=comments,
        )

        revision = await document_version_store.next_revision(db, article.id)
        recorded = {}
        for fmt, url in uploads.items():
            recorded[fmt] = await document_version_store.record(
                db,
                article_id=article.id,
                role=role,
                format=fmt,
                url=url,
                produced_by=actor.id,
                revision=revision,
                change_log_id=entry.id,
                status_at_upload=from_status,
            )
        entry.new_version_id = recorded[primary_format].id
        await db.flush()

        await self._refresh_current_pointers(db, article)

        for fmt, version in recorded.items():
            if _OTHER_FORMAT[fmt] not in recorded:
                effects.job(
                    JOB_DOCUMENT_CONVERT,
                    {"article_id": article.id, "version_id": version.id, "target_format": _OTHER_FORMAT[fmt].value},
                    f"version:{version.id}",
                )
        if settings.diff_on_upload and base is not None:
            effects.job(JOB_CHANGE_DIFF, {"change_log_id": entry.id}, f"change_log:{entry.id}")

        effects.audit_details.update(
            {
                "role": role.value,
                "revision": revision,
                "formats": sorted(fmt.value for fmt in recorded),
                "diff_base_version_id": base.id if base else None,
            }
        )
        return entry

    async def _upload_correction(
        self,
        db: AsyncSession,
        article: Article,
        from_status: ArticleStatus,
        request: TransitionRequest,
        effects: _Effects,
        *,
        stage: AssignmentStage,
    ) -> ChangeLogEntry:
        payload = request.payload
        pdf_url = _payload_str(payload, "pdf_url")
        docx_url = _payload_str(payload, "docx_url")
        if stage == AssignmentStage.EDITOR and not (pdf_url or docx_url):
            raise InvalidPayloadError("A corrected PDF or DOCX is required", details={"fields": ["pdf_url", "docx_url"]})
        if stage == AssignmentStage.REVIEWER and not docx_url:
            raise InvalidPayloadError("A corrected DOCX is required", details={"field": "docx_url"})

        assignee_id = article.assigned_editor_id if stage == AssignmentStage.EDITOR else article.assigned_reviewer_id
        if request.actor.id is not None and request.actor.id == assignee_id:
            role = VersionRole.EDITOR if stage == AssignmentStage.EDITOR else VersionRole.REVIEWER
        else:
            role = VersionRole.ADMIN

        entry = await self._record_upload(
            db,
            article,
            from_status,
            role=role,
            actor=request.actor,
            pdf_url=pdf_url,
            docx_url=docx_url,
            comments=_payload_str(payload, "comments"),
            effects=effects,
        )

        if request.actor.id is not None:
            duration = await assignment_history_service.editing_duration(
                db, article_id=article.id, user_id=request.actor.id, stage=stage
            )
            if duration is not None:
                effects.audit_details["editing_duration_seconds"] = int(duration.total_seconds())

        effects.notify(
            events.CORRECTION_UPLOADED,
            await self._admin_emails(db),
            {"article_id": article.id, "role": role.value, "change_log_id": entry.id},
        )
        return entry

    async def _assign(
        self,
        db: AsyncSession,
        article: Article,
        request: TransitionRequest,
        effects: _Effects,
        *,
        stage: AssignmentStage,
        reassign: bool,
    ) -> None:
        key = "editor_id" if stage == AssignmentStage.EDITOR else "reviewer_id"
        role = UserRole.editor if stage == AssignmentStage.EDITOR else UserRole.reviewer
        attribute = "assigned_editor_id" if stage == AssignmentStage.EDITOR else "assigned_reviewer_id"
        user_id = _payload_int(request.payload, key)
        current_id = getattr(article, attribute)

        if reassign and current_id is None:
            raise InvalidTransitionError(
                action=request.action.value,
                current_status=article.status.value,
                allowed_actions=[a.value for a in allowed_actions(article.status)],
            )
        if current_id == user_id:
            raise InvalidPayloadError(
                f"This {stage.value} is already assigned to the article",
                details={key: user_id},
            )

        user = await self._load_assignee(db, user_id, role)
        reason = _payload_str(request.payload, "reason")
        if reassign and request.actor.id is not None:
            duration = await assignment_history_service.editing_duration(
                db, article_id=article.id, user_id=current_id, stage=stage
            )
            if duration is not None:
                effects.audit_details["previous_assignment_seconds"] = int(duration.total_seconds())
        await assignment_history_service.assign(
            db,
            article_id=article.id,
            stage=stage,
            user_id=user_id,
            assigned_by=request.actor.id,
            reason=reason,
        )
        setattr(article, attribute, user_id)
        effects.reason = reason
        effects.audit_details.update({"previous_user_id": current_id, "user_id": user_id})
        effects.notify(
            events.EDITOR_ASSIGNED if stage == AssignmentStage.EDITOR else events.REVIEWER_ASSIGNED,
            [user.email],
            {"article_id": article.id, "title": article.title, "reassigned": reassign},
        )

    async def _approve(
        self,
        db: AsyncSession,
        article: Article,
        from_status: ArticleStatus,
        request: TransitionRequest,
        effects: _Effects,
        *,
        stage: AssignmentStage,
    ) -> None:
        if stage == AssignmentStage.EDITOR:
            role, statuses, event = VersionRole.EDITOR, EDITOR_STAGE, events.EDITOR_APPROVED
        else:
            role, statuses, event = VersionRole.REVIEWER, REVIEWER_STAGE, events.REVIEWER_APPROVED
        has_version = await document_version_store.exists_for(db, article.id, role) or await document_version_store.exists_for(
            db, article.id, VersionRole.ADMIN, statuses=statuses
        )
        if not has_version:
            raise InvalidTransitionError(
                action=request.action.value,
                current_status=from_status.value,
                allowed_actions=[a.value for a in allowed_actions(from_status)],
            )
        effects.notify(event, await self._admin_emails(db), {"article_id": article.id, "title": article.title})

    async def _release(
        self,
        db: AsyncSession,
        article: Article,
        request: TransitionRequest,
        effects: _Effects,
        *,
        stage: AssignmentStage,
    ) -> None:
        attribute = "assigned_editor_id" if stage == AssignmentStage.EDITOR else "assigned_reviewer_id"
        released_id = getattr(article, attribute)
        reason = _payload_str(request.payload, "reason") or "released"
        await assignment_history_service.close(
            db, article_id=article.id, stage=stage, status="released", reason=reason
        )
        setattr(article, attribute, None)
        effects.reason = reason
        effects.audit_details.update({"released_user_id": released_id, "stage": stage.value})
        released = await user_repository.get(db, released_id) if released_id else None
        effects.notify(
            events.ASSIGNMENT_RELEASED,
            [released.email if released else None],
            {"article_id": article.id, "stage": stage.value},
        )

    # ── Action handlers ──

    async def _assign_editor(self, db, article, from_status, request, effects):
        await self._assign(db, article, request, effects, stage=AssignmentStage.EDITOR, reassign=False)

    async def _reassign_editor(self, db, article, from_status, request, effects):
        await self._assign(db, article, request, effects, stage=AssignmentStage.EDITOR, reassign=True)

    async def _assign_reviewer(self, db, article, from_status, request, effects):
        await self._assign(db, article, request, effects, stage=AssignmentStage.REVIEWER, reassign=False)

    async def _reassign_reviewer(self, db, article, from_status, request, effects):
        await self._assign(db, article, request, effects, stage=AssignmentStage.REVIEWER, reassign=True)

    async def _upload_editor_correction(self, db, article, from_status, request, effects):
        return await self._upload_correction(db, article, from_status, request, effects, stage=AssignmentStage.EDITOR)

    async def _upload_reviewer_correction(self, db, article, from_status, request, effects):
        return await self._upload_correction(db, article, from_status, request, effects, stage=AssignmentStage.REVIEWER)

    async def _editor_approve(self, db, article, from_status, request, effects):
        await self._approve(db, article, from_status, request, effects, stage=AssignmentStage.EDITOR)

    async def _reviewer_approve(self, db, article, from_status, request, effects):
        await self._approve(db, article, from_status, request, effects, stage=AssignmentStage.REVIEWER)

    async def _release_editor(self, db, article, from_status, request, effects):
        await self._release(db, article, request, effects, stage=AssignmentStage.EDITOR)

    async def _release_reviewer(self, db, article, from_status, request, effects):
        await self._release(db, article, request, effects, stage=AssignmentStage.REVIEWER)

    async def _set_citation_number(self, db, article, from_status, request, effects):
        citation = validate_citation(_payload_str(request.payload, "citation_number"))
        conflict = await article_repository.find_by_citation(db, citation, exclude_article_id=article.id)
        if conflict is not None:
            raise DuplicateCitationError(
                citation,
                conflicting_article_id=conflict.id,
                conflicting_title=conflict.title,
            )
        previous = article.citation_number
        article.citation_number = citation
        try:
            await db.flush()
        except IntegrityError as exc:
            # Lost a race against another article taking the same number.
            await db.rollback()
            conflict = await article_repository.find_by_citation(db, citation)
            raise DuplicateCitationError(
                citation,
                conflicting_article_id=conflict.id if conflict else None,
                conflicting_title=conflict.title if conflict else "another article",
            ) from exc
        effects.audit_details.update({"citation_number": citation, "previous_citation_number": previous})

    async def _publish(self, db, article, from_status, request, effects):
        if not article.citation_number:
            raise CitationRequiredError(
                article_id=article.id,
                current_status=from_status.value,
                allowed_actions=[a.value for a in allowed_actions(from_status)],
            )
        entry = None
        pdf_url = _payload_str(request.payload, "pdf_url")
        docx_url = _payload_str(request.payload, "docx_url")
        if pdf_url or docx_url:
            entry = await self._record_upload(
                db,
                article,
                from_status,
                role=VersionRole.ADMIN,
                actor=request.actor,
                pdf_url=pdf_url,
                docx_url=docx_url,
                comments=_payload_str(request.payload, "comments"),
                effects=effects,
            )
        else:
            await self._refresh_current_pointers(db, article)

        article.published_at = utcnow()
        article.published_by = request.actor.id
        closed = await assignment_history_service.close_all(db, article_id=article.id, status="completed")
        effects.audit_details.update({"citation_number": article.citation_number, "assignments_completed": closed})
        effects.notify(
            events.ARTICLE_PUBLISHED,
            [article.author_email, article.second_author_email],
            {"article_id": article.id, "title": article.title, "citation_number": article.citation_number},
        )
        return entry

    async def _reject(self, db, article, from_status, request, effects):
        reason = _payload_str(request.payload, "reason")
        if not reason:
            raise InvalidPayloadError("A rejection reason is required", details={"field": "reason"})
        article.rejection_reason = reason
        closed = await assignment_history_service.close_all(db, article_id=article.id, status="completed")
        effects.reason = reason
        effects.audit_details["assignments_completed"] = closed
        effects.notify(
            events.ARTICLE_REJECTED,
            [article.author_email],
            {"article_id": article.id, "title": article.title, "reason": reason},
        )

    async def _delete(self, db, article, from_status, request, effects):
        article.deleted_at = utcnow()
        article.deleted_by = request.actor.id
        closed = await assignment_history_service.close_all(db, article_id=article.id, status="completed")
        effects.reason = _payload_str(request.payload, "reason")
        effects.audit_details["assignments_completed"] = closed


workflow_service = WorkflowService()
