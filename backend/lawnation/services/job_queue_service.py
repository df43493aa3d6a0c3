"""Background job ledger (job_runs / dead_letter_jobs) and Celery dispatch.

A job row is written before the Celery message is sent so a lost message can
be re-dispatched by the maintenance sweep.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.core.config import get_settings
from lawnation.core.correlation import get_correlation_id, get_request_id
from lawnation.core.logging import get_logger
from lawnation.models import DeadLetterJob, JobRun
from lawnation.queue.celery_app import celery_app
from lawnation.utils.text import utcnow

logger = get_logger("services.job_queue")
settings = get_settings()

JOB_DOCUMENT_CONVERT = "document_convert"
JOB_CHANGE_DIFF = "change_diff"
JOB_ORIGINAL_CONVERT = "original_convert"

ACTIVE_STATUSES = ("queued", "running")
FAILED_STATUSES = ("failed", "dead_lettered")


@dataclass(frozen=True, slots=True)
class JobRoute:
    task_name: str
    queue_name: str


_TASKS = "lawnation.queue.tasks.document_tasks"
JOB_ROUTES: dict[str, JobRoute] = {
    JOB_DOCUMENT_CONVERT: JobRoute(f"{_TASKS}.run_document_convert", settings.queue_documents_name),
    JOB_ORIGINAL_CONVERT: JobRoute(f"{_TASKS}.run_document_convert", settings.queue_documents_name),
    JOB_CHANGE_DIFF: JobRoute(f"{_TASKS}.run_change_diff", settings.queue_documents_name),
}


def _clip(text: str, limit: int = 4000) -> str:
    return text[:limit]


class JobQueueService:
    async def create_job(
        self,
        db: AsyncSession,
        *,
        job_type: str,
        payload: dict[str, Any],
        entity_id: str | None = None,
        actor_user_id: int | None = None,
    ) -> JobRun:
        route = JOB_ROUTES.get(job_type)
        if route is None:
            raise ValueError(f"unsupported_job_type:{job_type}")
        job = JobRun(
            job_type=job_type,
            queue_name=route.queue_name,
            entity_id=entity_id,
            status="queued",
            request_id=get_request_id() or None,
            correlation_id=get_correlation_id() or None,
            actor_user_id=actor_user_id,
            max_attempts=settings.job_max_attempts,
            payload_json=payload,
            queued_at=utcnow(),
        )
        db.add(job)
        await db.commit()
        await db.refresh(job)
        return job

    def _send(self, job: JobRun) -> None:
        route = JOB_ROUTES[job.job_type]
        if not settings.queue_enabled:
            logger.info("job_enqueue_skipped", job_type=job.job_type, job_id=str(job.id), reason="queue_disabled")
            return
        celery_app.send_task(route.task_name, kwargs={"job_id": str(job.id)}, queue=route.queue_name)
        logger.info("job_enqueued", task_name=route.task_name, queue=route.queue_name, job_id=str(job.id))

    async def submit(
        self,
        db: AsyncSession,
        *,
        job_type: str,
        payload: dict[str, Any],
        entity_id: str | None = None,
        actor_user_id: int | None = None,
    ) -> JobRun | None:
        """Persist then enqueue. Called after the transition commit, so it never raises."""
        try:
            job = await self.create_job(
                db,
                job_type=job_type,
                payload=payload,
                entity_id=entity_id,
                actor_user_id=actor_user_id,
            )
            self._send(job)
            return job
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "job_dispatch_failed",
                job_type=job_type,
                entity_id=entity_id,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            return None

    async def get_job(self, db: AsyncSession, job_id: str) -> JobRun | None:
        try:
            key = UUID(str(job_id))
        except ValueError:
            return None
        return await db.get(JobRun, key)

    def attempt_history(self, *job_types: str, max_failures: int | None = None):
        """Per-entity summary of earlier jobs, as a subquery for the sweep.

        ``retryable`` is 0 while a job is still queued or running, once any job
        was dead-lettered, or after ``max_failures`` failed runs.
        """
        limit = max(1, max_failures or settings.job_max_attempts)
        active = func.sum(case((JobRun.status.in_(ACTIVE_STATUSES), 1), else_=0))
        failures = func.sum(case((JobRun.status.in_(FAILED_STATUSES), 1), else_=0))
        dead = func.sum(case((JobRun.status == "dead_lettered", 1), else_=0))
        return (
            select(
                JobRun.entity_id.label("entity_id"),
                func.max(JobRun.queued_at).label("last_queued_at"),
                case((and_(active == 0, dead == 0, failures < limit), 1), else_=0).label("retryable"),
            )
            .where(JobRun.job_type.in_(job_types), JobRun.entity_id.is_not(None))
            .group_by(JobRun.entity_id)
            .subquery()
        )

    async def mark_stale_jobs_failed(self, db: AsyncSession, *, stale_minutes: int | None = None) -> dict[str, int]:
        """Fail jobs stuck queued/running longer than the stale window."""
        minutes = max(1, stale_minutes or settings.stale_job_minutes)
        now = utcnow()
        cutoff = now - timedelta(minutes=minutes)
        counts = {"running_failed": 0, "queued_failed": 0}

        rows = await db.execute(
            select(JobRun).where(
                JobRun.status.in_(ACTIVE_STATUSES),
                JobRun.finished_at.is_(None),
                JobRun.queued_at <= cutoff,
            )
        )
        for job in rows.scalars().all():
            if job.status == "running" and job.started_at and job.started_at > cutoff:
                continue
            key = f"{job.status}_failed"
            job.status = "failed"
            job.error_code = "stale_timeout"
            job.error = f"stale_timeout:{key.split('_')[0]}>{minutes}m"
            job.finished_at = now
            counts[key] += 1

        if any(counts.values()):
            await db.commit()
        return counts

    async def mark_running(self, db: AsyncSession, job: JobRun) -> None:
        job.status = "running"
        job.attempt = int(job.attempt or 0) + 1
        job.started_at = utcnow()
        await db.commit()

    async def mark_completed(self, db: AsyncSession, job: JobRun, result: dict[str, Any]) -> None:
        job.status = "completed"
        job.result_json = result
        job.finished_at = utcnow()
        await db.commit()

    async def mark_failed(self, db: AsyncSession, job: JobRun, error: str, *, error_code: str | None = None) -> None:
        job.status = "failed"
        job.error_code = error_code
        job.error = _clip(error)
        job.finished_at = utcnow()
        await db.commit()

    async def dead_letter(
        self,
        db: AsyncSession,
        *,
        job: JobRun,
        error: str,
        error_code: str | None = None,
        traceback_text: str | None = None,
    ) -> None:
        """Final failure: keep the payload for manual replay."""
        db.add(
            DeadLetterJob(
                original_job_id=job.id,
                job_type=job.job_type,
                queue_name=job.queue_name,
                error=_clip(error),
                traceback=_clip(traceback_text, 16000) if traceback_text else None,
                payload_json=job.payload_json or {},
            )
        )
        job.status = "dead_lettered"
        job.error_code = error_code
        job.error = _clip(error)
        job.finished_at = utcnow()
        await db.commit()


job_queue_service = JobQueueService()
