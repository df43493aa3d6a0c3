"""Maintenance sweep: re-dispatch lagging conversions/diffs, fail stale jobs, purge expired verifications."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from lawnation.core.config import get_settings
from lawnation.core.database import async_session
from lawnation.core.logging import get_logger
from lawnation.models import DocumentFormat
from lawnation.repositories import change_log_repository, document_version_store
from lawnation.services.job_queue_service import (
    JOB_CHANGE_DIFF,
    JOB_DOCUMENT_CONVERT,
    JOB_ORIGINAL_CONVERT,
    job_queue_service,
)
from lawnation.services.verification_service import verification_service

settings = get_settings()
logger = get_logger("scheduler")

_scheduler: AsyncIOScheduler | None = None
SWEEP_BATCH = 50


async def run_sweep() -> dict[str, int]:
    stats = {"conversions_dispatched": 0, "diffs_dispatched": 0, "jobs_failed": 0, "verifications_deleted": 0}
    async with async_session() as db:
        stale = await job_queue_service.mark_stale_jobs_failed(db)
        stats["jobs_failed"] = stale["running_failed"] + stale["queued_failed"]

        conversions = job_queue_service.attempt_history(JOB_DOCUMENT_CONVERT, JOB_ORIGINAL_CONVERT)
        for version in await document_version_store.revisions_missing_format(
            db, limit=SWEEP_BATCH, history=conversions
        ):
            target = DocumentFormat.DOCX if version.format == DocumentFormat.PDF else DocumentFormat.PDF
            job = await job_queue_service.submit(
                db,
                job_type=JOB_DOCUMENT_CONVERT,
                payload={"article_id": version.article_id, "version_id": version.id, "target_format": target.value},
                entity_id=f"version:{version.id}",
            )
            stats["conversions_dispatched"] += 1 if job else 0

        diffs = job_queue_service.attempt_history(JOB_CHANGE_DIFF)
        for entry in await change_log_repository.pending_diffs(db, limit=SWEEP_BATCH, history=diffs):
            job = await job_queue_service.submit(
                db,
                job_type=JOB_CHANGE_DIFF,
                payload={"change_log_id": entry.id},
                entity_id=f"change_log:{entry.id}",
            )
            stats["diffs_dispatched"] += 1 if job else 0

        stats["verifications_deleted"] = await verification_service.cleanup_expired(db)

    logger.info("maintenance_sweep_completed", **stats)
    return stats


def start_scheduler() -> None:
    global _scheduler
    if _scheduler is not None or not settings.sweep_enabled:
        return

    _scheduler = AsyncIOScheduler(timezone="UTC")
    _scheduler.add_job(
        run_sweep,
        trigger=IntervalTrigger(minutes=max(1, settings.sweep_interval_minutes)),
        id="maintenance_sweep",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    _scheduler.start()
    logger.info("scheduler_started", interval_minutes=settings.sweep_interval_minutes)


def stop_scheduler() -> None:
    global _scheduler
    if _scheduler is None:
        return
    _scheduler.shutdown(wait=False)
    _scheduler = None
    logger.info("scheduler_stopped")
