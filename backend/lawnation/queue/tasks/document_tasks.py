"""Document conversion and diff tasks executed in workers."""

from __future__ import annotations

import traceback
from collections.abc import Awaitable, Callable

from celery import Task

from lawnation.core.config import get_settings
from lawnation.core.correlation import bind_context, clear_context
from lawnation.core.database import async_session
from lawnation.core.exceptions import BackgroundTaskError, ConversionFailure, ExtractionFailure
from lawnation.core.logging import get_logger
from lawnation.queue.celery_app import celery_app
from lawnation.queue.runtime import run_async
from lawnation.services.document_processing_service import document_processing_service
from lawnation.services.job_queue_service import job_queue_service

logger = get_logger("queue.document_tasks")
settings = get_settings()

TASK_SOFT_LIMIT_SEC = 180
TASK_HARD_LIMIT_SEC = 240


async def _start(job_id: str) -> dict:
    async with async_session() as db:
        job = await job_queue_service.get_job(db, job_id)
        if not job:
            raise BackgroundTaskError("job_not_found", details={"job_id": job_id})
        await job_queue_service.mark_running(db, job)
        bind_context(
            request_id=job.request_id,
            correlation_id=job.correlation_id,
            job_id=job_id,
            job_type=job.job_type,
        )
        return dict(job.payload_json or {})


async def _finish(job_id: str, result: dict) -> None:
    async with async_session() as db:
        job = await job_queue_service.get_job(db, job_id)
        if job:
            await job_queue_service.mark_completed(db, job, result)


async def _fail(job_id: str, exc: Exception, tb: str, final: bool) -> None:
    error_code = getattr(exc, "code", exc.__class__.__name__)
    async with async_session() as db:
        job = await job_queue_service.get_job(db, job_id)
        if not job:
            return
        if final:
            await job_queue_service.dead_letter(db, job=job, error=str(exc), error_code=error_code, traceback_text=tb)
        else:
            await job_queue_service.mark_failed(db, job, str(exc), error_code=error_code)


async def _convert(payload: dict) -> dict:
    async with async_session() as db:
        return await document_processing_service.convert_version(
            db,
            version_id=int(payload["version_id"]),
            target_format=str(payload["target_format"]),
        )


async def _diff(payload: dict) -> dict:
    async with async_session() as db:
        return await document_processing_service.compute_diff(db, change_log_id=int(payload["change_log_id"]))


def _execute(task: Task, job_id: str, task_name: str, body: Callable[[dict], Awaitable[dict]]) -> dict:
    try:
        payload = run_async(_start(job_id))
        logger.info("task_execution_started", task_name=task_name, job_id=job_id)
        result = run_async(body(payload))
        run_async(_finish(job_id, result))
        logger.info("task_execution_completed", task_name=task_name, job_id=job_id)
        return {"ok": True}
    except Exception as exc:  # noqa: BLE001
        tb = traceback.format_exc()
        final = int(getattr(task.request, "retries", 0)) >= int(task.max_retries or 0)
        logger.error(
            "background_task_failed",
            task_name=task_name,
            job_id=job_id,
            error=str(exc),
            error_code=getattr(exc, "code", exc.__class__.__name__),
            final=final,
        )
        run_async(_fail(job_id, exc, tb, final))
        raise
    finally:
        clear_context()


@celery_app.task(
    bind=True,
    autoretry_for=(ConversionFailure, TimeoutError, ConnectionError),
    retry_backoff=True,
    retry_jitter=True,
    max_retries=max(0, settings.job_max_attempts - 1),
    soft_time_limit=TASK_SOFT_LIMIT_SEC,
    time_limit=TASK_HARD_LIMIT_SEC,
)
def run_document_convert(self: Task, job_id: str) -> dict:
    return _execute(self, job_id, "document_convert", _convert)


@celery_app.task(
    bind=True,
    autoretry_for=(ExtractionFailure, TimeoutError, ConnectionError),
    retry_backoff=True,
    retry_jitter=True,
    max_retries=max(0, settings.job_max_attempts - 1),
    soft_time_limit=TASK_SOFT_LIMIT_SEC,
    time_limit=TASK_HARD_LIMIT_SEC,
)
def run_change_diff(self: Task, job_id: str) -> dict:
    return _execute(self, job_id, "change_diff", _diff)
