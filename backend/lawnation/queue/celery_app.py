"""Celery application: conversion and diff jobs on the documents queue."""

from __future__ import annotations

from celery import Celery
from celery.signals import worker_process_init, worker_process_shutdown

from lawnation.core.config import get_settings
from lawnation.core.logging import setup_logging
from lawnation.queue.runtime import shutdown_runtime

settings = get_settings()
DOCUMENTS = settings.queue_documents_name

celery_app = Celery(
    "lawnation_workers",
    broker=settings.redis_queue_url,
    backend=settings.redis_queue_url,
    include=["lawnation.queue.tasks.document_tasks"],
)

# Late acks plus prefetch 1: a crashed worker hands its job back to the broker.
celery_app.conf.update(
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_track_started=True,
    broker_connection_retry_on_startup=True,
    task_default_queue=DOCUMENTS,
    task_routes={"lawnation.queue.tasks.document_tasks.*": {"queue": DOCUMENTS}},
)


@worker_process_init.connect
def _on_worker_start(**_kwargs) -> None:
    setup_logging(debug=settings.app_debug and settings.app_env == "development")


@worker_process_shutdown.connect
def _on_worker_stop(**_kwargs) -> None:
    shutdown_runtime()
