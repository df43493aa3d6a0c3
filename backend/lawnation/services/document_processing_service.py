"""
Law Nation Editorial - Document Processing
=========================================
Bodies of the slow, best-effort work decoupled from transitions: format
conversion, text extraction and diff computation. Each runs in its own
session, after the transition that requested it has committed.
"""

from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.core.exceptions import BackgroundTaskError, ConversionFailure
from lawnation.core.logging import get_logger
from lawnation.domain.diff.engine import compare, summarize
from lawnation.models import DocumentFormat, VersionRole
from lawnation.repositories import change_log_repository, document_version_store
from lawnation.services.document_service_client import DocumentServiceClient, document_service_client
from lawnation.services.job_queue_service import JOB_CHANGE_DIFF, job_queue_service
from lawnation.services.state_transition_service import state_transition_service

logger = get_logger("services.document_processing")


class DocumentProcessingService:
    def __init__(self, *, client: DocumentServiceClient | None = None, dispatcher: Any | None = None) -> None:
        self.client = client or document_service_client
        self.dispatcher = dispatcher or job_queue_service

    async def convert_version(self, db: AsyncSession, *, version_id: int, target_format: str) -> dict[str, Any]:
        """Produce the missing sibling format of a revision and refresh current pointers."""
        target = DocumentFormat(str(target_format).upper())
        source = await document_version_store.get(db, version_id)
        if source is None:
            raise ConversionFailure(f"Document version {version_id} not found", details={"version_id": version_id})

        siblings = await document_version_store.revision_artifacts(db, source.article_id, source.revision)
        if target in siblings:
            return {"skipped": True, "reason": "already_present", "version_id": siblings[target].id}

        new_url = await self.client.convert(source.url, target)

        article = await state_transition_service.lock_article(db=db, article_id=source.article_id, lock_nowait=False)
        try:
            produced = await document_version_store.record(
                db,
                article_id=source.article_id,
                role=source.role,
                format=target,
                url=new_url,
                produced_by=None,
                revision=source.revision,
                change_log_id=source.change_log_id,
                derived_from_id=source.id,
                status_at_upload=source.status_at_upload,
            )
        except IntegrityError:
            # A concurrent conversion already stored this format.
            await db.rollback()
            return {"skipped": True, "reason": "concurrent_conversion"}

        if source.role == VersionRole.ORIGINAL and target == DocumentFormat.DOCX and not article.original_word_url:
            article.original_word_url = new_url
        article.current_pdf_url, article.current_word_url = await document_version_store.current_urls(db, article.id)
        await db.commit()

        logger.info(
            "document_converted",
            article_id=source.article_id,
            source_version_id=source.id,
            version_id=produced.id,
            target_format=target.value,
        )
        return {"version_id": produced.id, "url": new_url, "format": target.value}

    async def compute_diff(self, db: AsyncSession, *, change_log_id: int, include_parts: bool = False) -> dict[str, Any]:
        entry = await change_log_repository.get(db, change_log_id)
        if entry is None:
            raise BackgroundTaskError(f"Change log entry {change_log_id} not found", details={"change_log_id": change_log_id})
        if not entry.old_file_url:
            return {"skipped": True, "reason": "no_previous_version"}

        old_doc = await self.client.extract(entry.old_file_url)
        new_doc = await self.client.extract(entry.new_file_url)
        parts = await asyncio.to_thread(compare, old_doc.text, new_doc.text)
        summary = summarize(parts).to_dict()
        await change_log_repository.store_diff(db, entry.id, summary)
        await db.commit()

        logger.info(
            "change_diff_stored",
            change_log_id=entry.id,
            article_id=entry.article_id,
            added=summary["added"],
            removed=summary["removed"],
            modified=summary["modified"],
        )
        result: dict[str, Any] = {"change_log_id": entry.id, "diff_summary": summary}
        if include_parts:
            result["parts"] = [part.to_dict() for part in parts]
        return result

    async def diff_for(self, db: AsyncSession, *, change_log_id: int, include_parts: bool = False) -> dict[str, Any]:
        """Cache-aside read: stored summary, else compute now, else queue it."""
        stored = await change_log_repository.diff_for(db, change_log_id)
        if stored is not None and not include_parts:
            return {"change_log_id": change_log_id, "diff_summary": stored, "status": "ready"}
        try:
            computed = await self.compute_diff(db, change_log_id=change_log_id, include_parts=include_parts)
        except BackgroundTaskError as exc:
            logger.warning("background_task_failed", task="change_diff", change_log_id=change_log_id, error_code=exc.code)
            await self.dispatcher.submit(
                db,
                job_type=JOB_CHANGE_DIFF,
                payload={"change_log_id": change_log_id},
                entity_id=f"change_log:{change_log_id}",
            )
            return {"change_log_id": change_log_id, "diff_summary": stored, "status": "pending"}
        if computed.get("skipped"):
            return {"change_log_id": change_log_id, "diff_summary": None, "status": "not_applicable"}
        return {**computed, "status": "ready"}


document_processing_service = DocumentProcessingService()
