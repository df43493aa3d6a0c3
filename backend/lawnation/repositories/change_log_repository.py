"""Append-only change log with server-assigned, per-article monotonic timestamps."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.models import ArticleStatus, ChangeLogEntry, VersionRole
from lawnation.repositories.sweep import entity_key, retryable_first
from lawnation.utils.text import utcnow

_TICK = timedelta(microseconds=1)


class ChangeLogRepository:
    async def _next_edited_at(self, db: AsyncSession, article_id: int) -> datetime:
        row = await db.execute(
            select(func.max(ChangeLogEntry.edited_at)).where(ChangeLogEntry.article_id == article_id)
        )
        last = row.scalar()
        now = utcnow()
        if last is not None and now <= last:
            return last + _TICK
        return now

    async def append(
        self,
        db: AsyncSession,
        *,
        article_id: int,
        role: VersionRole,
        actor_id: int | None,
        new_file_url: str,
        old_file_url: str | None = None,
        old_version_id: int | None = None,
        new_version_id: int | None = None,
        status_from: ArticleStatus | None = None,
        status_to: ArticleStatus | None = None,
        comments: str | None = None,
    ) -> ChangeLogEntry:
        entry = ChangeLogEntry(
            article_id=article_id,
            role=role,
            actor_id=actor_id,
            edited_at=await self._next_edited_at(db, article_id),
            old_file_url=old_file_url,
            new_file_url=new_file_url,
            old_version_id=old_version_id,
            new_version_id=new_version_id,
            status_from=status_from,
            status_to=status_to,
            comments=comments,
        )
        db.add(entry)
        await db.flush()
        await db.refresh(entry)
        return entry

    async def get(self, db: AsyncSession, entry_id: int) -> ChangeLogEntry | None:
        row = await db.execute(
            select(ChangeLogEntry)
            .where(ChangeLogEntry.id == entry_id)
            .execution_options(populate_existing=True)
        )
        return row.scalar_one_or_none()

    async def history_for(self, db: AsyncSession, article_id: int) -> list[ChangeLogEntry]:
        rows = await db.execute(
            select(ChangeLogEntry)
            .where(ChangeLogEntry.article_id == article_id)
            .order_by(ChangeLogEntry.edited_at.asc(), ChangeLogEntry.id.asc())
        )
        return list(rows.scalars().all())

    async def diff_for(self, db: AsyncSession, entry_id: int) -> dict[str, Any] | None:
        row = await db.execute(select(ChangeLogEntry.diff_summary).where(ChangeLogEntry.id == entry_id))
        return row.scalar_one_or_none()

    async def store_diff(self, db: AsyncSession, entry_id: int, summary: dict[str, Any]) -> None:
        # Diff output is deterministic for identical inputs, so the last writer wins.
        await db.execute(
            update(ChangeLogEntry)
            .where(ChangeLogEntry.id == entry_id)
            .values(diff_summary=summary, diff_computed_at=utcnow())
        )

    async def pending_diffs(self, db: AsyncSession, *, limit: int = 50, history=None) -> list[ChangeLogEntry]:
        """Uploads still lacking a diff; ``history`` skips entries whose diff jobs are spent."""
        stmt = select(ChangeLogEntry).where(
            ChangeLogEntry.diff_summary.is_(None), ChangeLogEntry.old_file_url.is_not(None)
        )
        stmt = retryable_first(stmt, history, entity_key("change_log", ChangeLogEntry.id), ChangeLogEntry.id)
        rows = await db.execute(stmt.limit(max(1, min(limit, 500))))
        return list(rows.scalars().all())


change_log_repository = ChangeLogRepository()
