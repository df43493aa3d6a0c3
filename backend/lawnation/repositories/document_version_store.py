"""Append-only store of produced artifacts (ORIGINAL / EDITOR / REVIEWER / ADMIN)."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.models import ArticleStatus, DocumentFormat, DocumentVersion, VersionRole
from lawnation.repositories.sweep import entity_key, retryable_first
from lawnation.utils.text import utcnow


class DocumentVersionStore:
    async def next_revision(self, db: AsyncSession, article_id: int) -> int:
        row = await db.execute(
            select(func.max(DocumentVersion.revision)).where(DocumentVersion.article_id == article_id)
        )
        return int(row.scalar() or 0) + 1

    async def record(
        self,
        db: AsyncSession,
        *,
        article_id: int,
        role: VersionRole,
        format: DocumentFormat,
        url: str,
        produced_by: int | None,
        revision: int | None = None,
        change_log_id: int | None = None,
        derived_from_id: int | None = None,
        status_at_upload: ArticleStatus | None = None,
    ) -> DocumentVersion:
        if revision is None:
            revision = await self.next_revision(db, article_id)
        version = DocumentVersion(
            article_id=article_id,
            role=role,
            format=format,
            url=url,
            revision=revision,
            produced_by=produced_by,
            change_log_id=change_log_id,
            derived_from_id=derived_from_id,
            status_at_upload=status_at_upload,
            created_at=utcnow(),
        )
        db.add(version)
        await db.flush()
        await db.refresh(version)
        return version

    async def get(self, db: AsyncSession, version_id: int) -> DocumentVersion | None:
        row = await db.execute(select(DocumentVersion).where(DocumentVersion.id == version_id))
        return row.scalar_one_or_none()

    async def latest_for(
        self,
        db: AsyncSession,
        article_id: int,
        role: VersionRole,
        *,
        format: DocumentFormat | None = None,
    ) -> DocumentVersion | None:
        stmt = select(DocumentVersion).where(
            DocumentVersion.article_id == article_id,
            DocumentVersion.role == role,
        )
        if format is not None:
            stmt = stmt.where(DocumentVersion.format == format)
        stmt = stmt.order_by(DocumentVersion.revision.desc(), DocumentVersion.id.desc()).limit(1)
        row = await db.execute(stmt)
        return row.scalar_one_or_none()

    async def lineage_tip(
        self,
        db: AsyncSession,
        article_id: int,
        *,
        format: DocumentFormat | None = None,
    ) -> DocumentVersion | None:
        """Most recent artifact across all roles (highest revision, then newest row)."""
        stmt = select(DocumentVersion).where(DocumentVersion.article_id == article_id)
        if format is not None:
            stmt = stmt.where(DocumentVersion.format == format)
        stmt = stmt.order_by(DocumentVersion.revision.desc(), DocumentVersion.id.desc()).limit(1)
        row = await db.execute(stmt)
        return row.scalar_one_or_none()

    async def revision_artifacts(
        self,
        db: AsyncSession,
        article_id: int,
        revision: int,
    ) -> dict[DocumentFormat, DocumentVersion]:
        rows = await db.execute(
            select(DocumentVersion)
            .where(DocumentVersion.article_id == article_id, DocumentVersion.revision == revision)
            .order_by(DocumentVersion.id.asc())
        )
        return {version.format: version for version in rows.scalars().all()}

    async def current_urls(self, db: AsyncSession, article_id: int) -> tuple[str | None, str | None]:
        """(pdf, docx) of the lineage tip; a format still being converted is None."""
        tip = await self.lineage_tip(db, article_id)
        if tip is None:
            return None, None
        artifacts = await self.revision_artifacts(db, article_id, tip.revision)
        pdf = artifacts.get(DocumentFormat.PDF)
        docx = artifacts.get(DocumentFormat.DOCX)
        return (pdf.url if pdf else None, docx.url if docx else None)

    async def list_for(self, db: AsyncSession, article_id: int) -> list[DocumentVersion]:
        rows = await db.execute(
            select(DocumentVersion)
            .where(DocumentVersion.article_id == article_id)
            .order_by(DocumentVersion.revision.asc(), DocumentVersion.id.asc())
        )
        return list(rows.scalars().all())

    async def exists_for(
        self,
        db: AsyncSession,
        article_id: int,
        role: VersionRole,
        *,
        statuses: Iterable[ArticleStatus] | None = None,
    ) -> bool:
        stmt = select(func.count(DocumentVersion.id)).where(
            DocumentVersion.article_id == article_id,
            DocumentVersion.role == role,
        )
        if statuses is not None:
            stmt = stmt.where(DocumentVersion.status_at_upload.in_(list(statuses)))
        row = await db.execute(stmt)
        return int(row.scalar() or 0) > 0

    async def revisions_missing_format(self, db: AsyncSession, *, limit: int = 50, history=None) -> list[DocumentVersion]:
        """Artifacts whose revision has only one format recorded."""
        single = (
            select(DocumentVersion.article_id, DocumentVersion.revision)
            .group_by(DocumentVersion.article_id, DocumentVersion.revision)
            .having(func.count(DocumentVersion.id) == 1)
            .subquery()
        )
        stmt = select(DocumentVersion).join(
            single,
            (DocumentVersion.article_id == single.c.article_id) & (DocumentVersion.revision == single.c.revision),
        )
        stmt = retryable_first(stmt, history, entity_key("version", DocumentVersion.id), DocumentVersion.id)
        rows = await db.execute(stmt.limit(max(1, min(limit, 500))))
        return list(rows.scalars().all())


document_version_store = DocumentVersionStore()
