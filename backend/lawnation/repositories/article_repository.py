from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.models import Article, ArticleStatus, User
from lawnation.utils.text import slugify


class ArticleRepository:
    async def get(self, db: AsyncSession, article_id: int) -> Article | None:
        row = await db.execute(
            select(Article)
            .where(Article.id == article_id)
            .execution_options(populate_existing=True)
        )
        return row.scalar_one_or_none()

    async def unique_slug(self, db: AsyncSession, title: str) -> str:
        base = slugify(title) or "article"
        rows = await db.execute(
            select(Article.slug).where((Article.slug == base) | Article.slug.like(f"{base}-%"))
        )
        taken = set(rows.scalars().all())
        if base not in taken:
            return base
        counter = 2
        while f"{base}-{counter}" in taken:
            counter += 1
        return f"{base}-{counter}"

    async def find_by_citation(
        self,
        db: AsyncSession,
        citation_number: str,
        *,
        exclude_article_id: int | None = None,
    ) -> Article | None:
        stmt = select(Article).where(Article.citation_number == citation_number)
        if exclude_article_id is not None:
            stmt = stmt.where(Article.id != exclude_article_id)
        row = await db.execute(stmt.limit(1))
        return row.scalar_one_or_none()

    async def list_assigned(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        stage: str,
        statuses: Iterable[ArticleStatus],
    ) -> list[Article]:
        column = Article.assigned_editor_id if stage == "editor" else Article.assigned_reviewer_id
        rows = await db.execute(
            select(Article)
            .where(column == user_id, Article.status.in_(list(statuses)))
            .order_by(Article.id.asc())
        )
        return list(rows.scalars().all())

    async def status_counts(self, db: AsyncSession) -> dict[str, int]:
        rows = await db.execute(select(Article.status, func.count(Article.id)).group_by(Article.status))
        counts = {status.value: 0 for status in ArticleStatus if status != ArticleStatus.PENDING_VERIFICATION}
        for status, total in rows.all():
            key = status.value if isinstance(status, ArticleStatus) else str(status)
            counts[key] = int(total)
        return counts


class UserRepository:
    async def get(self, db: AsyncSession, user_id: int) -> User | None:
        row = await db.execute(select(User).where(User.id == user_id))
        return row.scalar_one_or_none()


article_repository = ArticleRepository()
user_repository = UserRepository()
