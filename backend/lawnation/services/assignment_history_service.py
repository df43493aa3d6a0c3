"""Editor/reviewer assignment rows: open, close, reassign, durations and stats."""

from __future__ import annotations

import enum
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.core.logging import get_logger
from lawnation.models import Article, EditorAssignmentHistory, ReviewerAssignmentHistory
from lawnation.utils.text import utcnow

logger = get_logger("services.assignment_history")


class AssignmentStage(str, enum.Enum):
    EDITOR = "editor"
    REVIEWER = "reviewer"


_MODELS = {
    AssignmentStage.EDITOR: EditorAssignmentHistory,
    AssignmentStage.REVIEWER: ReviewerAssignmentHistory,
}


class AssignmentHistoryService:
    @staticmethod
    def model_for(stage: AssignmentStage):
        return _MODELS[AssignmentStage(stage)]

    async def current(self, db: AsyncSession, article_id: int, stage: AssignmentStage):
        model = self.model_for(stage)
        row = await db.execute(
            select(model).where(model.article_id == article_id, model.unassigned_at.is_(None)).limit(1)
        )
        return row.scalar_one_or_none()

    async def close(
        self,
        db: AsyncSession,
        *,
        article_id: int,
        stage: AssignmentStage,
        status: str,
        reason: str | None = None,
    ):
        open_row = await self.current(db, article_id, stage)
        if open_row is None:
            return None
        open_row.unassigned_at = utcnow()
        open_row.status = status
        if reason:
            open_row.reason = reason
        # The open-row unique index requires the close to hit the DB before any new insert.
        await db.flush()
        return open_row

    async def assign(
        self,
        db: AsyncSession,
        *,
        article_id: int,
        stage: AssignmentStage,
        user_id: int,
        assigned_by: int | None,
        reason: str | None = None,
    ):
        """Close the open row (as ``reassigned``) and open a new one in the same unit."""
        previous = await self.close(db, article_id=article_id, stage=stage, status="reassigned", reason=reason)
        model = self.model_for(stage)
        row = model(
            article_id=article_id,
            user_id=user_id,
            assigned_by=assigned_by,
            assigned_at=utcnow(),
            status="active",
        )
        db.add(row)
        await db.flush()
        await db.refresh(row)
        logger.info(
            "assignment_opened",
            article_id=article_id,
            stage=AssignmentStage(stage).value,
            user_id=user_id,
            previous_user_id=previous.user_id if previous else None,
        )
        return row

    async def close_all(self, db: AsyncSession, *, article_id: int, status: str = "completed") -> int:
        closed = 0
        for stage in AssignmentStage:
            if await self.close(db, article_id=article_id, stage=stage, status=status):
                closed += 1
        return closed

    async def editing_duration(
        self,
        db: AsyncSession,
        *,
        article_id: int,
        user_id: int,
        stage: AssignmentStage,
        now: datetime | None = None,
    ) -> timedelta | None:
        model = self.model_for(stage)
        row = await db.execute(
            select(model)
            .where(model.article_id == article_id, model.user_id == user_id)
            .order_by(model.assigned_at.desc(), model.id.desc())
            .limit(1)
        )
        latest = row.scalar_one_or_none()
        if latest is None:
            return None
        return (now or utcnow()) - latest.assigned_at

    async def history(self, db: AsyncSession, article_id: int) -> dict[str, list]:
        result: dict[str, list] = {}
        for stage, model in _MODELS.items():
            rows = await db.execute(
                select(model).where(model.article_id == article_id).order_by(model.assigned_at.asc(), model.id.asc())
            )
            result[stage.value] = list(rows.scalars().all())
        return result

    async def count_open(self, db: AsyncSession, article_id: int, stage: AssignmentStage) -> int:
        model = self.model_for(stage)
        row = await db.execute(
            select(func.count(model.id)).where(model.article_id == article_id, model.unassigned_at.is_(None))
        )
        return int(row.scalar() or 0)

    async def reassignment_stats(self, db: AsyncSession, *, limit: int = 10) -> dict:
        per_article: dict[int, int] = {}
        totals: dict[str, int] = {}
        for stage, model in _MODELS.items():
            rows = await db.execute(
                select(model.article_id, func.count(model.id))
                .where(model.status == "reassigned")
                .group_by(model.article_id)
            )
            stage_total = 0
            for article_id, count in rows.all():
                per_article[article_id] = per_article.get(article_id, 0) + int(count)
                stage_total += int(count)
            totals[stage.value] = stage_total

        ranked = sorted(per_article.items(), key=lambda item: (-item[1], item[0]))[: max(1, limit)]
        titles: dict[int, str] = {}
        if ranked:
            rows = await db.execute(
                select(Article.id, Article.title).where(Article.id.in_([article_id for article_id, _ in ranked]))
            )
            titles = {article_id: title for article_id, title in rows.all()}

        return {
            "total_reassignments": sum(totals.values()),
            "editor_reassignments": totals.get(AssignmentStage.EDITOR.value, 0),
            "reviewer_reassignments": totals.get(AssignmentStage.REVIEWER.value, 0),
            "most_reassigned": [
                {"article_id": article_id, "title": titles.get(article_id), "reassignments": count}
                for article_id, count in ranked
            ],
        }


assignment_history_service = AssignmentHistoryService()
