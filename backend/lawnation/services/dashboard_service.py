from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.core.logging import get_logger
from lawnation.models import ChangeLogEntry, JobRun
from lawnation.repositories import article_repository
from lawnation.services.assignment_history_service import assignment_history_service

logger = get_logger("services.dashboard")


class DashboardService:
    async def overview(self, db: AsyncSession) -> dict[str, Any]:
        status_counts = await article_repository.status_counts(db)
        reassignments = await assignment_history_service.reassignment_stats(db)

        pending_diffs = await db.execute(
            select(func.count(ChangeLogEntry.id)).where(
                ChangeLogEntry.diff_summary.is_(None),
                ChangeLogEntry.old_file_url.is_not(None),
            )
        )
        job_rows = await db.execute(select(JobRun.status, func.count(JobRun.id)).group_by(JobRun.status))

        return {
            "articles_by_status": status_counts,
            "articles_total": sum(status_counts.values()),
            "reassignments": reassignments,
            "pending_diffs": int(pending_diffs.scalar() or 0),
            "jobs_by_status": {status: int(total) for status, total in job_rows.all()},
        }


dashboard_service = DashboardService()
