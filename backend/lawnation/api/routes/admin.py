"""Admin dashboard and access-removal routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.api.deps.auth import require_admin
from lawnation.api.envelope import success_envelope
from lawnation.api.routes.submissions import get_workflow_service
from lawnation.core.database import get_db
from lawnation.domain.workflow.capabilities import Actor
from lawnation.schemas.workflow import ReleaseBody
from lawnation.services.assignment_history_service import AssignmentStage
from lawnation.services.dashboard_service import dashboard_service
from lawnation.services.workflow_service import WorkflowService

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/dashboard")
async def dashboard(
    _: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return success_envelope(await dashboard_service.overview(db))


@router.post("/users/{user_id}/release")
async def release_user_assignments(
    user_id: int,
    body: ReleaseBody,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    workflow: WorkflowService = Depends(get_workflow_service),
):
    results = await workflow.release_assignments(
        db,
        user_id=user_id,
        stage=AssignmentStage(body.stage),
        actor=actor,
        reason=body.reason,
    )
    return success_envelope(
        {
            "user_id": user_id,
            "stage": body.stage,
            "released": [{"article_id": r.article.id, "new_status": r.new_status.value} for r in results],
        }
    )
