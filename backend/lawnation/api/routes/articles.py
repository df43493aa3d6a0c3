"""Workflow transitions and per-article audit views."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.api.deps.auth import get_current_actor
from lawnation.api.envelope import success_envelope
from lawnation.api.routes.submissions import get_workflow_service
from lawnation.core.database import get_db
from lawnation.core.exceptions import ArticleNotFoundError, ChangeLogNotFoundError
from lawnation.domain.workflow.capabilities import Actor, Capability, require_capability
from lawnation.domain.workflow.state_machine import allowed_actions
from lawnation.models import Article
from lawnation.repositories import article_repository, change_log_repository, document_version_store
from lawnation.schemas.workflow import (
    ArticleOut,
    AssignmentOut,
    AuditEntryOut,
    ChangeLogEntryOut,
    DocumentVersionOut,
    TransitionBody,
    dump,
)
from lawnation.services.assignment_history_service import assignment_history_service
from lawnation.services.audit_service import audit_service
from lawnation.services.document_processing_service import document_processing_service
from lawnation.services.workflow_service import TransitionRequest, WorkflowService

router = APIRouter(tags=["Workflow"])


async def _visible_article(db: AsyncSession, article_id: int, actor: Actor) -> Article:
    article = await article_repository.get(db, article_id)
    if article is None:
        raise ArticleNotFoundError(article_id)
    require_capability(actor, Capability.VIEW_ARTICLE_HISTORY, article)
    return article


@router.get("/articles/{article_id}")
async def get_article(
    article_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    article = await _visible_article(db, article_id, actor)
    return success_envelope(
        {
            "article": dump(ArticleOut, article),
            "allowed_actions": [action.value for action in allowed_actions(article.status)],
        }
    )


@router.post("/articles/{article_id}/transitions")
async def apply_transition(
    article_id: int,
    body: TransitionBody,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    workflow: WorkflowService = Depends(get_workflow_service),
):
    result = await workflow.dispatch(
        db,
        TransitionRequest(action=body.action, article_id=article_id, actor=actor, payload=body.payload),
    )
    return success_envelope(
        {
            "new_status": result.new_status.value,
            "article": dump(ArticleOut, result.article),
            "change_log_entry": dump(ChangeLogEntryOut, result.change_log_entry) if result.change_log_entry else None,
        }
    )


@router.get("/articles/{article_id}/history")
async def article_history(
    article_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    await _visible_article(db, article_id, actor)
    entries = await change_log_repository.history_for(db, article_id)
    return success_envelope({"items": [dump(ChangeLogEntryOut, entry) for entry in entries]})


@router.get("/articles/{article_id}/versions")
async def article_versions(
    article_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    await _visible_article(db, article_id, actor)
    versions = await document_version_store.list_for(db, article_id)
    tip = versions[-1] if versions else None
    return success_envelope(
        {
            "items": [dump(DocumentVersionOut, version) for version in versions],
            "lineage_tip_id": tip.id if tip else None,
        }
    )


@router.get("/articles/{article_id}/assignments")
async def article_assignments(
    article_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    await _visible_article(db, article_id, actor)
    history = await assignment_history_service.history(db, article_id)
    return success_envelope({stage: [dump(AssignmentOut, row) for row in rows] for stage, rows in history.items()})


@router.get("/articles/{article_id}/timeline")
async def article_timeline(
    article_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    await _visible_article(db, article_id, actor)
    rows = await audit_service.timeline(db, entity_type="article", entity_id=article_id)
    return success_envelope({"items": [dump(AuditEntryOut, row) for row in rows]})


@router.get("/change-logs/{change_log_id}/diff")
async def change_log_diff(
    change_log_id: int,
    parts: bool = Query(False),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    entry = await change_log_repository.get(db, change_log_id)
    if entry is None:
        raise ChangeLogNotFoundError(change_log_id)
    await _visible_article(db, entry.article_id, actor)
    return success_envelope(await document_processing_service.diff_for(db, change_log_id=change_log_id, include_parts=parts))
