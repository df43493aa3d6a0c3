"""Article submission and guest verification routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.api.deps.auth import get_optional_actor
from lawnation.api.envelope import success_envelope
from lawnation.core.database import get_db
from lawnation.domain.workflow.capabilities import Actor
from lawnation.schemas.submission import (
    ConfirmTokenRequest,
    ResendCodeRequest,
    SubmissionPayload,
    VerifyCodeRequest,
)
from lawnation.schemas.workflow import ArticleOut, dump
from lawnation.services.verification_service import VerificationService, verification_service
from lawnation.services.workflow_service import TransitionResult, WorkflowService, workflow_service

router = APIRouter(prefix="/submissions", tags=["Submissions"])


def get_workflow_service() -> WorkflowService:
    return workflow_service


def get_verification_service() -> VerificationService:
    return verification_service


def _created(result: TransitionResult, status_code: int = 201):
    return success_envelope(
        {"status": result.new_status.value, "article": dump(ArticleOut, result.article)},
        status_code=status_code,
    )


@router.post("")
async def submit_article(
    body: SubmissionPayload,
    actor: Optional[Actor] = Depends(get_optional_actor),
    db: AsyncSession = Depends(get_db),
    workflow: WorkflowService = Depends(get_workflow_service),
    verification: VerificationService = Depends(get_verification_service),
):
    if actor is None:
        pending = await verification.start(db, payload=body.model_dump())
        return success_envelope(
            {
                "status": pending.status.value,
                "verification_id": pending.verification_id,
                "email": pending.email,
                "expires_at": pending.expires_at.isoformat(),
            },
            status_code=202,
        )
    result = await workflow.submit(db, payload=body.model_dump(), actor=actor)
    return _created(result)


@router.post("/verify-code")
async def verify_code(
    body: VerifyCodeRequest,
    db: AsyncSession = Depends(get_db),
    verification: VerificationService = Depends(get_verification_service),
):
    return _created(await verification.verify_by_code(db, email=body.email, code=body.code))


@router.post("/confirm")
async def confirm_token(
    body: ConfirmTokenRequest,
    db: AsyncSession = Depends(get_db),
    verification: VerificationService = Depends(get_verification_service),
):
    return _created(await verification.confirm_by_token(db, body.token))


@router.post("/resend-code")
async def resend_code(
    body: ResendCodeRequest,
    db: AsyncSession = Depends(get_db),
    verification: VerificationService = Depends(get_verification_service),
):
    pending = await verification.resend_code(db, email=body.email)
    return success_envelope(
        {
            "status": pending.status.value,
            "verification_id": pending.verification_id,
            "expires_at": pending.expires_at.isoformat(),
        }
    )
