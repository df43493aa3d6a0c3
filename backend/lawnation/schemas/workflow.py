"""
Law Nation Editorial - Workflow Schemas
======================================
Request bodies and read models returned inside the response envelope.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from lawnation.domain.workflow.state_machine import WorkflowAction
from lawnation.models import ArticleStatus, DocumentFormat, VersionRole


class TransitionBody(BaseModel):
    action: WorkflowAction
    payload: dict[str, Any] = Field(default_factory=dict)


class ReleaseBody(BaseModel):
    stage: str = Field(..., pattern="^(editor|reviewer)$")
    reason: Optional[str] = Field(default=None, max_length=2000)


class ArticleOut(BaseModel):
    id: int
    slug: str
    title: str
    status: ArticleStatus
    author_name: str
    author_email: str
    assigned_editor_id: Optional[int]
    assigned_reviewer_id: Optional[int]
    citation_number: Optional[str]
    rejection_reason: Optional[str]
    original_pdf_url: str
    original_word_url: Optional[str]
    current_pdf_url: Optional[str]
    current_word_url: Optional[str]
    published_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class ChangeLogEntryOut(BaseModel):
    id: int
    article_id: int
    role: VersionRole
    actor_id: Optional[int]
    edited_at: datetime
    old_file_url: Optional[str]
    new_file_url: str
    old_version_id: Optional[int]
    new_version_id: Optional[int]
    status_from: Optional[ArticleStatus]
    status_to: Optional[ArticleStatus]
    comments: Optional[str]
    diff_summary: Optional[dict[str, Any]]
    diff_computed_at: Optional[datetime]

    class Config:
        from_attributes = True


class DocumentVersionOut(BaseModel):
    id: int
    article_id: int
    role: VersionRole
    format: DocumentFormat
    url: str
    revision: int
    produced_by: Optional[int]
    change_log_id: Optional[int]
    derived_from_id: Optional[int]
    status_at_upload: Optional[ArticleStatus]
    created_at: datetime

    class Config:
        from_attributes = True


class AssignmentOut(BaseModel):
    id: int
    article_id: int
    user_id: int
    assigned_by: Optional[int]
    assigned_at: datetime
    unassigned_at: Optional[datetime]
    status: str
    reason: Optional[str]
    is_open: bool

    class Config:
        from_attributes = True


class AuditEntryOut(BaseModel):
    id: int
    action: str
    from_state: Optional[str]
    to_state: Optional[str]
    reason: Optional[str]
    details_json: Optional[dict[str, Any]]
    actor_user_id: Optional[int]
    actor_roles: Optional[list[str]]
    request_id: Optional[str]
    correlation_id: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


def dump(model: type[BaseModel], obj: Any) -> dict[str, Any]:
    return model.model_validate(obj).model_dump(mode="json")
