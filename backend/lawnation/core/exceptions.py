"""Typed errors raised by the editorial core.

Workflow errors are synchronous guard failures: they abort the whole transition
and are mapped to an HTTP status by the API layer. Background errors are raised
inside worker tasks only and never reach the actor.
"""

from __future__ import annotations

from typing import Any


class LawNationError(Exception):
    """Base exception for the editorial service."""

    code = "lawnation_error"
    http_status = 500

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class WorkflowError(LawNationError):
    """A transition request was refused; nothing was written."""

    code = "workflow_error"
    http_status = 400


class InvalidTransitionError(WorkflowError):
    code = "invalid_transition"
    http_status = 409

    def __init__(self, *, action: str, current_status: str | None, allowed_actions: list[str] | None = None):
        self.action = action
        self.current_status = current_status
        super().__init__(
            f"Action '{action}' is not allowed while the article is {current_status or 'not created'}",
            details={
                "action": action,
                "current_status": current_status,
                "allowed_actions": allowed_actions or [],
            },
        )


class CitationRequiredError(InvalidTransitionError):
    """Publish refused because no citation number is set yet."""

    code = "citation_required"

    def __init__(self, *, article_id: int, current_status: str, allowed_actions: list[str] | None = None):
        super().__init__(action="publish", current_status=current_status, allowed_actions=allowed_actions)
        self.message = "A citation number must be set before publishing"
        self.args = (self.message,)
        self.details.update({"article_id": article_id, "missing": "citation_number"})


class NotAssignedError(WorkflowError):
    code = "not_assigned"
    http_status = 403

    def __init__(self, message: str = "You are not assigned to this article", *, actor_id: int | None = None):
        self.actor_id = actor_id
        super().__init__(message, details={"actor_id": actor_id})


class DuplicateCitationError(WorkflowError):
    code = "duplicate_citation"
    http_status = 409

    def __init__(self, citation_number: str, *, conflicting_article_id: int | None, conflicting_title: str):
        self.citation_number = citation_number
        self.conflicting_article_id = conflicting_article_id
        self.conflicting_title = conflicting_title
        super().__init__(
            f'Citation number "{citation_number}" is already used by article: {conflicting_title}',
            details={
                "citation_number": citation_number,
                "conflicting_article_id": conflicting_article_id,
                "conflicting_title": conflicting_title,
            },
        )


class InvalidCitationError(WorkflowError):
    code = "invalid_citation"
    http_status = 422


class InvalidPayloadError(WorkflowError):
    code = "invalid_payload"
    http_status = 422


class ArticleNotFoundError(WorkflowError):
    code = "article_not_found"
    http_status = 404

    def __init__(self, article_id: int | str):
        self.article_id = article_id
        super().__init__(f"Article {article_id} not found", details={"article_id": article_id})


class ChangeLogNotFoundError(WorkflowError):
    code = "change_log_not_found"
    http_status = 404

    def __init__(self, change_log_id: int):
        self.change_log_id = change_log_id
        super().__init__(f"Change log entry {change_log_id} not found", details={"change_log_id": change_log_id})


class AssigneeNotFoundError(WorkflowError):
    code = "assignee_not_found"
    http_status = 404


class TransitionConflictError(WorkflowError):
    code = "transition_conflict"
    http_status = 409


class VerificationError(WorkflowError):
    code = "verification_failed"
    http_status = 400


class BackgroundTaskError(LawNationError):
    """Failure inside a background job. Logged; never rolls back a transition."""

    code = "background_task_failed"


class ConversionFailure(BackgroundTaskError):
    code = "conversion_failed"


class ExtractionFailure(BackgroundTaskError):
    code = "extraction_failed"
