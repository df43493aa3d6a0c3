from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass

from lawnation.core.exceptions import InvalidTransitionError
from lawnation.domain.workflow.capabilities import Capability
from lawnation.models.article import ArticleStatus


class WorkflowAction(str, enum.Enum):
    SUBMIT = "submit"
    VERIFY = "verify"
    ASSIGN_EDITOR = "assign_editor"
    UPLOAD_EDITOR_CORRECTION = "upload_editor_correction"
    EDITOR_APPROVE = "editor_approve"
    ASSIGN_REVIEWER = "assign_reviewer"
    UPLOAD_REVIEWER_CORRECTION = "upload_reviewer_correction"
    REVIEWER_APPROVE = "reviewer_approve"
    SET_CITATION_NUMBER = "set_citation_number"
    PUBLISH = "publish"
    REASSIGN_EDITOR = "reassign_editor"
    REASSIGN_REVIEWER = "reassign_reviewer"
    RELEASE_EDITOR = "release_editor"
    RELEASE_REVIEWER = "release_reviewer"
    REJECT = "reject"
    DELETE = "delete"


TERMINAL_STATES: frozenset[ArticleStatus] = frozenset(
    {ArticleStatus.PUBLISHED, ArticleStatus.REJECTED, ArticleStatus.DELETED}
)
NON_TERMINAL_STATES: frozenset[ArticleStatus] = frozenset(set(ArticleStatus) - TERMINAL_STATES)
# States that exist as an article row (guest submissions live in the verification table).
ARTICLE_NON_TERMINAL_STATES: frozenset[ArticleStatus] = NON_TERMINAL_STATES - {ArticleStatus.PENDING_VERIFICATION}

EDITOR_STAGE: frozenset[ArticleStatus] = frozenset(
    {ArticleStatus.ASSIGNED_TO_EDITOR, ArticleStatus.EDITOR_IN_PROGRESS}
)
REVIEWER_STAGE: frozenset[ArticleStatus] = frozenset(
    {ArticleStatus.ASSIGNED_TO_REVIEWER, ArticleStatus.REVIEWER_IN_PROGRESS}
)


@dataclass(frozen=True, slots=True)
class ActionRule:
    action: WorkflowAction
    sources: frozenset[ArticleStatus]
    target: ArticleStatus | None  # None keeps the current status
    capability: Capability


def _rule(action, sources: Iterable[ArticleStatus], target, capability) -> ActionRule:
    return ActionRule(action=action, sources=frozenset(sources), target=target, capability=capability)


TRANSITION_TABLE: dict[WorkflowAction, ActionRule] = {
    rule.action: rule
    for rule in (
        _rule(WorkflowAction.VERIFY, {ArticleStatus.PENDING_VERIFICATION},
              ArticleStatus.PENDING_ADMIN_REVIEW, Capability.SUBMIT_ARTICLE),
        _rule(WorkflowAction.ASSIGN_EDITOR, {ArticleStatus.PENDING_ADMIN_REVIEW},
              ArticleStatus.ASSIGNED_TO_EDITOR, Capability.MANAGE_WORKFLOW),
        _rule(WorkflowAction.UPLOAD_EDITOR_CORRECTION, EDITOR_STAGE,
              ArticleStatus.EDITOR_IN_PROGRESS, Capability.ACT_AS_EDITOR),
        _rule(WorkflowAction.EDITOR_APPROVE, {ArticleStatus.EDITOR_IN_PROGRESS},
              ArticleStatus.EDITOR_APPROVED, Capability.ACT_AS_EDITOR),
        _rule(WorkflowAction.ASSIGN_REVIEWER, {ArticleStatus.EDITOR_APPROVED},
              ArticleStatus.ASSIGNED_TO_REVIEWER, Capability.MANAGE_WORKFLOW),
        _rule(WorkflowAction.UPLOAD_REVIEWER_CORRECTION, REVIEWER_STAGE,
              ArticleStatus.REVIEWER_IN_PROGRESS, Capability.ACT_AS_REVIEWER),
        _rule(WorkflowAction.REVIEWER_APPROVE, {ArticleStatus.REVIEWER_IN_PROGRESS},
              ArticleStatus.REVIEWER_APPROVED, Capability.ACT_AS_REVIEWER),
        _rule(WorkflowAction.SET_CITATION_NUMBER, {ArticleStatus.REVIEWER_APPROVED},
              None, Capability.MANAGE_WORKFLOW),
        _rule(WorkflowAction.PUBLISH, {ArticleStatus.REVIEWER_APPROVED},
              ArticleStatus.PUBLISHED, Capability.MANAGE_WORKFLOW),
        _rule(WorkflowAction.REASSIGN_EDITOR, ARTICLE_NON_TERMINAL_STATES,
              None, Capability.MANAGE_WORKFLOW),
        _rule(WorkflowAction.REASSIGN_REVIEWER, ARTICLE_NON_TERMINAL_STATES,
              None, Capability.MANAGE_WORKFLOW),
        _rule(WorkflowAction.RELEASE_EDITOR, EDITOR_STAGE,
              ArticleStatus.PENDING_ADMIN_REVIEW, Capability.MANAGE_WORKFLOW),
        _rule(WorkflowAction.RELEASE_REVIEWER, REVIEWER_STAGE,
              ArticleStatus.EDITOR_APPROVED, Capability.MANAGE_WORKFLOW),
        _rule(WorkflowAction.REJECT, ARTICLE_NON_TERMINAL_STATES,
              ArticleStatus.REJECTED, Capability.MANAGE_WORKFLOW),
        _rule(WorkflowAction.DELETE, ARTICLE_NON_TERMINAL_STATES,
              ArticleStatus.DELETED, Capability.MANAGE_WORKFLOW),
    )
}


@dataclass(slots=True)
class ActionValidationResult:
    valid: bool
    action: WorkflowAction
    from_state: ArticleStatus | None
    to_state: ArticleStatus | None
    allowed_actions: list[WorkflowAction]


def allowed_actions(from_state: ArticleStatus | None) -> list[WorkflowAction]:
    if from_state is None:
        return [WorkflowAction.SUBMIT]
    return sorted(
        (rule.action for rule in TRANSITION_TABLE.values() if from_state in rule.sources),
        key=lambda item: item.value,
    )


def rule_for(action: WorkflowAction) -> ActionRule | None:
    return TRANSITION_TABLE.get(action)


def can_apply(from_state: ArticleStatus | None, action: WorkflowAction) -> bool:
    if action == WorkflowAction.SUBMIT:
        return from_state is None
    rule = rule_for(action)
    return rule is not None and from_state in rule.sources


def target_state(from_state: ArticleStatus, action: WorkflowAction) -> ArticleStatus:
    rule = TRANSITION_TABLE[action]
    return rule.target if rule.target is not None else from_state


def validate_action(from_state: ArticleStatus | None, action: WorkflowAction) -> ActionValidationResult:
    valid = can_apply(from_state, action)
    return ActionValidationResult(
        valid=valid,
        action=action,
        from_state=from_state,
        to_state=target_state(from_state, action) if valid and from_state is not None else None,
        allowed_actions=allowed_actions(from_state),
    )


def assert_action_allowed(from_state: ArticleStatus | None, action: WorkflowAction) -> ActionRule:
    result = validate_action(from_state, action)
    if not result.valid:
        raise InvalidTransitionError(
            action=action.value,
            current_status=from_state.value if from_state else None,
            allowed_actions=[item.value for item in result.allowed_actions],
        )
    return TRANSITION_TABLE[action]


# ── Field consistency ──

_REQUIRES_EDITOR = frozenset({
    ArticleStatus.ASSIGNED_TO_EDITOR,
    ArticleStatus.EDITOR_IN_PROGRESS,
    ArticleStatus.EDITOR_APPROVED,
    ArticleStatus.ASSIGNED_TO_REVIEWER,
    ArticleStatus.REVIEWER_IN_PROGRESS,
    ArticleStatus.REVIEWER_APPROVED,
    ArticleStatus.PUBLISHED,
})
_REQUIRES_REVIEWER = frozenset({
    ArticleStatus.ASSIGNED_TO_REVIEWER,
    ArticleStatus.REVIEWER_IN_PROGRESS,
    ArticleStatus.REVIEWER_APPROVED,
    ArticleStatus.PUBLISHED,
})
_ALLOWS_CITATION = frozenset({
    ArticleStatus.REVIEWER_APPROVED,
    ArticleStatus.PUBLISHED,
    ArticleStatus.REJECTED,
    ArticleStatus.DELETED,
})


def consistency_violations(article) -> list[str]:
    """Field combinations the transition table can never produce."""
    status = article.status
    if status in {ArticleStatus.REJECTED, ArticleStatus.DELETED}:
        return []
    problems: list[str] = []
    has_editor = article.assigned_editor_id is not None
    has_reviewer = article.assigned_reviewer_id is not None
    if status in _REQUIRES_EDITOR and not has_editor:
        problems.append("editor_required")
    if status not in _REQUIRES_EDITOR and has_editor:
        problems.append("editor_not_expected")
    if status in _REQUIRES_REVIEWER and not has_reviewer:
        problems.append("reviewer_required")
    if status not in _REQUIRES_REVIEWER and has_reviewer:
        problems.append("reviewer_not_expected")
    if status == ArticleStatus.PUBLISHED and not article.citation_number:
        problems.append("citation_required")
    if article.citation_number and status not in _ALLOWS_CITATION:
        problems.append("citation_not_expected")
    return problems
