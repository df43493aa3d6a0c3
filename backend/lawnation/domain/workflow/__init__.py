from lawnation.domain.workflow.capabilities import Actor, Capability, has_capability, require_capability
from lawnation.domain.workflow.state_machine import (
    TRANSITION_TABLE,
    WorkflowAction,
    allowed_actions,
    assert_action_allowed,
    can_apply,
    consistency_violations,
)

__all__ = [
    "Actor",
    "Capability",
    "has_capability",
    "require_capability",
    "TRANSITION_TABLE",
    "WorkflowAction",
    "allowed_actions",
    "assert_action_allowed",
    "can_apply",
    "consistency_violations",
]
