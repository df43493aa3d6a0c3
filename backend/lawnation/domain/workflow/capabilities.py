"""Actor identity and the capability checks every transition guard goes through."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from lawnation.core.exceptions import NotAssignedError
from lawnation.models.user import UserRole


class Capability(str, enum.Enum):
    SUBMIT_ARTICLE = "submit_article"
    MANAGE_WORKFLOW = "manage_workflow"
    ACT_AS_EDITOR = "act_as_editor"
    ACT_AS_REVIEWER = "act_as_reviewer"
    VIEW_ARTICLE_HISTORY = "view_article_history"


@dataclass(frozen=True, slots=True)
class Actor:
    id: int | None
    roles: frozenset[str] = field(default_factory=frozenset)
    email: str | None = None

    @classmethod
    def build(cls, actor_id: int | None, roles: Iterable[str | UserRole] = (), email: str | None = None) -> "Actor":
        values = frozenset(r.value if isinstance(r, UserRole) else str(r) for r in roles)
        return cls(id=actor_id, roles=values, email=email)

    @classmethod
    def system(cls) -> "Actor":
        return cls(id=None, roles=frozenset({"system"}))

    @property
    def is_admin(self) -> bool:
        return UserRole.admin.value in self.roles

    @property
    def is_guest(self) -> bool:
        return self.id is None and "system" not in self.roles


def has_capability(actor: Actor, capability: Capability, article: Any | None = None) -> bool:
    """Single authorization point for workflow actions.

    Admin holds every capability, so it may substitute for an absent editor or
    reviewer. Stage capabilities otherwise require the actor to be the current
    assignee of ``article``.
    """
    if capability == Capability.SUBMIT_ARTICLE:
        return True
    if actor.is_admin:
        return True
    if capability == Capability.MANAGE_WORKFLOW:
        return False
    if article is None or actor.id is None:
        return False
    if capability == Capability.ACT_AS_EDITOR:
        return article.assigned_editor_id == actor.id
    if capability == Capability.ACT_AS_REVIEWER:
        return article.assigned_reviewer_id == actor.id
    if capability == Capability.VIEW_ARTICLE_HISTORY:
        return actor.id in {
            article.author_user_id,
            article.assigned_editor_id,
            article.assigned_reviewer_id,
        }
    return False


def require_capability(actor: Actor, capability: Capability, article: Any | None = None) -> None:
    if has_capability(actor, capability, article):
        return
    if capability == Capability.MANAGE_WORKFLOW:
        message = "Only an admin may perform this action"
    elif capability == Capability.ACT_AS_EDITOR:
        message = "You are not the assigned editor of this article"
    elif capability == Capability.ACT_AS_REVIEWER:
        message = "You are not the assigned reviewer of this article"
    else:
        message = "You do not have access to this article"
    raise NotAssignedError(message, actor_id=actor.id)
