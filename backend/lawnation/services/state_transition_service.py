from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from lawnation.core.exceptions import ArticleNotFoundError, TransitionConflictError
from lawnation.domain.workflow.state_machine import (
    ActionRule,
    WorkflowAction,
    assert_action_allowed,
    target_state,
)
from lawnation.models import Article, ArticleStatus


class StateTransitionService:
    def assert_action(self, *, current: ArticleStatus | None, action: WorkflowAction) -> ActionRule:
        return assert_action_allowed(current, action)

    async def lock_article(self, *, db: AsyncSession, article_id: int, lock_nowait: bool = True) -> Article:
        try:
            row = await db.execute(
                select(Article)
                .where(Article.id == article_id)
                .with_for_update(nowait=lock_nowait)
                .execution_options(populate_existing=True)
            )
        except OperationalError as exc:
            raise TransitionConflictError(
                "The article is being updated by another operation. Retry.",
                details={"article_id": article_id},
            ) from exc

        article = row.scalar_one_or_none()
        if not article:
            raise ArticleNotFoundError(article_id)
        return article

    async def transition_article(
        self,
        *,
        db: AsyncSession,
        article_id: int,
        action: WorkflowAction,
        lock_nowait: bool = True,
    ) -> tuple[Article, ArticleStatus, ActionRule]:
        """Lock the row, check the table and move the in-session status.

        Nothing is committed here; the caller owns the unit of work.
        """
        article = await self.lock_article(db=db, article_id=article_id, lock_nowait=lock_nowait)
        current_status = article.status
        rule = self.assert_action(current=current_status, action=action)
        article.status = target_state(current_status, action)
        return article, current_status, rule


state_transition_service = StateTransitionService()
