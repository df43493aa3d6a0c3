"""
Law Nation Editorial - Assignment History
========================================
Editor and reviewer assignment rows. At most one open row (``unassigned_at``
is NULL) per article and stage, enforced by a partial unique index.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import declared_attr

from lawnation.core.database import Base


class AssignmentHistoryMixin:
    id = Column(Integer, primary_key=True, autoincrement=True)
    assigned_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    unassigned_at = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default="active")  # active|reassigned|released|completed
    reason = Column(Text, nullable=True)

    @declared_attr
    def article_id(cls):
        return Column(Integer, ForeignKey("articles.id"), nullable=False, index=True)

    @declared_attr
    def user_id(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    @declared_attr
    def assigned_by(cls):
        return Column(Integer, ForeignKey("users.id"), nullable=True)

    @property
    def is_open(self) -> bool:
        return self.unassigned_at is None


class EditorAssignmentHistory(AssignmentHistoryMixin, Base):
    __tablename__ = "editor_assignment_history"

    __table_args__ = (
        Index(
            "uq_editor_assignment_open",
            "article_id",
            unique=True,
            postgresql_where=text("unassigned_at IS NULL"),
            sqlite_where=text("unassigned_at IS NULL"),
        ),
    )


class ReviewerAssignmentHistory(AssignmentHistoryMixin, Base):
    __tablename__ = "reviewer_assignment_history"

    __table_args__ = (
        Index(
            "uq_reviewer_assignment_open",
            "article_id",
            unique=True,
            postgresql_where=text("unassigned_at IS NULL"),
            sqlite_where=text("unassigned_at IS NULL"),
        ),
    )
