"""
Law Nation Editorial - Article Model
===================================
Status pipeline:
PENDING_VERIFICATION → PENDING_ADMIN_REVIEW → ASSIGNED_TO_EDITOR → EDITOR_IN_PROGRESS
→ EDITOR_APPROVED → ASSIGNED_TO_REVIEWER → REVIEWER_IN_PROGRESS → REVIEWER_APPROVED → PUBLISHED
Failure terminals: REJECTED, DELETED (tombstone, rows are never hard-deleted).
"""

import enum
from datetime import datetime

from sqlalchemy import (
    JSON, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text,
)

from lawnation.core.database import Base


class ArticleStatus(str, enum.Enum):
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    PENDING_ADMIN_REVIEW = "PENDING_ADMIN_REVIEW"
    ASSIGNED_TO_EDITOR = "ASSIGNED_TO_EDITOR"
    EDITOR_IN_PROGRESS = "EDITOR_IN_PROGRESS"
    EDITOR_APPROVED = "EDITOR_APPROVED"
    ASSIGNED_TO_REVIEWER = "ASSIGNED_TO_REVIEWER"
    REVIEWER_IN_PROGRESS = "REVIEWER_IN_PROGRESS"
    REVIEWER_APPROVED = "REVIEWER_APPROVED"
    PUBLISHED = "PUBLISHED"
    REJECTED = "REJECTED"
    DELETED = "DELETED"


class Article(Base):
    """Submitted legal article; mutated only through workflow transitions."""
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(255), nullable=False, unique=True, index=True)

    # ── Submission ──
    title = Column(String(1024), nullable=False)
    abstract = Column(Text, nullable=True)
    category = Column(String(120), nullable=True)
    keywords = Column(JSON, default=list)
    author_name = Column(String(200), nullable=False)
    author_email = Column(String(320), nullable=False, index=True)
    author_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    second_author_name = Column(String(200), nullable=True)
    second_author_email = Column(String(320), nullable=True)

    # ── Workflow ──
    status = Column(
        Enum(ArticleStatus, name="article_status"),
        nullable=False,
        default=ArticleStatus.PENDING_ADMIN_REVIEW,
        index=True,
    )
    assigned_editor_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    assigned_reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    citation_number = Column(String(64), nullable=True, unique=True)
    rejection_reason = Column(Text, nullable=True)

    # ── Content pointers ──
    original_pdf_url = Column(String(2048), nullable=False)
    original_word_url = Column(String(2048), nullable=True)
    current_pdf_url = Column(String(2048), nullable=True)
    current_word_url = Column(String(2048), nullable=True)

    # ── Lifecycle ──
    published_at = Column(DateTime, nullable=True)
    published_by = Column(Integer, nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(Integer, nullable=True)
    lock_version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_articles_status_updated", "status", "updated_at"),
    )
    __mapper_args__ = {"version_id_col": lock_version}

    def __repr__(self):
        return f"<Article(id={self.id}, slug='{self.slug}', status={self.status})>"
