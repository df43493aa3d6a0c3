"""
Law Nation Editorial - Change Log
================================
Append-only ledger of who changed which file and when. Ordering is by the
server-assigned ``edited_at`` (ties broken by id).
"""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text

from lawnation.core.database import Base
from lawnation.models.article import ArticleStatus
from lawnation.models.document import VersionRole


class ChangeLogEntry(Base):
    __tablename__ = "article_change_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False, index=True)
    role = Column(Enum(VersionRole, name="version_role"), nullable=False)
    actor_id = Column(Integer, nullable=True, index=True)
    edited_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    old_file_url = Column(String(2048), nullable=True)
    new_file_url = Column(String(2048), nullable=False)
    old_version_id = Column(Integer, nullable=True)
    new_version_id = Column(Integer, nullable=True)
    status_from = Column(Enum(ArticleStatus, name="article_status"), nullable=True)
    status_to = Column(Enum(ArticleStatus, name="article_status"), nullable=True)
    comments = Column(Text, nullable=True)
    diff_summary = Column(JSON(none_as_null=True), nullable=True)  # {added, removed, modified, unchanged, total, description}
    diff_computed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_article_change_logs_article_edited", "article_id", "edited_at"),
    )

    def __repr__(self):
        return f"<ChangeLogEntry(article_id={self.article_id}, role={self.role}, edited_at={self.edited_at})>"
