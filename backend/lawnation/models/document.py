"""
Law Nation Editorial - Document Versions
=======================================
One row per produced artifact. Append-only; the PDF and DOCX of a single
upload share a ``revision`` number.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Column, DateTime, Enum, ForeignKey, Index, Integer, String, UniqueConstraint,
)

from lawnation.core.database import Base
from lawnation.models.article import ArticleStatus


class VersionRole(str, enum.Enum):
    ORIGINAL = "ORIGINAL"
    EDITOR = "EDITOR"
    REVIEWER = "REVIEWER"
    ADMIN = "ADMIN"


class DocumentFormat(str, enum.Enum):
    PDF = "PDF"
    DOCX = "DOCX"


class DocumentVersion(Base):
    __tablename__ = "document_versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False, index=True)
    role = Column(Enum(VersionRole, name="version_role"), nullable=False)
    format = Column(Enum(DocumentFormat, name="document_format"), nullable=False)
    url = Column(String(2048), nullable=False)
    revision = Column(Integer, nullable=False)
    produced_by = Column(Integer, nullable=True)
    change_log_id = Column(Integer, ForeignKey("article_change_logs.id"), nullable=True, index=True)
    derived_from_id = Column(Integer, ForeignKey("document_versions.id"), nullable=True)
    status_at_upload = Column(Enum(ArticleStatus, name="article_status"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("article_id", "revision", "format", name="uq_document_versions_revision_format"),
        Index("ix_document_versions_article_role", "article_id", "role"),
    )

    def __repr__(self):
        return f"<DocumentVersion(article_id={self.article_id}, role={self.role}, format={self.format}, rev={self.revision})>"
