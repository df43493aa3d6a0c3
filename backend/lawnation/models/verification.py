"""Guest submission verification records (token link or 6-digit code)."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String

from lawnation.core.database import Base


class SubmissionVerification(Base):
    __tablename__ = "submission_verifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(320), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True)
    code_hash = Column(String(128), nullable=False)
    payload_json = Column(JSON, nullable=False, default=dict)
    expires_at = Column(DateTime, nullable=False)
    consumed_at = Column(DateTime, nullable=True)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=True)
    resend_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_submission_verifications_email_created", "email", "created_at"),
    )

    @property
    def is_consumed(self) -> bool:
        return self.consumed_at is not None
