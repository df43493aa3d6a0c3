"""Ledger rows for background document jobs (conversion and diff)."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, Uuid

from lawnation.core.database import Base


class JobRun(Base):
    __tablename__ = "job_runs"
    __table_args__ = (Index("ix_job_runs_type_entity_status", "job_type", "entity_id", "status"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    job_type = Column(String(64), nullable=False, index=True)
    queue_name = Column(String(64), nullable=False, index=True)
    # "version:<id>" for conversions, "change_log:<id>" for diffs
    entity_id = Column(String(64), nullable=True, index=True)
    status = Column(String(24), nullable=False, default="queued", index=True)  # queued, running, completed, failed or dead_lettered
    payload_json = Column(JSON, nullable=False, default=dict)
    result_json = Column(JSON, nullable=True)

    attempt = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=3)
    error_code = Column(String(64), nullable=True)
    error = Column(Text, nullable=True)

    actor_user_id = Column(Integer, nullable=True)
    request_id = Column(String(64), nullable=True)
    correlation_id = Column(String(64), nullable=True)

    queued_at = Column(DateTime, default=datetime.utcnow, index=True)
    started_at = Column(DateTime, nullable=True)
    finished_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class DeadLetterJob(Base):
    """A job that exhausted its retries; the payload is kept for manual replay."""

    __tablename__ = "dead_letter_jobs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    original_job_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    job_type = Column(String(64), nullable=False, index=True)
    queue_name = Column(String(64), nullable=False)
    error = Column(Text, nullable=False)
    traceback = Column(Text, nullable=True)
    payload_json = Column(JSON, nullable=False, default=dict)
    failed_at = Column(DateTime, default=datetime.utcnow, index=True)
