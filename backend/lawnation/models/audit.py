"""
Law Nation Editorial - Action Audit Log
======================================
One row per committed workflow action, written in the same transaction.
Read back per article as its timeline.
"""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text

from lawnation.core.database import Base


class ActionAuditLog(Base):
    __tablename__ = "action_audit_logs"
    __table_args__ = (Index("ix_audit_entity_timeline", "entity_type", "entity_id", "created_at", "id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(64), nullable=False, index=True)  # SUBMIT, ASSIGN_EDITOR, PUBLISH, ...
    entity_type = Column(String(32), nullable=False)
    entity_id = Column(String(64), nullable=True)
    from_state = Column(String(64), nullable=True)
    to_state = Column(String(64), nullable=True)
    reason = Column(Text, nullable=True)
    details_json = Column(JSON, nullable=True, default=dict)

    actor_user_id = Column(Integer, nullable=True, index=True)
    actor_roles = Column(JSON, nullable=True, default=list)
    request_id = Column(String(64), nullable=True)
    correlation_id = Column(String(64), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
