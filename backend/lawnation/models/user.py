"""
Law Nation Editorial - User Model
================================
Authors, editors, reviewers and admins. A user may hold several roles.
"""

import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String

from lawnation.core.database import Base


class UserRole(str, enum.Enum):
    admin = "admin"
    editor = "editor"
    reviewer = "reviewer"
    author = "author"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    full_name = Column(String(200), nullable=False)
    email = Column(String(320), unique=True, nullable=False, index=True)

    # Roles
    roles = Column(JSON, nullable=False, default=list)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def has_role(self, role: UserRole | str) -> bool:
        value = role.value if isinstance(role, UserRole) else role
        return value in (self.roles or [])

    def __repr__(self):
        return f"<User {self.email} roles={self.roles}>"
