"""Models package."""
from lawnation.models.user import User, UserRole
from lawnation.models.article import Article, ArticleStatus
from lawnation.models.document import DocumentFormat, DocumentVersion, VersionRole
from lawnation.models.change_log import ChangeLogEntry
from lawnation.models.assignment import EditorAssignmentHistory, ReviewerAssignmentHistory
from lawnation.models.verification import SubmissionVerification
from lawnation.models.audit import ActionAuditLog
from lawnation.models.job_queue import DeadLetterJob, JobRun

__all__ = [
    "User", "UserRole",
    "Article", "ArticleStatus",
    "DocumentVersion", "DocumentFormat", "VersionRole",
    "ChangeLogEntry",
    "EditorAssignmentHistory", "ReviewerAssignmentHistory",
    "SubmissionVerification",
    "ActionAuditLog",
    "JobRun", "DeadLetterJob",
]
