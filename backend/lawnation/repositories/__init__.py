from lawnation.repositories.article_repository import article_repository, user_repository
from lawnation.repositories.change_log_repository import change_log_repository
from lawnation.repositories.document_version_store import document_version_store

__all__ = [
    "article_repository",
    "user_repository",
    "change_log_repository",
    "document_version_store",
]
