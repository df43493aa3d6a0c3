"""
Law Nation Editorial - Database
==============================
One async engine per process. Requests get a session through ``get_db``;
workers and the maintenance sweep open their own with ``async_session()``.
Sessions keep attributes after commit so post-commit code can still read
the article it just transitioned.
"""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from lawnation.core.config import get_settings

settings = get_settings()


class Base(DeclarativeBase):
    pass


def build_engine(url: str) -> AsyncEngine:
    echo = settings.app_debug and settings.app_env == "development"
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(url, echo=echo, pool_size=20, max_overflow=10, pool_pre_ping=True)


engine = build_engine(settings.database_url)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


async def init_db() -> None:
    """Development only: create missing tables. Other environments run Alembic."""
    if settings.app_env.lower() != "development":
        return
    import lawnation.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
