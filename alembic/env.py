"""Alembic environment for the editorial schema (backend/ is on sys.path via alembic.ini)."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

import lawnation.models  # noqa: F401
from lawnation.core.config import get_settings
from lawnation.core.database import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# psycopg2 URL; the asyncpg URL is for the application only.
DATABASE_URL = get_settings().database_url_sync
COMPARE = {"target_metadata": Base.metadata, "compare_type": True, "compare_server_default": True}


def run_offline() -> None:
    context.configure(url=DATABASE_URL, literal_binds=True, **COMPARE)
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = create_engine(DATABASE_URL, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **COMPARE)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
