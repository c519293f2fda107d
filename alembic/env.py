# alembic/env.py
from __future__ import annotations
import os, sys
from logging.config import fileConfig
from alembic import context
from sqlalchemy import create_engine, pool

# --- Make sure we can import the app, and load .env ---
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))   # .../alembic
PROJECT_PARENT = os.path.dirname(PROJECT_ROOT)              # project root
if PROJECT_PARENT not in sys.path:
    sys.path.insert(0, PROJECT_PARENT)

from dotenv import load_dotenv
load_dotenv()

from streamseen.core.settings import settings
from streamseen.db.models import Base

target_metadata = Base.metadata

config = context.config

# Choose a **sync** URL for Alembic
url_sync = settings.database_url_sync
if not url_sync:
    # Fallback: derive sync URL from async URL by swapping driver
    if "+asyncpg" in settings.database_url:
        url_sync = settings.database_url.replace("+asyncpg", "+psycopg")
    elif "+aiosqlite" in settings.database_url:
        url_sync = settings.database_url.replace("+aiosqlite", "")
    else:
        url_sync = settings.database_url  # may already be sync

config.set_main_option("sqlalchemy.url", url_sync)

# Logging
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode (SYNC engine)."""
    connectable = create_engine(
        config.get_main_option("sqlalchemy.url"),
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
