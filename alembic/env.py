"""Alembic environment for the PayID record store.

The database URL comes from ``DatabaseConfig`` (``PAYID_DB__DSN``) so the
server and its migrations always target the same database; ``alembic.ini``
only supplies the fallback. SQLite runs in batch mode because it cannot
ALTER constraints in place.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from payid_server.config.settings import AppConfig
from payid_server.engine.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    """``PAYID_DB__DSN`` when set, else ``sqlalchemy.url`` from alembic.ini."""
    db_config = AppConfig().db
    if "dsn" in db_config.model_fields_set:
        return db_config.dsn
    return config.get_main_option("sqlalchemy.url") or db_config.dsn


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout without a database connection."""
    url = _database_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        render_as_batch=url.startswith("sqlite"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_sync_migrations(connection, url: str) -> None:  # type: ignore[no-untyped-def]
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=url.startswith("sqlite"),
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Apply migrations against the live database."""
    url = _database_url()
    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_sync_migrations, url)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
