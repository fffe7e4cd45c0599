"""Async engine factory for the supported backends.

PostgreSQL (asyncpg) gets a bounded connection pool whose checkout and
connect waits are capped by ``pool_timeout``. SQLite (aiosqlite) keeps
SQLAlchemy's default pool; in-memory databases share one connection.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

if TYPE_CHECKING:
    from payid_server.config.settings import DatabaseConfig


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Build an ``AsyncEngine`` for *config*.

    Args:
        config: Database settings (DSN, pool limits, timeouts).

    Returns:
        An engine that has not opened any connection yet.
    """
    url = make_url(config.dsn)
    options: dict[str, Any] = {"echo": config.debug_sql}

    if url.get_backend_name() != "sqlite":
        options.update(
            pool_size=config.max_idle_connections,
            max_overflow=max(config.max_open_connections - config.max_idle_connections, 0),
            pool_timeout=config.pool_timeout,
            pool_pre_ping=True,
        )
        if url.get_driver_name() == "asyncpg":
            options["connect_args"] = {"timeout": config.pool_timeout}

    return create_async_engine(url, **options)
