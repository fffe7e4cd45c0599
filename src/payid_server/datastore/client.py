"""Datastore client — async SQLAlchemy engine, sessions and the write lock.

Reads use plain sessions. Writes go through :meth:`Datastore.transaction`,
which serializes them on one lock per datastore and wraps each in a single
database transaction.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from payid_server.datastore.engines import create_engine
from payid_server.errors.payid_errors import StorageUnavailableError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from payid_server.config.settings import DatabaseConfig

logger = logging.getLogger(__name__)

_ERR_NOT_OPEN = "Datastore is not open. Call open() first."


class Datastore:
    """Owns the engine, the session factory and the write lock.

    Usage::

        ds = Datastore(db_config)
        await ds.open()
        async with ds.transaction() as session:
            session.add(...)
        await ds.close()
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None
        self._write_lock = asyncio.Lock()

    async def open(self) -> None:
        """Create the engine and session factory."""
        self._engine = create_engine(self._config)
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)
        logger.debug("Datastore opened (%s)", self._engine.url.get_backend_name())

    async def close(self) -> None:
        """Dispose the engine and release all connections. Safe to call twice."""
        if not self.is_open:
            return
        await self.engine.dispose()
        self._engine = None
        self._sessions = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        """The underlying async engine.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._engine is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return self._engine

    @property
    def lock_timeout(self) -> float:
        """Seconds a write may wait for the lock."""
        return self._config.lock_timeout

    def session(self) -> AsyncSession:
        """New read session; use it as an async context manager.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._sessions is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return self._sessions()

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Hold the write lock and yield a session inside one transaction.

        The transaction commits when the block exits normally and rolls
        back if it raises.

        Raises:
            RuntimeError: If the datastore is not open.
            StorageUnavailableError: If the lock isn't free within
                ``lock_timeout`` seconds.
        """
        session = self.session()
        try:
            async with asyncio.timeout(self._config.lock_timeout):
                await self._write_lock.acquire()
        except TimeoutError as exc:
            await session.close()
            logger.warning("Timed out after %.1fs waiting for the write lock", self.lock_timeout)
            msg = "Timed out waiting for the PayID datastore."
            raise StorageUnavailableError(msg) from exc

        try:
            async with session, session.begin():
                yield session
        finally:
            self._write_lock.release()
