"""Tests for the datastore layer — engine factory, client, schema bootstrap."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import inspect, text

from payid_server.config.settings import DatabaseConfig
from payid_server.datastore.client import Datastore
from payid_server.datastore.engines import create_engine
from payid_server.datastore.migrations import run_auto_migrate
from payid_server.errors.payid_errors import StorageUnavailableError

_MEMORY_DSN = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# Engine factory
# ---------------------------------------------------------------------------


class TestCreateEngine:
    """Test engine factory."""

    async def test_create_sqlite_engine(self) -> None:
        engine = create_engine(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        assert engine is not None
        await engine.dispose()

    async def test_engine_echo_flag(self) -> None:
        engine = create_engine(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN, debug_sql=True))
        assert engine.echo is True
        await engine.dispose()


# ---------------------------------------------------------------------------
# Datastore client
# ---------------------------------------------------------------------------


class TestDatastore:
    """Test Datastore lifecycle and session management."""

    async def test_open_close(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        assert not ds.is_open
        await ds.open()
        assert ds.is_open
        await ds.close()
        assert not ds.is_open

    async def test_close_is_idempotent(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        await ds.close()
        assert not ds.is_open

    async def test_engine_property_when_closed(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        with pytest.raises(RuntimeError, match="not open"):
            _ = ds.engine

    async def test_session_when_closed(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        with pytest.raises(RuntimeError, match="not open"):
            ds.session()

    async def test_session_basic_operations(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        await ds.open()
        async with ds.session() as session:
            result = await session.execute(text("SELECT 1"))
            assert result.scalar() == 1
        await ds.close()

    async def test_lock_timeout(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN, lock_timeout=2.5))
        assert ds.lock_timeout == 2.5


# ---------------------------------------------------------------------------
# Migrations
# ---------------------------------------------------------------------------


def _table_names(sync_conn) -> list[str]:  # type: ignore[no-untyped-def]
    return inspect(sync_conn).get_table_names()


class TestMigrations:
    async def test_auto_migrate_creates_tables(self) -> None:
        ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN))
        await ds.open()
        await run_auto_migrate(ds.engine)
        async with ds.engine.connect() as conn:
            tables = await conn.run_sync(_table_names)
        assert {"accounts", "addresses"} <= set(tables)
        await ds.close()


# ---------------------------------------------------------------------------
# Write transactions
# ---------------------------------------------------------------------------


@pytest.fixture
async def datastore():
    ds = Datastore(DatabaseConfig(engine="sqlite", dsn=_MEMORY_DSN, lock_timeout=0.2))
    await ds.open()
    async with ds.engine.begin() as conn:
        await conn.execute(text("CREATE TABLE kv (k TEXT PRIMARY KEY, v TEXT)"))
    yield ds
    await ds.close()


async def _rows(ds: Datastore) -> list[tuple[str, str]]:
    async with ds.session() as session:
        result = await session.execute(text("SELECT k, v FROM kv ORDER BY k"))
        return [tuple(row) for row in result.all()]


class TestTransaction:
    async def test_commits_on_success(self, datastore: Datastore) -> None:
        async with datastore.transaction() as session:
            await session.execute(text("INSERT INTO kv VALUES ('a', '1')"))
        assert await _rows(datastore) == [("a", "1")]

    async def test_rolls_back_on_error(self, datastore: Datastore) -> None:
        with pytest.raises(ValueError, match="abort"):
            async with datastore.transaction() as session:
                await session.execute(text("INSERT INTO kv VALUES ('a', '1')"))
                raise ValueError("abort")
        assert await _rows(datastore) == []

    async def test_lock_released_after_error(self, datastore: Datastore) -> None:
        with pytest.raises(ValueError, match="abort"):
            async with datastore.transaction():
                raise ValueError("abort")
        async with datastore.transaction() as session:
            await session.execute(text("INSERT INTO kv VALUES ('b', '2')"))
        assert await _rows(datastore) == [("b", "2")]

    async def test_second_writer_times_out(self, datastore: Datastore) -> None:
        async with datastore.transaction():
            with pytest.raises(StorageUnavailableError, match="Timed out"):
                async with datastore.transaction():
                    pass

    async def test_writers_are_serialized(self, datastore: Datastore) -> None:
        order: list[str] = []

        async def writer(name: str) -> None:
            async with datastore.transaction():
                order.append(f"{name}:start")
                await asyncio.sleep(0.01)
                order.append(f"{name}:end")

        await asyncio.gather(writer("one"), writer("two"))
        assert order in (
            ["one:start", "one:end", "two:start", "two:end"],
            ["two:start", "two:end", "one:start", "one:end"],
        )
