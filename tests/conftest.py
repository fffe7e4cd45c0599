"""Shared test fixtures for the payid-server test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from payid_server.config.settings import DatabaseEngine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

API_VERSION = "2020-05-28"


@pytest.fixture
def app_config():
    """Provide a test AppConfig backed by in-memory SQLite."""
    from payid_server.config.settings import AppConfig, DatabaseConfig

    return AppConfig(
        debug=True,
        db=DatabaseConfig(
            engine=DatabaseEngine.SQLITE,
            dsn="sqlite+aiosqlite:///:memory:",
            lock_timeout=0.5,
        ),
    )


@pytest.fixture
async def engine(app_config) -> AsyncIterator:
    """Create an initialized engine with in-memory SQLite."""
    from payid_server.engine.client import PayIDEngine

    eng = PayIDEngine(app_config)
    await eng.initialize()
    yield eng
    await eng.close()


@pytest.fixture
def service(engine):
    """The engine's PayID record store."""
    return engine.payid_service


@pytest.fixture
def test_client(app_config) -> Iterator:
    """Provide a FastAPI TestClient with lifespan run and the version header set."""
    from fastapi.testclient import TestClient

    from payid_server.api.app import create_app

    app = create_app(config=app_config)
    with TestClient(
        app,
        raise_server_exceptions=False,
        headers={"PayID-API-Version": API_VERSION},
    ) as client:
        yield client
