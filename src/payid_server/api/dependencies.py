"""FastAPI dependency injection helpers.

Usage in a route::

    @router.get("/users/{pay_id}")
    async def get_user(
        pay_id: str,
        engine: Annotated[PayIDEngine, Depends(get_engine)],
    ) -> ...:
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from payid_server.engine.client import PayIDEngine  # noqa: TC001
from payid_server.engine.services.payid_service import PayIDService  # noqa: TC001
from payid_server.errors.payid_errors import StorageUnavailableError


def get_engine(request: Request) -> PayIDEngine:
    """Retrieve the engine from ``app.state``.

    The engine is stored on ``app.state.engine`` during lifespan startup.

    Raises:
        StorageUnavailableError: If the engine is not initialized.
    """
    engine: PayIDEngine | None = getattr(request.app.state, "engine", None)
    if engine is None or not engine.is_initialized:
        raise StorageUnavailableError
    return engine


def get_payid_service(
    engine: Annotated[PayIDEngine, Depends(get_engine)],
) -> PayIDService:
    """Dependency returning the PayID record store."""
    return engine.payid_service
