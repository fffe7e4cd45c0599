"""FastAPI application factory for the private PayID API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from payid_server import __version__
from payid_server.api.base import router as base_router
from payid_server.api.error_handlers import register_error_handlers
from payid_server.api.middleware.version import setup_version_header
from payid_server.api.private import users_router
from payid_server.config.settings import AppConfig
from payid_server.engine.client import PayIDEngine
from payid_server.metrics.collector import EngineMetrics
from payid_server.metrics.middleware import PrometheusMiddleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the engine for the lifetime of the app.

    The engine reports into the app's metrics sink so request and record
    store metrics share one registry.
    """
    engine = PayIDEngine(app.state.config, metrics=app.state.metrics)
    async with engine:
        app.state.engine = engine
        logger.info("PayID private API ready")
        try:
            yield
        finally:
            app.state.engine = None
    logger.info("PayID private API shut down")


def create_app(*, config: AppConfig | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, a default config is created
            from environment variables.
    """
    if config is None:
        config = AppConfig()

    app = FastAPI(
        title="payid-server",
        version=__version__,
        description="Private management API for PayID records",
        lifespan=_lifespan,
    )
    app.state.config = config
    app.state.engine = None
    app.state.metrics = EngineMetrics() if config.metrics.enabled else None

    # Added last so it wraps the metrics middleware and stamps every response.
    if app.state.metrics is not None:
        app.add_middleware(PrometheusMiddleware, metrics=app.state.metrics)
    setup_version_header(app, config.api.private_api_version)

    register_error_handlers(app)

    app.include_router(base_router)
    app.include_router(users_router)

    return app
