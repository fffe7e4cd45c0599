"""PayIDEngine — the handle through which every service reaches storage."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Self

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from payid_server.datastore.client import Datastore
from payid_server.datastore.migrations import run_auto_migrate
from payid_server.engine.services.payid_service import PayIDService
from payid_server.metrics.collector import EngineMetrics

if TYPE_CHECKING:
    from types import TracebackType

    from payid_server.config.settings import AppConfig

logger = logging.getLogger(__name__)

_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class PayIDEngine:
    """Owns the datastore, the record store service and the metrics sink.

    Usage::

        async with PayIDEngine(config) as engine:
            record = await engine.payid_service.get("alice$example.com")
    """

    def __init__(self, config: AppConfig, *, metrics: EngineMetrics | None = None) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application configuration.
            metrics: Metrics sink to report into. When omitted and metrics are
                enabled, the engine creates one on :meth:`initialize`.
        """
        self._config = config
        self._metrics = metrics
        self._datastore: Datastore | None = None
        self._payid_service: PayIDService | None = None

    async def initialize(self) -> None:
        """Open the datastore, ensure the schema exists, and start the service.

        Raises:
            RuntimeError: If already initialized.
        """
        if self._datastore is not None:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        datastore = Datastore(self._config.db)
        await datastore.open()
        try:
            await run_auto_migrate(datastore.engine)
        except BaseException:
            await datastore.close()
            raise

        if self._metrics is None and self._config.metrics.enabled:
            self._metrics = EngineMetrics()

        self._datastore = datastore
        self._payid_service = PayIDService(self)
        logger.info("PayID engine initialized (%s)", self._config.db.engine)

    async def close(self) -> None:
        """Release the datastore. Calling it on a closed engine does nothing."""
        datastore, self._datastore = self._datastore, None
        self._payid_service = None
        if datastore is None:
            return
        await datastore.close()
        logger.info("PayID engine closed")

    async def __aenter__(self) -> Self:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._datastore is not None

    @property
    def metrics(self) -> EngineMetrics | None:
        """Metrics sink, or None when metrics are disabled."""
        return self._metrics

    @property
    def datastore(self) -> Datastore:
        """Raises RuntimeError if the engine isn't initialized."""
        if self._datastore is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._datastore

    @property
    def payid_service(self) -> PayIDService:
        """Raises RuntimeError if the engine isn't initialized."""
        if self._payid_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._payid_service

    async def health_check(self) -> dict[str, str]:
        """Report engine and datastore status.

        The datastore is pinged with ``SELECT 1``.

        Returns:
            ``{"engine": ..., "datastore": ...}`` where each value is ``ok``,
            ``error`` or ``not_initialized``.
        """
        if self._datastore is None:
            return {"engine": "not_initialized", "datastore": "not_initialized"}
        try:
            async with self._datastore.session() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning("Datastore health check failed: %s", exc)
            return {"engine": "ok", "datastore": "error"}
        return {"engine": "ok", "datastore": "ok"}
