"""Prometheus metrics for the PayID record store and its HTTP API.

Record store:
- ``payid_count`` gauge (addresses per paymentNetwork/environment)
- ``payid_operation_total`` counter (operation, outcome)
- ``payid_operation_duration_seconds`` histogram (operation)

HTTP:
- ``http_request_total`` counter (method, path, status_code, app)
- ``http_request_duration_seconds`` histogram (method, path, app)
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

APP_LABEL = "payid-private-api"


class EngineMetrics:
    """Owns a Prometheus registry and every instrument exported from it.

    Each instance gets its own registry unless one is passed in, so several
    apps (or tests) can live in one process without name clashes.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry if registry is not None else CollectorRegistry()

        self._payid_count = Gauge(
            "payid_count",
            "Number of stored addresses per payment network and environment",
            ("paymentNetwork", "environment"),
            registry=self._registry,
        )
        self._operations = Counter(
            "payid_operation",
            "Record store operations by outcome",
            ("operation", "outcome"),
            registry=self._registry,
        )
        self._duration = Histogram(
            "payid_operation_duration_seconds",
            "Duration of record store operations",
            ("operation",),
            registry=self._registry,
        )
        self._requests = Counter(
            "http_request",
            "Total HTTP requests",
            ("method", "path", "status_code", "app"),
            registry=self._registry,
        )
        self._request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ("method", "path", "app"),
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    # ------------------------------------------------------------------
    # Record store
    # ------------------------------------------------------------------

    def set_address_counts(self, counts: Mapping[tuple[str, str | None], int]) -> None:
        """Replace the ``payid_count`` series with a fresh snapshot.

        A missing environment is exported as an empty label.
        """
        self._payid_count.clear()
        for (network, environment), count in counts.items():
            self._payid_count.labels(
                paymentNetwork=network,
                environment=environment or "",
            ).set(count)

    def record_outcome(self, operation: str, outcome: str) -> None:
        """Count one finished operation."""
        self._operations.labels(operation=operation, outcome=outcome).inc()

    @contextmanager
    def track_operation(self, operation: str) -> Iterator[None]:
        """Time an operation; failures are counted under their error code."""
        start = time.monotonic()
        try:
            yield
        except Exception as exc:
            self.record_outcome(operation, getattr(exc, "code", "error"))
            raise
        finally:
            self._duration.labels(operation=operation).observe(time.monotonic() - start)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    def observe_request(self, method: str, path: str, status_code: int, duration: float) -> None:
        """Record one served HTTP request."""
        self._requests.labels(
            method=method,
            path=path,
            status_code=str(status_code),
            app=APP_LABEL,
        ).inc()
        self._request_duration.labels(method=method, path=path, app=APP_LABEL).observe(duration)
