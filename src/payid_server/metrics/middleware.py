"""Request metrics middleware.

Requests are labelled with the matched route template (``/users/{pay_id}``)
so PayIDs never become label values. Requests that match no route share the
``unmatched`` label.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp

    from payid_server.metrics.collector import EngineMetrics


def route_label(request: Request) -> str:
    """Route template the request was dispatched to, or ``unmatched``."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Feeds request count and latency into :class:`EngineMetrics`."""

    def __init__(self, app: ASGIApp, *, metrics: EngineMetrics) -> None:
        super().__init__(app)
        self._metrics = metrics

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start = time.monotonic()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            self._metrics.observe_request(
                request.method,
                route_label(request),
                status_code,
                time.monotonic() - start,
            )
