"""Operational routes: ``/health`` and ``/metrics``."""

from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from payid_server.engine.client import PayIDEngine  # noqa: TC001
from payid_server.metrics.collector import EngineMetrics  # noqa: TC001

router = APIRouter(tags=["base"])


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    """Liveness plus a datastore ping; 503 when the datastore is unreachable."""
    engine: PayIDEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        components = {"engine": "not_initialized", "datastore": "not_initialized"}
    else:
        components = await engine.health_check()

    if components["datastore"] == "ok":
        return JSONResponse(content={"status": "ok", **components})
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "unavailable", **components},
    )


@router.get("/metrics", include_in_schema=False)
async def metrics(request: Request) -> Response:
    """Prometheus exposition; address counts are refreshed on every scrape."""
    sink: EngineMetrics | None = request.app.state.metrics
    if sink is None:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    engine: PayIDEngine | None = getattr(request.app.state, "engine", None)
    if engine is not None and engine.is_initialized:
        sink.set_address_counts(await engine.payid_service.count_addresses())
    return Response(content=generate_latest(sink.registry), media_type=CONTENT_TYPE_LATEST)
