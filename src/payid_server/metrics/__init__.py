"""Metrics — Prometheus metrics collection and exposure."""

from __future__ import annotations

from payid_server.metrics.collector import EngineMetrics
from payid_server.metrics.middleware import PrometheusMiddleware

__all__ = ["EngineMetrics", "PrometheusMiddleware"]
