"""Observability: JSON logging, Prometheus metrics, optional OTLP tracing."""

from __future__ import annotations

from spacedash.observability.logging import configure_logging
from spacedash.observability.metrics import MetricsMiddleware, metrics_response

__all__ = [
    "MetricsMiddleware",
    "configure_logging",
    "metrics_response",
]
