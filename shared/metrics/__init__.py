"""Metrics module using Prometheus."""

from .prometheus_metrics import (
    HTTPMetrics,
    DatabaseMetrics,
    setup_metrics,
    get_metrics_handler,
)

__all__ = [
    "HTTPMetrics",
    "DatabaseMetrics",
    "setup_metrics",
    "get_metrics_handler",
]
