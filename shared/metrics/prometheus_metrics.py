"""Prometheus metrics definitions and helpers.

Provides the metric definitions shared by the blog API components.
"""

from functools import lru_cache
from typing import Callable

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    REGISTRY,
    CollectorRegistry,
)


class HTTPMetrics:
    """HTTP request metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize HTTP metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=registry,
        )

        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=registry,
        )

        self.requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method", "endpoint"],
            registry=registry,
        )


class DatabaseMetrics:
    """Database statement and pool metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize database metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.queries_total = Counter(
            "db_queries_total",
            "Total SQL statements executed",
            ["kind", "outcome"],
            registry=registry,
        )

        self.query_duration = Histogram(
            "db_query_duration_seconds",
            "Time spent executing SQL statements",
            ["kind"],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0],
            registry=registry,
        )

        self.connections_active = Gauge(
            "database_connections_active",
            "Open database connections",
            registry=registry,
        )

        self.connections_idle = Gauge(
            "database_connections_idle",
            "Idle database connections in pool",
            registry=registry,
        )


@lru_cache()
def setup_metrics() -> tuple[HTTPMetrics, DatabaseMetrics]:
    """Setup and return metric instances registered on the default registry.

    Cached so that repeated calls do not register the same collectors twice.

    Returns:
        Tuple of (HTTPMetrics, DatabaseMetrics)
    """
    http_metrics = HTTPMetrics()
    database_metrics = DatabaseMetrics()
    return http_metrics, database_metrics


def get_metrics_handler(registry: CollectorRegistry = REGISTRY) -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Args:
        registry: Prometheus registry to expose

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(registry)

    return metrics_handler
