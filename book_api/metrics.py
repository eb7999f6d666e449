"""
Prometheus metrics for the Book API.

All instruments live on one ApiMetrics object bound to a single CollectorRegistry.
The app creates it once at startup and hands it to the middleware, the handlers,
the book store and the pool collector. Tests build their own with a fresh registry.
"""

from __future__ import annotations

from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

DB_QUERY_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0)


class ApiMetrics:
    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else REGISTRY

        # ── HTTP ──
        self.http_requests_total = Counter(
            "api_http_requests_total",
            "Total number of HTTP requests",
            ["method", "endpoint", "status"],
            registry=self.registry,
        )
        self.http_request_duration = Histogram(
            "api_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry,
        )
        self.http_requests_in_flight = Gauge(
            "api_http_requests_in_flight",
            "Current number of HTTP requests being processed",
            registry=self.registry,
        )

        # ── Connection pool ──
        self.db_connections_open = Gauge(
            "db_connections_open",
            "Current number of open database connections",
            registry=self.registry,
        )
        self.db_connections_in_use = Gauge(
            "db_connections_in_use",
            "Current number of in-use database connections",
            registry=self.registry,
        )
        self.db_connections_idle = Gauge(
            "db_connections_idle",
            "Current number of idle database connections",
            registry=self.registry,
        )
        self.db_connections_wait_count = Counter(
            "db_connections_wait_count_total",
            "Total number of times waited for a connection",
            registry=self.registry,
        )
        self.db_connections_wait_duration = Counter(
            "db_connections_wait_duration_seconds_total",
            "Total time waited for database connections in seconds",
            registry=self.registry,
        )

        # ── Queries ──
        self.db_query_duration = Histogram(
            "db_query_duration_seconds",
            "Database query duration in seconds",
            ["operation"],
            buckets=DB_QUERY_BUCKETS,
            registry=self.registry,
        )

        # ── Business ──
        self.books_created_total = Counter(
            "api_books_created_total",
            "Total number of books created",
            registry=self.registry,
        )
        self.books_updated_total = Counter(
            "api_books_updated_total",
            "Total number of books updated",
            registry=self.registry,
        )
        self.books_deleted_total = Counter(
            "api_books_deleted_total",
            "Total number of books deleted",
            registry=self.registry,
        )
        self.books_total = Gauge(
            "api_books_total",
            "Current total number of books in the system",
            registry=self.registry,
        )

        # ── Errors ──
        self.api_errors_total = Counter(
            "api_errors_total",
            "Total number of API errors",
            ["type", "endpoint"],
            registry=self.registry,
        )
        self.validation_errors_total = Counter(
            "api_validation_errors_total",
            "Total number of validation errors",
            registry=self.registry,
        )

    def record_error(self, error_type: str, endpoint: str) -> None:
        if error_type == "validation":
            self.validation_errors_total.inc()
        self.api_errors_total.labels(type=error_type, endpoint=endpoint).inc()

    def render(self) -> bytes:
        return generate_latest(self.registry)
