"""
FastAPI application factory — the main entrypoint for the Book API.

Features:
- Book CRUD over a single table
- Request logging and Prometheus metrics middleware
- CORS headers with preflight short-circuit
- Connection pool metrics sampled in the background
- Health check backed by a database ping
- Graceful shutdown
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from book_api.config import Settings, get_settings
from book_api.database import ConnectionPool, init_schema
from book_api.logging_config import setup_logging
from book_api.metrics import ApiMetrics
from book_api.middleware.cors import CORSHeadersMiddleware
from book_api.middleware.request_metrics import RequestMetricsMiddleware
from book_api.responses import error_response
from book_api.routers import books, health
from book_api.services.book_store import BookStore
from book_api.services.pool_monitor import PoolMetricsCollector

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and graceful shutdown."""
    settings: Settings = app.state.settings
    logger.info(
        "book_api_starting",
        environment=settings.environment,
        port=settings.port,
    )

    await init_schema(app.state.pool)
    logger.info("database_schema_ready")

    app.state.metrics.books_total.set(await app.state.book_store.count())
    app.state.pool_collector.start()

    yield

    logger.info("book_api_shutting_down")
    await app.state.pool_collector.stop()
    await app.state.pool.dispose()


def create_app(
    settings: Optional[Settings] = None,
    pool: Optional[ConnectionPool] = None,
    metrics: Optional[ApiMetrics] = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    pool = pool or ConnectionPool.from_settings(settings)
    metrics = metrics or ApiMetrics()

    app = FastAPI(
        title="Book API",
        description="CRUD service for books with Prometheus instrumentation",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.pool = pool
    app.state.metrics = metrics
    app.state.book_store = BookStore(pool, metrics)
    app.state.pool_collector = PoolMetricsCollector(
        pool, metrics, interval=settings.metrics_interval_seconds
    )

    # ── Middleware (last added runs first) ──
    app.add_middleware(CORSHeadersMiddleware)
    app.add_middleware(RequestMetricsMiddleware, metrics=metrics)

    # ── Errors raised by routing itself (unknown path, wrong method) ──
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    # ── Routers ──
    app.include_router(health.router)
    app.include_router(books.router)

    # ── Prometheus metrics endpoint ──
    @app.get("/metrics", tags=["Monitoring"], include_in_schema=False)
    async def metrics_endpoint():
        return Response(content=metrics.render(), media_type=CONTENT_TYPE_LATEST)

    return app
