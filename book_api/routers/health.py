"""Health check backed by a database ping."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response

from book_api.database import ConnectionPool
from book_api.dependencies import get_metrics, get_pool
from book_api.metrics import ApiMetrics
from book_api.responses import json_response

logger = structlog.get_logger()
router = APIRouter(tags=["Health"])


@router.get("/health")
async def health(
    request: Request,
    pool: ConnectionPool = Depends(get_pool),
    metrics: ApiMetrics = Depends(get_metrics),
) -> Response:
    service = request.app.state.settings.service_name
    try:
        await pool.ping()
    except Exception as e:
        logger.warning("health_check_failed", error=str(e))
        metrics.record_error("database", "/health")
        return json_response(
            {
                "status": "unhealthy",
                "service": service,
                "database": "disconnected",
                "error": str(e),
            },
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return json_response(
        {"status": "healthy", "service": service, "database": "connected"}
    )
