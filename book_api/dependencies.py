"""FastAPI dependencies resolving the shared resources held on app.state."""

from __future__ import annotations

from fastapi import Request

from book_api.database import ConnectionPool
from book_api.metrics import ApiMetrics
from book_api.services.book_store import BookStore


def get_metrics(request: Request) -> ApiMetrics:
    return request.app.state.metrics


def get_pool(request: Request) -> ConnectionPool:
    return request.app.state.pool


def get_book_store(request: Request) -> BookStore:
    return request.app.state.book_store
