"""Shared test configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry
from sqlalchemy.ext.asyncio import create_async_engine

# Ensure the project root is on sys.path so `book_api` resolves without an install
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from book_api.config import Settings  # noqa: E402
from book_api.database import ConnectionPool, init_schema  # noqa: E402
from book_api.main import create_app  # noqa: E402
from book_api.metrics import ApiMetrics  # noqa: E402


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'books.db'}"


@pytest.fixture
def settings(db_url) -> Settings:
    return Settings(
        environment="testing",
        database_url=db_url,
        log_format="console",
        log_level="WARNING",
        metrics_interval_seconds=0.05,
    )


@pytest.fixture
def metrics() -> ApiMetrics:
    return ApiMetrics(CollectorRegistry())


@pytest_asyncio.fixture
async def pool(db_url):
    pool = ConnectionPool(create_async_engine(db_url), capacity=15)
    yield pool
    await pool.dispose()


@pytest.fixture
def app(settings, pool, metrics):
    return create_app(settings=settings, pool=pool, metrics=metrics)


@pytest_asyncio.fixture
async def client(app, pool):
    """Test client against a migrated SQLite database."""
    await init_schema(pool)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def bare_client(app):
    """Test client whose database has no schema, so every query fails."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def read_metric(metrics):
    """Current value of a sample in the test registry, 0 when never observed."""

    def _read(name: str, labels: dict | None = None) -> float:
        value = metrics.registry.get_sample_value(name, labels or {})
        return value or 0.0

    return _read
