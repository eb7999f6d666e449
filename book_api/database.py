"""SQLAlchemy async engine, connection pool handle, and schema setup."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import QueuePool

from book_api.config import Settings


class Base(DeclarativeBase):
    pass


@dataclass(frozen=True)
class PoolStats:
    open: int
    in_use: int
    idle: int
    wait_count: int
    wait_duration: float


class ConnectionPool:
    """
    The service's single database handle.

    Wraps an AsyncEngine and keeps the checkout statistics SQLAlchemy does not:
    a checkout counts as a wait when every connection the pool may hand out
    was already checked out at the moment it was requested.
    """

    def __init__(self, engine: AsyncEngine, capacity: Optional[int] = None):
        self.engine = engine
        self.capacity = capacity
        self.wait_count = 0
        self.wait_duration = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConnectionPool":
        engine = create_async_engine(
            settings.database_dsn,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
            pool_recycle=settings.db_pool_recycle_seconds,
            echo=False,
        )
        return cls(engine, capacity=settings.db_pool_size + settings.db_max_overflow)

    def _queue_pool(self) -> Optional[QueuePool]:
        pool = self.engine.sync_engine.pool
        return pool if isinstance(pool, QueuePool) else None

    def _saturated(self) -> bool:
        pool = self._queue_pool()
        if pool is None or self.capacity is None:
            return False
        return pool.checkedout() >= self.capacity

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncConnection]:
        saturated = self._saturated()
        start = time.perf_counter()
        async with self.engine.connect() as conn:
            if saturated:
                self.wait_count += 1
                self.wait_duration += time.perf_counter() - start
            yield conn

    async def ping(self) -> None:
        async with self.connect() as conn:
            await conn.execute(text("SELECT 1"))

    def stats(self) -> PoolStats:
        pool = self._queue_pool()
        idle = pool.checkedin() if pool is not None else 0
        in_use = pool.checkedout() if pool is not None else 0
        return PoolStats(
            open=idle + in_use,
            in_use=in_use,
            idle=idle,
            wait_count=self.wait_count,
            wait_duration=self.wait_duration,
        )

    async def dispose(self) -> None:
        await self.engine.dispose()


async def init_schema(pool: ConnectionPool) -> None:
    """Create the books table and its indexes if they do not exist yet."""
    # Import models so Base.metadata has them registered
    from book_api.models import book  # noqa: F401

    async with pool.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
