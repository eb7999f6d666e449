"""Periodic connection pool sampling into Prometheus gauges and counters."""

from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from book_api.database import ConnectionPool
from book_api.metrics import ApiMetrics

logger = structlog.get_logger()


class PoolMetricsCollector:
    def __init__(self, pool: ConnectionPool, metrics: ApiMetrics, interval: float = 15.0):
        self.pool = pool
        self.metrics = metrics
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._last_wait_count = 0
        self._last_wait_duration = 0.0

    def collect(self) -> None:
        """Take one sample. Cumulative pool counters are republished as deltas."""
        stats = self.pool.stats()
        self.metrics.db_connections_open.set(stats.open)
        self.metrics.db_connections_in_use.set(stats.in_use)
        self.metrics.db_connections_idle.set(stats.idle)

        if stats.wait_count > self._last_wait_count:
            self.metrics.db_connections_wait_count.inc(stats.wait_count - self._last_wait_count)
        if stats.wait_duration > self._last_wait_duration:
            self.metrics.db_connections_wait_duration.inc(
                stats.wait_duration - self._last_wait_duration
            )
        self._last_wait_count = stats.wait_count
        self._last_wait_duration = stats.wait_duration

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.collect()
            except Exception:
                logger.warning("pool_metrics_sample_failed", exc_info=True)

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
