"""Book data access: parameterized queries timed per operation."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from book_api.database import ConnectionPool
from book_api.metrics import ApiMetrics
from book_api.models.book import Book
from book_api.schemas.book import BookPayload


def _utcnow() -> datetime:
    # TIMESTAMP WITHOUT TIME ZONE columns hold naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


# books.id is a 32-bit SERIAL; ids outside it cannot match a row
MIN_BOOK_ID, MAX_BOOK_ID = -(2**31), 2**31 - 1


def _storable_id(book_id: int) -> bool:
    return MIN_BOOK_ID <= book_id <= MAX_BOOK_ID


class BookStore:
    """Runs the book queries against the shared connection pool."""

    def __init__(self, pool: ConnectionPool, metrics: ApiMetrics):
        self.pool = pool
        self.metrics = metrics

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        start = time.perf_counter()
        try:
            async with self.pool.connect() as conn:
                async with AsyncSession(bind=conn, expire_on_commit=False) as session:
                    yield session
                    await session.commit()
        finally:
            self.metrics.db_query_duration.labels(operation=operation).observe(
                time.perf_counter() - start
            )

    async def list_all(self) -> list[Book]:
        async with self._session("select_all_books") as session:
            result = await session.execute(select(Book).order_by(Book.id.desc()))
            return list(result.scalars().all())

    async def get_by_id(self, book_id: int) -> Optional[Book]:
        async with self._session("select_book_by_id") as session:
            if not _storable_id(book_id):
                return None
            result = await session.execute(select(Book).where(Book.id == book_id))
            return result.scalar_one_or_none()

    async def create(self, data: BookPayload) -> Book:
        now = _utcnow()
        stmt = (
            insert(Book)
            .values(
                title=data.title,
                author=data.author,
                isbn=data.isbn,
                price=data.price,
                created_at=now,
                updated_at=now,
            )
            .returning(Book)
        )
        async with self._session("insert_book") as session:
            result = await session.execute(stmt)
            return result.scalar_one()

    async def update(self, book_id: int, data: BookPayload) -> Optional[Book]:
        stmt = (
            update(Book)
            .where(Book.id == book_id)
            .values(
                title=data.title,
                author=data.author,
                isbn=data.isbn,
                price=data.price,
                updated_at=_utcnow(),
            )
            .returning(Book)
            .execution_options(synchronize_session=False)
        )
        async with self._session("update_book") as session:
            if not _storable_id(book_id):
                return None
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def delete(self, book_id: int) -> int:
        stmt = (
            delete(Book)
            .where(Book.id == book_id)
            .execution_options(synchronize_session=False)
        )
        async with self._session("delete_book") as session:
            if not _storable_id(book_id):
                return 0
            result = await session.execute(stmt)
            return result.rowcount

    async def count(self) -> int:
        async with self._session("count_books") as session:
            result = await session.execute(select(func.count()).select_from(Book))
            return result.scalar() or 0
