"""
Book CRUD routes.

Every /books request lands on one dispatcher which picks a handler from a
(method, has-id) table. Handlers parse the id and body themselves so that a
malformed id is a 400 from the handler rather than a routing failure.
"""

from __future__ import annotations

import re
from typing import Awaitable, Callable, Optional

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from book_api.dependencies import get_book_store, get_metrics
from book_api.metrics import ApiMetrics
from book_api.models.book import Book
from book_api.responses import error_response, json_response
from book_api.schemas.book import BookPayload, BookResponse, MessageResponse
from book_api.services.book_store import BookStore

logger = structlog.get_logger()
router = APIRouter(tags=["Books"])

BOOKS_PREFIX = "/books"
ITEM_ENDPOINT = "/books/{id}"

# OPTIONS never gets here: the CORS middleware answers preflight requests
DISPATCH_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "TRACE"]

_BOOK_ID = re.compile(r"[+-]?[0-9]+")
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1

Handler = Callable[[Request, BookStore, ApiMetrics, str], Awaitable[Response]]


def split_book_path(path: str) -> tuple[bool, str]:
    """Return (has_id, id_segment) for a path under /books."""
    rest = path[len(BOOKS_PREFIX):] if path.startswith(BOOKS_PREFIX) else path
    if rest in ("", "/"):
        return False, ""
    return True, rest[1:] if rest.startswith("/") else rest


def parse_book_id(segment: str) -> Optional[int]:
    if not _BOOK_ID.fullmatch(segment):
        return None
    book_id = int(segment)
    if not INT64_MIN <= book_id <= INT64_MAX:
        return None
    return book_id


def _serialize(book: Book) -> dict:
    return BookResponse.model_validate(book).model_dump(mode="json")


async def _read_payload(request: Request) -> Optional[BookPayload]:
    body = await request.body()
    try:
        return BookPayload.model_validate_json(body)
    except ValidationError:
        return None


def _invalid_id(metrics: ApiMetrics) -> Response:
    metrics.record_error("validation", ITEM_ENDPOINT)
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid book ID")


def _not_found(metrics: ApiMetrics) -> Response:
    metrics.record_error("not_found", ITEM_ENDPOINT)
    return error_response(status.HTTP_404_NOT_FOUND, "Book not found")


def _store_failure(metrics: ApiMetrics, endpoint: str, operation: str, message: str) -> Response:
    logger.error("book_store_error", operation=operation, endpoint=endpoint, exc_info=True)
    metrics.record_error("database", endpoint)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


# ── Handlers ──


async def list_books(request: Request, store: BookStore, metrics: ApiMetrics, segment: str) -> Response:
    try:
        books = await store.list_all()
    except SQLAlchemyError:
        return _store_failure(metrics, BOOKS_PREFIX, "list", "Error fetching books")

    metrics.books_total.set(len(books))
    return json_response([_serialize(b) for b in books])


async def get_book(request: Request, store: BookStore, metrics: ApiMetrics, segment: str) -> Response:
    book_id = parse_book_id(segment)
    if book_id is None:
        return _invalid_id(metrics)

    try:
        book = await store.get_by_id(book_id)
    except SQLAlchemyError:
        return _store_failure(metrics, ITEM_ENDPOINT, "get", "Error fetching book")

    if book is None:
        return _not_found(metrics)
    return json_response(_serialize(book))


async def create_book(request: Request, store: BookStore, metrics: ApiMetrics, segment: str) -> Response:
    data = await _read_payload(request)
    if data is None:
        metrics.record_error("validation", BOOKS_PREFIX)
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body")

    if not data.title or not data.author:
        metrics.record_error("validation", BOOKS_PREFIX)
        return error_response(status.HTTP_400_BAD_REQUEST, "Title and Author are required")

    try:
        book = await store.create(data)
    except SQLAlchemyError:
        return _store_failure(metrics, BOOKS_PREFIX, "create", "Error creating book")

    metrics.books_created_total.inc()
    metrics.books_total.inc()
    return json_response(_serialize(book), status_code=status.HTTP_201_CREATED)


async def update_book(request: Request, store: BookStore, metrics: ApiMetrics, segment: str) -> Response:
    """Overwrite every mutable field; omitted fields are written as empty values."""
    book_id = parse_book_id(segment)
    if book_id is None:
        return _invalid_id(metrics)

    data = await _read_payload(request)
    if data is None:
        metrics.record_error("validation", ITEM_ENDPOINT)
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body")

    try:
        book = await store.update(book_id, data)
    except SQLAlchemyError:
        return _store_failure(metrics, ITEM_ENDPOINT, "update", "Error updating book")

    if book is None:
        return _not_found(metrics)

    metrics.books_updated_total.inc()
    return json_response(_serialize(book))


async def delete_book(request: Request, store: BookStore, metrics: ApiMetrics, segment: str) -> Response:
    book_id = parse_book_id(segment)
    if book_id is None:
        return _invalid_id(metrics)

    try:
        deleted = await store.delete(book_id)
    except SQLAlchemyError:
        return _store_failure(metrics, ITEM_ENDPOINT, "delete", "Error deleting book")

    if deleted == 0:
        return _not_found(metrics)

    metrics.books_deleted_total.inc()
    metrics.books_total.dec()
    return json_response(MessageResponse(message="Book deleted successfully").model_dump())


ROUTES: dict[tuple[str, bool], Handler] = {
    ("GET", False): list_books,
    ("GET", True): get_book,
    ("POST", False): create_book,
    ("PUT", True): update_book,
    ("DELETE", True): delete_book,
}


def resolve(method: str, path: str) -> tuple[Optional[Handler], str]:
    """Look up the handler for a request; None means the method is not allowed."""
    has_id, segment = split_book_path(path)
    return ROUTES.get((method.upper(), has_id)), segment


@router.api_route(BOOKS_PREFIX, methods=DISPATCH_METHODS, include_in_schema=False)
@router.api_route(BOOKS_PREFIX + "/{rest:path}", methods=DISPATCH_METHODS, include_in_schema=False)
async def dispatch_books(
    request: Request,
    store: BookStore = Depends(get_book_store),
    metrics: ApiMetrics = Depends(get_metrics),
) -> Response:
    handler, segment = resolve(request.method, request.url.path)
    if handler is None:
        return error_response(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed")
    return await handler(request, store, metrics, segment)
