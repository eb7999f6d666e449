"""JSON response helpers shared by the handlers."""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from book_api.schemas.book import ErrorResponse


def json_response(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )
