"""Book schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class BookPayload(BaseModel):
    """Request body for create and update. Omitted fields fall back to empty values."""

    title: str = ""
    author: str = ""
    isbn: str = ""
    price: float = 0.0

    # strict: no "9.99" -> 9.99 or true -> 1.0 coercion; JSON integers still pass as floats
    model_config = {"extra": "ignore", "strict": True}

    @field_validator("title", "author", "isbn", mode="before")
    @classmethod
    def _null_text(cls, value: Optional[str]) -> str:
        return "" if value is None else value

    @field_validator("price", mode="before")
    @classmethod
    def _null_number(cls, value: Optional[float]) -> float:
        return 0.0 if value is None else value


class BookResponse(BaseModel):
    id: int
    title: str
    author: str
    isbn: str
    price: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("isbn", mode="before")
    @classmethod
    def _null_isbn(cls, value: Optional[str]) -> str:
        return "" if value is None else value

    @field_validator("price", mode="before")
    @classmethod
    def _null_price(cls, value: Optional[float]) -> float:
        return 0.0 if value is None else value


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
