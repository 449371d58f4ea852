"""
Shared API schema building blocks.

All API payloads are camelCase on the wire and snake_case in Python.
Successful responses are wrapped in ``{"success": true, "data": ...}``.
"""

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base model for request and response bodies (camelCase aliases)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope."""

    success: bool = True
    data: T


class Page(ApiModel, Generic[T]):
    """A page of results."""

    items: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_more: bool

    @classmethod
    def build(cls, items: List[T], total: int, page: int, page_size: int) -> "Page[T]":
        total_pages = math.ceil(total / page_size) if page_size else 0
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_more=page * page_size < total,
        )


class MessageData(ApiModel):
    message: str = Field(..., description="Human readable outcome.")


class CsrfTokenIssued(ApiModel):
    token: str
    expires_in: int = Field(..., description="Seconds until the token expires.")


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
