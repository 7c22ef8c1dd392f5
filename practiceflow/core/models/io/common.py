"""Shared response shapes."""

from __future__ import annotations

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

ItemType = TypeVar("ItemType")


class Page(BaseModel, Generic[ItemType]):
    """One page of a paginated listing."""

    items: List[ItemType]
    total: int = Field(description="Total matching records")
    page: int = Field(description="1-based page number")
    limit: int = Field(description="Page size")
    total_pages: int = Field(description="Number of pages")

    @classmethod
    def build(cls, items: List[ItemType], total: int, page: int, limit: int) -> "Page[ItemType]":
        return cls(items=items, total=total, page=page, limit=limit, total_pages=math.ceil(total / limit) if limit else 0)


class MessageResponse(BaseModel):
    message: str
