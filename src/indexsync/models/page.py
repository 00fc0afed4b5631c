"""Pagination models shared by the record store and the search path."""

from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageRequest(BaseModel):
    """Zero-based page number and page size."""

    page: int = Field(default=0, ge=0, description="Zero-based page number")
    size: int = Field(default=20, ge=1, le=1000, description="Items per page")

    @property
    def offset(self) -> int:
        return self.page * self.size


class Page(BaseModel, Generic[T]):
    """One page of results together with the total number of matches."""

    content: list[T] = Field(default_factory=list, description="Items on this page")
    total: int = Field(default=0, ge=0, description="Total number of matching items")
    page: int = Field(default=0, ge=0, description="Zero-based page number")
    size: int = Field(default=20, ge=1, description="Requested page size")

    @classmethod
    def of(cls, content: list[T], request: PageRequest, total: int) -> Page[T]:
        return cls(content=content, total=total, page=request.page, size=request.size)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages
