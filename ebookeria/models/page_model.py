from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from ebookeria.core.config import config


T = TypeVar("T")


class PageRequest(BaseModel):
    """Zero-based page of ``page_size`` rows ordered by one column.

    ``sort_direction`` is compared case-insensitively with ``"asc"``; any
    other value sorts descending.
    """

    page_no: int = Field(default=0, ge=0)
    page_size: int = Field(default_factory=lambda: config.default_page_size, ge=1)
    sort_field: str = "id"
    sort_direction: str = "asc"

    @property
    def offset(self) -> int:
        return self.page_no * self.page_size


class Page(BaseModel, Generic[T]):
    items: list[T]
    page_no: int
    page_size: int
    total_elements: int
    total_pages: int
    last: bool
