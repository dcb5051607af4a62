from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field


class EbookCreate(BaseModel):
    """Schema for creating an ebook.

    Author ids are linked in the given order and duplicates are kept. One
    image is created per url, also in order.
    """

    title: str
    description: str
    published_year: date
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    download_url: str
    category_id: int
    authors_id: list[int]
    image_urls: list[str]


class EbookUpdate(BaseModel):
    """Schema for a partial update of an ebook.

    ``None`` leaves a field unchanged. For ``authors_id`` and ``image_urls``
    an empty list is an explicit request to remove every entry.
    """

    id: int
    title: str | None = None
    description: str | None = None
    published_year: date | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    download_url: str | None = None
    category_id: int | None = None
    authors_id: list[int] | None = None
    image_urls: list[str] | None = None


class EbookRead(BaseModel):
    id: int
    title: str
    description: str
    published_year: date
    category: str
    price: Decimal
    authors: list[str]
    image_urls: list[str]


class EbookSummary(BaseModel):
    """Row of a user's purchase panel. ``image_url`` is empty when the ebook has no images."""

    id: int
    title: str
    image_url: str
    download_url: str
