"""
Response envelope shared by every endpoint: {success, message?, data?, error?}.
"""
from typing import Generic, TypeVar

from pydantic import BaseModel

from learnbridge.services.queries import Page

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    success: bool = True
    message: str | None = None
    data: DataT | None = None


class Pagination(BaseModel):
    current: int
    pages: int
    total: int
    limit: int

    @classmethod
    def from_page(cls, page: Page) -> "Pagination":
        return cls(current=page.page, pages=page.pages, total=page.total, limit=page.limit)
