"""
Pagination models.

``PageRequest`` is the query shape the key builder renders; ``Page`` is the
cached result. Concrete page classes exist so each carries a stable type tag
in the value codec.
"""

from math import ceil
from typing import Generic, Literal, TypeVar

from pydantic import BaseModel, Field

from tiered_cache.application.models.catalog import CategoryDto, ProductDto, SettingDto, UserDto

T = TypeVar("T")


class PageRequest(BaseModel):
    page_number: int = Field(default=0, ge=0)
    page_size: int = Field(default=10, gt=0, le=1000)
    sort_field: str | None = None
    sort_direction: Literal["ASC", "DESC"] = "ASC"

    @property
    def offset(self) -> int:
        return self.page_number * self.page_size


class Page(BaseModel, Generic[T]):
    content: list[T] = Field(default_factory=list)
    page_number: int = 0
    page_size: int = 10
    total_elements: int = 0

    @property
    def total_pages(self) -> int:
        return ceil(self.total_elements / self.page_size) if self.page_size else 0


class ProductPage(Page[ProductDto]):
    pass


class CategoryPage(Page[CategoryDto]):
    pass


class SettingPage(Page[SettingDto]):
    pass


class UserPage(Page[UserDto]):
    pass
