"""
Catalogue DTOs

The values services hand out and the cache stores. Every field except the
identity is optional so the same model carries partial updates: a field left
as None is not changed by an update.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class CatalogModel(BaseModel):
    """Common base: identity and audit timestamps."""

    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProductDto(CatalogModel):
    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    category_id: int | None = None
    thumbnail_url: str | None = None
    is_active: bool | None = None


class CategoryDto(CatalogModel):
    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    is_active: bool | None = None


class SettingDto(CatalogModel):
    name: str | None = None
    type: str | None = None
    key: str | None = None
    value: str | None = None
    is_private: bool | None = None
    is_active: bool | None = None


class UserDto(CatalogModel):
    uuid: str | None = None
    email: str | None = None
    full_name: str | None = None
    is_active: bool | None = None
    role: Role | None = None
