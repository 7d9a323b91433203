"""
Application Models

Catalogue DTOs, pagination, and the codec that knows how to cache them.
"""

from tiered_cache.infrastructure.cache.serialization import ValueCodec

from .catalog import CatalogModel, CategoryDto, ProductDto, Role, SettingDto, UserDto
from .pagination import CategoryPage, Page, PageRequest, ProductPage, SettingPage, UserPage

CACHED_MODELS = (
    ProductDto,
    CategoryDto,
    SettingDto,
    UserDto,
    ProductPage,
    CategoryPage,
    SettingPage,
    UserPage,
)


def build_codec() -> ValueCodec:
    """Value codec with every cached catalogue model registered."""
    return ValueCodec(CACHED_MODELS)


__all__ = [
    "CatalogModel",
    "ProductDto",
    "CategoryDto",
    "SettingDto",
    "UserDto",
    "Role",
    "PageRequest",
    "Page",
    "ProductPage",
    "CategoryPage",
    "SettingPage",
    "UserPage",
    "CACHED_MODELS",
    "build_codec",
]
