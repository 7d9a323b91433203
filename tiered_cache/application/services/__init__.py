"""
Service Layer

Catalogue services reading through the tiered cache and invalidating it on
writes.
"""

from .base import CachedCrudService
from .category_service import CategoryService
from .product_service import ProductService
from .setting_service import SettingService
from .user_service import UserService

__all__ = [
    "CachedCrudService",
    "ProductService",
    "CategoryService",
    "SettingService",
    "UserService",
]
