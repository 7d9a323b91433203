"""Category Service: ``categories`` by id, ``category::list`` for lists and searches."""

from tiered_cache.application.models.catalog import CategoryDto
from tiered_cache.application.models.pagination import CategoryPage
from tiered_cache.application.services.base import CachedCrudService
from tiered_cache.core.config.constants import Region


class CategoryService(CachedCrudService[CategoryDto]):
    entity_name = "Category"
    entity_region = Region.CATEGORIES
    list_region = Region.CATEGORY_LIST
    page_type = CategoryPage
