"""
Product Service

Products are cached by id in ``products`` (20 min, populated on update) and
by query shape in ``product::page`` (5 min). Every product write sweeps the
whole page region.
"""

from tiered_cache.application.models.catalog import ProductDto
from tiered_cache.application.models.pagination import PageRequest, ProductPage
from tiered_cache.application.services.base import CachedCrudService
from tiered_cache.core.config.constants import Region


class ProductService(CachedCrudService[ProductDto]):
    entity_name = "Product"
    entity_region = Region.PRODUCTS
    list_region = Region.PRODUCT_PAGE
    page_type = ProductPage

    async def get_products(self, request: PageRequest) -> ProductPage:
        return await self.get_page(request)

    async def search_products(self, name: str, request: PageRequest) -> ProductPage:
        return await self.search(name, request)
