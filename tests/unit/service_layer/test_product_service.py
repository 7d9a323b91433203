"""
Unit Tests for ProductService

Reads go through the tiered cache; writes evict the product page region and
repopulate (update) or evict (create/delete) the single-product entry.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from tiered_cache.application.models import PageRequest, ProductDto, ProductPage, build_codec
from tiered_cache.application.services import ProductService
from tiered_cache.core.exceptions import CacheUnavailableError, EntityNotFoundError
from tiered_cache.core.logging import get_request_id, request_scope
from tiered_cache.infrastructure.cache.keys import CacheKey
from tests.test_fixtures import CacheTestFactory, RepositoryTestFactory
from tests.test_fixtures.repository_factory import RepositoryFailure


@pytest.fixture
def service(product_repository, cache):
    return ProductService(product_repository, cache)


FIRST_PAGE_BY_ID = PageRequest(page_number=0, page_size=10, sort_field="id", sort_direction="ASC")


@pytest.mark.unit
class TestProductReads:
    @pytest.mark.asyncio
    async def test_get_by_id_is_cached(self, service, product_repository):
        first = await service.get_by_id(1)
        second = await service.get_by_id(1)

        assert first == second
        assert second.name == "Lamp 1"
        assert product_repository.calls["find_by_id"] == 1

    @pytest.mark.asyncio
    async def test_missing_product_is_not_cached(self, service, product_repository):
        for _ in range(2):
            with pytest.raises(EntityNotFoundError) as exc_info:
                await service.get_by_id(99)

        assert exc_info.value.details == {"entity": "Product", "identifier": 99}
        assert product_repository.calls["find_by_id"] == 2

    @pytest.mark.asyncio
    async def test_pages_are_cached_per_query_shape(self, service, product_repository):
        page = await service.get_products(FIRST_PAGE_BY_ID)
        await service.get_products(FIRST_PAGE_BY_ID)
        await service.get_products(PageRequest(page_number=0, page_size=2))

        assert isinstance(page, ProductPage)
        assert page.total_elements == 3
        assert [p.id for p in page.content] == [1, 2, 3]
        assert product_repository.calls["find_page"] == 2

    @pytest.mark.asyncio
    async def test_page_key_layout(self, service, cache):
        await service.get_products(FIRST_PAGE_BY_ID)

        key = CacheKey("product::page", "0-10-id:ASC")
        assert service.page_key(FIRST_PAGE_BY_ID) == key
        assert await cache.l2.get(key) is not None

    @pytest.mark.asyncio
    async def test_search_results_are_cached(self, service, product_repository, cache):
        request = PageRequest()

        result = await service.search_products("lamp 2", request)
        await service.search_products("lamp 2", request)

        assert [p.name for p in result.content] == ["Lamp 2"]
        assert product_repository.calls["search"] == 1
        assert await cache.l2.get(CacheKey("product::page", "search:lamp%202:0-10-UNSORTED")) is not None

    def test_empty_search_term_is_its_own_key(self, service):
        request = PageRequest()

        assert service.page_key(request, search_term="") != service.page_key(request)


@pytest.mark.unit
class TestProductWrites:
    @pytest.mark.asyncio
    async def test_create_evicts_cached_pages(self, service, product_repository, cache):
        await service.get_products(FIRST_PAGE_BY_ID)

        created = await service.create(ProductDto(name="Floor lamp", price="89.00"))

        assert created.id == 4
        assert await cache.l1.get(CacheKey("product::page", "0-10-id:ASC")) is None
        assert await cache.l2.get(CacheKey("product::page", "0-10-id:ASC")) is None

        page = await service.get_products(FIRST_PAGE_BY_ID)
        assert page.total_elements == 4
        assert product_repository.calls["find_page"] == 2

    @pytest.mark.asyncio
    async def test_update_repopulates_the_entity_entry(self, service, product_repository):
        await service.get_by_id(1)

        updated = await service.update(1, ProductDto(name="Lamp 1 Pro"))

        # Fields left unset keep their stored values
        assert updated.price == Decimal("20.99")
        cached = await service.get_by_id(1)
        assert cached.name == "Lamp 1 Pro"
        # One read before the update, one inside it; the last read is a hit
        assert product_repository.calls["find_by_id"] == 2

    @pytest.mark.asyncio
    async def test_update_sweeps_pages(self, service, product_repository):
        await service.get_products(FIRST_PAGE_BY_ID)

        await service.update(2, ProductDto(name="Lamp 2 Pro"))
        page = await service.get_products(FIRST_PAGE_BY_ID)

        assert page.content[1].name == "Lamp 2 Pro"
        assert product_repository.calls["find_page"] == 2

    @pytest.mark.asyncio
    async def test_update_missing_product(self, service, product_repository):
        with pytest.raises(EntityNotFoundError):
            await service.update(99, ProductDto(name="Ghost"))

        assert product_repository.calls["save"] == 0

    @pytest.mark.asyncio
    async def test_write_errors_carry_the_request_id(self, service):
        with request_scope("req-42"):
            with pytest.raises(EntityNotFoundError) as exc_info:
                await service.delete(99)

        assert exc_info.value.request_id == "req-42"

    @pytest.mark.asyncio
    async def test_writes_bind_their_own_request_id(self, service):
        with pytest.raises(EntityNotFoundError) as exc_info:
            await service.update(99, ProductDto(name="Ghost"))

        assert exc_info.value.request_id is not None
        assert get_request_id() is None

    @pytest.mark.asyncio
    async def test_delete_evicts_the_entity_entry(self, service):
        await service.get_by_id(1)

        await service.delete(1)

        with pytest.raises(EntityNotFoundError):
            await service.get_by_id(1)

    @pytest.mark.asyncio
    async def test_failed_save_leaves_cache_untouched(self, service, product_repository, cache):
        await service.get_by_id(1)
        await service.get_products(FIRST_PAGE_BY_ID)
        product_repository.fail_on_save = True

        with pytest.raises(RepositoryFailure):
            await service.update(1, ProductDto(name="Never stored"))

        assert (await service.get_by_id(1)).name == "Lamp 1"
        assert await cache.l1.get(service.page_key(FIRST_PAGE_BY_ID)) is not None
        assert product_repository.calls["find_page"] == 1


@pytest.mark.unit
class TestProductCoherency:
    @pytest.mark.asyncio
    async def test_create_recomputes_single_item_page(self, cache):
        service = ProductService(RepositoryTestFactory.products(count=1), cache)
        assert len((await service.get_products(FIRST_PAGE_BY_ID)).content) == 1

        await service.create(ProductDto(name="Lamp 2", price="21.99"))
        page = await service.get_products(FIRST_PAGE_BY_ID)

        assert [p.name for p in page.content] == ["Lamp 1", "Lamp 2"]

    @pytest.mark.asyncio
    async def test_update_recomputes_every_cached_page(self, service, product_repository):
        first = PageRequest(page_number=0, page_size=2, sort_field="id")
        second = PageRequest(page_number=1, page_size=2, sort_field="id")
        await service.get_products(first)
        await service.get_products(second)

        await service.update(3, ProductDto(name="Lamp 3 Pro"))

        assert [p.name for p in (await service.get_products(first)).content] == ["Lamp 1", "Lamp 2"]
        assert [p.name for p in (await service.get_products(second)).content] == ["Lamp 3 Pro"]
        assert product_repository.calls["find_page"] == 4

    @pytest.mark.asyncio
    async def test_absent_product_becomes_visible_after_create(self, service):
        with pytest.raises(EntityNotFoundError):
            await service.get_by_id(4)

        await service.create(ProductDto(name="Floor lamp", price="89.00"))

        assert (await service.get_by_id(4)).name == "Floor lamp"

    @pytest.mark.asyncio
    async def test_write_succeeds_when_shared_tier_rejects_puts(self, clock, product_repository):
        backend = CacheTestFactory.failing_backend(("set",), clock=clock)
        cache = CacheTestFactory.tiered_cache(backend=backend, clock=clock)
        service = ProductService(product_repository, cache)
        stale = await product_repository.find_by_id(1)
        await cache.l1.put(service.entity_key(1), build_codec().encode(stale))

        updated = await service.update(1, ProductDto(name="Lamp 1 Pro"))

        assert updated.name == "Lamp 1 Pro"
        assert await cache.l1.get(service.entity_key(1)) is None
        assert (await service.get_by_id(1)).name == "Lamp 1 Pro"

    @pytest.mark.asyncio
    async def test_failed_repopulate_does_not_serve_pre_update_value(self, service, cache, backend):
        await service.get_by_id(1)
        assert await cache.l2.get(service.entity_key(1)) is not None
        backend.set = AsyncMock(side_effect=CacheUnavailableError("Redis set failed"))

        await service.update(1, ProductDto(name="Lamp 1 Pro"))

        assert await cache.l2.get(service.entity_key(1)) is None
        assert (await service.get_by_id(1)).name == "Lamp 1 Pro"
