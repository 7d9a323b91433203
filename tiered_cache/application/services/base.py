"""
Cached CRUD Service
===================

Shared read/write flow for catalogue entities. Each concrete service names
its entity region (single records), its list region (pages, searches and
the full list) and the DTO/page types; this class turns reads into
``read_through`` calls and writes into invalidations.

Read path:
    get_by_id     entity region, key ``id:<id>``
    get_page      list region, key ``<page>-<size>-<sort>``
    search        list region, key ``search:<term>:<page>-<size>-<sort>``
    get_all       list region, key ``all``

Write path (inside one cache transaction):
    create   save, evict the entity key, sweep the list region
    update   save, apply the entity region's write policy, sweep the list region
    delete   delete, evict the entity key, sweep the list region

Population queued during the transaction lands after the repository calls
succeed and is dropped if any of them raises. Each write runs under one
request ID, reused when the caller already bound one, so its log lines and
errors correlate.
"""

from typing import Any, ClassVar, Generic, TypeVar

from tiered_cache.application.models.catalog import CatalogModel
from tiered_cache.application.models.pagination import Page, PageRequest
from tiered_cache.core.config.constants import ALL_ENTRIES_KEY, Region
from tiered_cache.core.exceptions import EntityNotFoundError
from tiered_cache.core.interfaces.repository import Repository
from tiered_cache.core.logging.logger import get_logger, get_request_id, request_scope
from tiered_cache.infrastructure.cache.keys import (
    CacheKey,
    build_entity_key,
    build_named_key,
    build_query_key,
)
from tiered_cache.infrastructure.cache.tiered_cache import TieredCache

logger = get_logger(__name__)

T = TypeVar("T", bound=CatalogModel)


class CachedCrudService(Generic[T]):
    """
    Base class for services whose reads go through the tiered cache.

    Subclasses set ``entity_name``, ``entity_region``, ``list_region`` and
    ``page_type``, and may extend ``_invalidate_views`` for secondary keys.
    """

    entity_name: ClassVar[str]
    entity_region: ClassVar[Region]
    list_region: ClassVar[Region]
    page_type: ClassVar[type[Page]]

    def __init__(self, repository: Repository[T], cache: TieredCache):
        self._repository = repository
        self._cache = cache

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    def entity_key(self, entity_id: Any) -> CacheKey:
        return build_entity_key(self.entity_region, entity_id)

    def page_key(self, request: PageRequest, search_term: str | None = None) -> CacheKey:
        return build_query_key(
            self.list_region,
            request.page_number,
            request.page_size,
            request.sort_field,
            request.sort_direction,
            search_term,
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_by_id(self, entity_id: Any) -> T:
        """
        Raises:
            EntityNotFoundError: If the repository has no such entity
        """

        async def load() -> T:
            entity = await self._repository.find_by_id(entity_id)
            if entity is None:
                raise EntityNotFoundError(self.entity_name, entity_id, request_id=get_request_id())
            return entity

        return await self._cache.read_through(self.entity_key(entity_id), load)

    async def get_page(self, request: PageRequest) -> Page:
        async def load() -> Page:
            items, total = await self._repository.find_page(
                request.offset,
                request.page_size,
                request.sort_field,
                request.sort_direction == "DESC",
            )
            return self._to_page(items, total, request)

        return await self._cache.read_through(self.page_key(request), load)

    async def search(self, term: str, request: PageRequest) -> Page:
        async def load() -> Page:
            items, total = await self._repository.search(
                term,
                request.offset,
                request.page_size,
                request.sort_field,
                request.sort_direction == "DESC",
            )
            return self._to_page(items, total, request)

        return await self._cache.read_through(self.page_key(request, search_term=term), load)

    async def get_all(self) -> list[T]:
        return await self._cache.read_through(
            build_named_key(self.list_region, ALL_ENTRIES_KEY),
            self._repository.find_all,
        )

    def _to_page(self, items: list[T], total: int, request: PageRequest) -> Page:
        return self.page_type(
            content=items,
            page_number=request.page_number,
            page_size=request.page_size,
            total_elements=total,
        )

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, dto: T) -> T:
        with request_scope():
            async with self._cache.transaction():
                saved = await self._repository.save(dto.model_copy(update={"id": None}))
                # A negative entry for this id may exist from an earlier miss
                await self._cache.invalidate_key(self.entity_key(saved.id))
                await self._invalidate_views(saved)

            logger.info(f"{self.entity_name} created", entity_id=saved.id)
        return saved

    async def update(self, entity_id: Any, dto: T) -> T:
        """
        Apply the non-null fields of ``dto`` to an existing entity.

        Raises:
            EntityNotFoundError: If the entity does not exist
        """
        with request_scope():
            async with self._cache.transaction():
                existing = await self._require(entity_id)
                changes = dto.model_dump(exclude_none=True, exclude={"id", "created_at"})
                saved = await self._repository.save(existing.model_copy(update=changes))
                await self._cache.apply_write(self.entity_key(entity_id), saved)
                await self._invalidate_views(saved, previous=existing)

            logger.info(f"{self.entity_name} updated", entity_id=entity_id)
        return saved

    async def delete(self, entity_id: Any) -> None:
        """
        Raises:
            EntityNotFoundError: If the entity does not exist
        """
        with request_scope():
            async with self._cache.transaction():
                existing = await self._require(entity_id)
                await self._repository.delete(entity_id)
                await self._cache.invalidate_key(self.entity_key(entity_id))
                await self._invalidate_views(existing, previous=existing)

            logger.info(f"{self.entity_name} deleted", entity_id=entity_id)

    async def _require(self, entity_id: Any) -> T:
        entity = await self._repository.find_by_id(entity_id)
        if entity is None:
            logger.error(f"{self.entity_name} not found", entity_id=entity_id)
            raise EntityNotFoundError(self.entity_name, entity_id, request_id=get_request_id())
        return entity

    async def _invalidate_views(self, entity: T, previous: T | None = None) -> None:
        """Evict every derived view an entity write can change."""
        await self._cache.invalidate_region(self.list_region)
