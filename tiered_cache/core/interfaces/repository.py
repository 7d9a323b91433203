"""
Repository Protocol

The narrow view of the relational store that the cached services need.
Implementations own persistence; the cache never talks to the store
directly, only through loaders built on these methods.
"""

from typing import Any, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class Repository(Protocol[T]):
    """Async CRUD access to one entity type."""

    async def find_by_id(self, entity_id: Any) -> T | None:
        """Entity by identity, or None."""
        ...

    async def find_one_by(self, field: str, value: Any) -> T | None:
        """First entity whose ``field`` equals ``value``, or None."""
        ...

    async def find_page(
        self,
        offset: int,
        limit: int,
        sort_field: str | None = None,
        descending: bool = False,
    ) -> tuple[list[T], int]:
        """One page of entities plus the total count."""
        ...

    async def search(
        self,
        term: str,
        offset: int,
        limit: int,
        sort_field: str | None = None,
        descending: bool = False,
    ) -> tuple[list[T], int]:
        """Entities whose name contains ``term`` (case-insensitive), paged."""
        ...

    async def find_all(self) -> list[T]:
        ...

    async def save(self, entity: T) -> T:
        """Insert or update; returns the stored entity with its identity set."""
        ...

    async def delete(self, entity_id: Any) -> None:
        ...
