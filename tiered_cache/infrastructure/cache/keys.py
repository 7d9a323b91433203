"""
Cache Key Builder

Derives deterministic cache keys from an entity id or from the pagination,
sort and search parameters of a list query.

Key formats (region-local part):

    entity      id:<id>                              id:42
    page        <page>-<size>-<sort>                 0-10-id:ASC
    search      search:<term>:<page>-<size>-<sort>   search:lamp:0-10-UNSORTED
    named       <name>[:<value>]                     all, key:site.title

Free-text parts (string ids, sort fields, search terms, named values) are
percent-encoded, so no user input can inject a separator and make two
distinct queries render to the same key. An absent search term produces no
``search:`` segment at all, which keeps it distinct from an empty search
(``search::...``).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote

from tiered_cache.core.config.constants import (
    REGION_SEPARATOR,
    SEARCH_PREFIX,
    UNSORTED_TOKEN,
)

_ENTITY_PREFIX = "id"
_RESERVED_NAMES = frozenset({_ENTITY_PREFIX, SEARCH_PREFIX})
_SORT_DIRECTIONS = ("ASC", "DESC")


@dataclass(frozen=True, slots=True)
class CacheKey:
    """
    A key inside one cache region.

    ``str(key)`` is the region-local key; ``qualified`` prefixes the region
    with the ``name::key`` layout used for the shared tier.
    """

    region: str
    key: str

    @property
    def qualified(self) -> str:
        return f"{self.region}{REGION_SEPARATOR}{self.key}"

    def __str__(self) -> str:
        return self.key


def region_name(region: str | Enum) -> str:
    """Normalize a ``Region`` member or plain string to the region name."""
    name = region.value if isinstance(region, Enum) else region
    if not name:
        raise ValueError("region name must not be empty")
    if "{" in name or "}" in name:
        # Braces delimit the region inside shared-tier keys
        raise ValueError(f"region name must not contain braces: {name!r}")
    return name


def _encode(part: Any) -> str:
    return quote(str(part), safe="")


def _render_sort(sort_field: str | None, sort_direction: str | None) -> str:
    if sort_field is None:
        return UNSORTED_TOKEN
    direction = (sort_direction or "ASC").upper()
    if direction not in _SORT_DIRECTIONS:
        raise ValueError(f"sort direction must be one of {_SORT_DIRECTIONS}, got {sort_direction!r}")
    return f"{_encode(sort_field)}:{direction}"


def build_entity_key(region: str | Enum, entity_id: Any) -> CacheKey:
    """
    Build the key for a single entity.

    Args:
        region: Region the entity is cached in
        entity_id: Entity identifier (int, str, UUID, ...)

    Returns:
        CacheKey such as ``products::id:42``
    """
    if entity_id is None:
        raise ValueError("entity id must not be None")
    return CacheKey(region_name(region), f"{_ENTITY_PREFIX}:{_encode(entity_id)}")


def build_query_key(
    region: str | Enum,
    page_number: int,
    page_size: int,
    sort_field: str | None = None,
    sort_direction: str | None = None,
    search_term: str | None = None,
) -> CacheKey:
    """
    Build the key for a paginated, optionally sorted and searched query.

    Parameters are rendered in a fixed order and format, so identical query
    shapes always produce equal keys and distinct shapes never collide.

    Args:
        region: List/search region
        page_number: Zero-based page index
        page_size: Page size (> 0)
        sort_field: Field to sort by, or None for unsorted
        sort_direction: "ASC" or "DESC" (case-insensitive, default ASC)
        search_term: Search term; None means "no search", "" is a real search

    Returns:
        CacheKey such as ``product::page::0-10-id:ASC``
    """
    if page_number < 0:
        raise ValueError("page number must be >= 0")
    if page_size <= 0:
        raise ValueError("page size must be > 0")

    shape = f"{page_number}-{page_size}-{_render_sort(sort_field, sort_direction)}"
    if search_term is not None:
        shape = f"{SEARCH_PREFIX}:{_encode(search_term)}:{shape}"
    return CacheKey(region_name(region), shape)


def build_named_key(region: str | Enum, name: str, value: Any = None) -> CacheKey:
    """
    Build a fixed-name key, optionally qualified by a value.

    Used for whole-list reads (``all``) and secondary lookups such as a
    setting by its key (``key:site.title``).
    """
    if not name or name in _RESERVED_NAMES:
        raise ValueError(f"named key must not be empty or one of {sorted(_RESERVED_NAMES)}")
    if value is None:
        return CacheKey(region_name(region), _encode(name))
    return CacheKey(region_name(region), f"{_encode(name)}:{_encode(value)}")
