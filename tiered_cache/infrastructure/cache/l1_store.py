"""
L1 Store: in-process, per-region LRU cache with TTL expiry.

Each region is an independent ``OrderedDict`` guarded by its own
``asyncio.Lock``, so traffic on one region never waits on another. Entries
expire lazily: an expired entry is dropped on the access that finds it and
counted as an eviction, the same way capacity evictions are counted.

This cache is per process. A write on another instance leaves these entries
stale until they expire or an explicit region evict reaches this process.
"""

import asyncio
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from tiered_cache.core.logging.logger import get_logger
from tiered_cache.infrastructure.cache.keys import CacheKey

logger = get_logger(__name__)

DEFAULT_L1_MAX_SIZE = 1000
DEFAULT_L1_TTL = 300


@dataclass(slots=True)
class CacheEntry:
    """A serialized value plus its lifetime, owned by one tier."""

    value: str
    inserted_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class _RegionCache:
    """One region's entries, lock and counters."""

    __slots__ = ("entries", "lock", "max_size", "hits", "misses", "evictions")

    def __init__(self, max_size: int):
        self.entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self.lock = asyncio.Lock()
        self.max_size = max_size
        self.hits = 0
        self.misses = 0
        self.evictions = 0


class L1Store:
    """
    In-memory LRU cache storage, partitioned by region.

    Implementation Details:
    - OrderedDict per region for O(1) access and LRU ordering
    - One asyncio.Lock per region, never a global lock
    - Least recently used entry evicted once a region exceeds capacity
    - Hits, misses and evictions tracked per region

    Args:
        max_size: Default capacity per region
        default_ttl: TTL in seconds when put() is not given one
        clock: Monotonic time source, injectable for tests
        capacity_for: Optional per-region capacity lookup (e.g. the registry)
    """

    def __init__(
        self,
        max_size: int = DEFAULT_L1_MAX_SIZE,
        default_ttl: int = DEFAULT_L1_TTL,
        clock: Callable[[], float] = time.monotonic,
        capacity_for: Callable[[str], int] | None = None,
    ):
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._clock = clock
        self._capacity_for = capacity_for
        self._regions: dict[str, _RegionCache] = {}

    @property
    def default_ttl(self) -> int:
        return self._default_ttl

    def _region(self, name: str) -> _RegionCache:
        region = self._regions.get(name)
        if region is None:
            capacity = self._capacity_for(name) if self._capacity_for else self._max_size
            region = self._regions.setdefault(name, _RegionCache(capacity))
        return region

    async def get(self, key: CacheKey) -> str | None:
        """
        Get a value. Returns None on miss or expiry.

        LRU Update: a hit moves the entry to the end (most recently used).
        """
        region = self._region(key.region)
        async with region.lock:
            entry = region.entries.get(key.key)
            if entry is None:
                region.misses += 1
                return None

            if entry.is_expired(self._clock()):
                del region.entries[key.key]
                region.evictions += 1
                region.misses += 1
                return None

            region.entries.move_to_end(key.key)
            region.hits += 1
            return entry.value

    async def put(self, key: CacheKey, value: str, ttl: int | None = None) -> None:
        """
        Store a value, evicting least recently used entries past capacity.

        Args:
            key: Cache key
            value: Serialized value
            ttl: Time-to-live in seconds (default: store default)
        """
        region = self._region(key.region)
        if region.max_size <= 0:
            return

        now = self._clock()
        entry = CacheEntry(value=value, inserted_at=now, expires_at=now + (ttl or self._default_ttl))

        async with region.lock:
            if key.key in region.entries:
                region.entries.move_to_end(key.key)
            region.entries[key.key] = entry

            while len(region.entries) > region.max_size:
                region.entries.popitem(last=False)
                region.evictions += 1

    async def evict(self, key: CacheKey) -> bool:
        """Remove one key. Returns True if it was present."""
        region = self._regions.get(key.region)
        if region is None:
            return False
        async with region.lock:
            return region.entries.pop(key.key, None) is not None

    async def evict_region(self, region_name: str) -> int:
        """Remove every key of a region. Returns the number removed."""
        region = self._regions.get(region_name)
        if region is None:
            return 0
        async with region.lock:
            count = len(region.entries)
            region.entries.clear()
            return count

    async def clear(self) -> None:
        """Remove every entry in every region. Counters are kept."""
        for name in list(self._regions):
            await self.evict_region(name)

    def regions(self) -> list[str]:
        """Names of regions this store has seen."""
        return list(self._regions)

    def size(self, region_name: str | None = None) -> int:
        """Entries held in one region, or in all regions."""
        if region_name is not None:
            region = self._regions.get(region_name)
            return len(region.entries) if region else 0
        return sum(len(r.entries) for r in self._regions.values())

    def keys(self, region_name: str) -> list[str]:
        """Region-local keys in LRU order (oldest first)."""
        region = self._regions.get(region_name)
        return list(region.entries) if region else []

    def stats(self, region_name: str) -> dict[str, Any]:
        """
        Counters for one region.

        Reads without the region lock; values may trail concurrent traffic.
        Unknown regions report zeros.
        """
        region = self._regions.get(region_name)
        if region is None:
            return {"hits": 0, "misses": 0, "eviction_count": 0, "size": 0, "max_size": 0}
        return {
            "hits": region.hits,
            "misses": region.misses,
            "eviction_count": region.evictions,
            "size": len(region.entries),
            "max_size": region.max_size,
        }
