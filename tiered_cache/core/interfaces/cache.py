"""
Cache Protocols

Abstract protocols for the two seams of the cache core:

- ``CacheBackend``: the raw key/value store behind L2 (Redis in production,
  ``InMemoryCache`` in tests and single-process development).
- ``CacheTierStore``: the small surface both tiers expose to the façade, so
  either tier can be swapped or mocked independently.

Architectural Decision: Protocol-based abstraction
- Dependency injection for testability
- Type-safe interface with runtime checking
"""

import fnmatch
import time
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """
    Protocol for the key/value store backing the shared tier.

    Implementations:
    - RedisClient: Production Redis-backed store
    - InMemoryCache: Testing/development in-memory store
    """

    async def connect(self) -> None:
        """
        Establish connection to the backend.

        Raises:
            CacheUnavailableError: If connection fails
        """
        ...

    async def disconnect(self) -> None:
        """Close connection to the backend."""
        ...

    async def ping(self) -> bool:
        """Return True if the backend answers."""
        ...

    async def get(self, key: str) -> str | None:
        """
        Get value from the backend.

        Raises:
            CacheUnavailableError: If operation fails
        """
        ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """
        Set value, optionally expiring after ``ttl`` seconds.

        Raises:
            CacheUnavailableError: If operation fails
        """
        ...

    async def delete(self, *keys: str) -> int:
        """
        Delete keys.

        Returns:
            int: Number of keys deleted
        """
        ...

    async def scan_keys(self, pattern: str, count: int = 500) -> list[str]:
        """
        Return every key matching a glob-style pattern.

        Raises:
            CacheUnavailableError: If operation fails
        """
        ...

    async def health_check(self) -> dict[str, Any]:
        """Return health status and metrics."""
        ...


@runtime_checkable
class CacheTierStore(Protocol):
    """
    Surface shared by the L1 and L2 stores.

    Keys are ``CacheKey`` values; payloads are already-serialized strings.
    """

    async def get(self, key) -> str | None:
        ...

    async def put(self, key, value: str, ttl: int | None = None) -> None:
        ...

    async def evict(self, key) -> bool:
        ...

    async def evict_region(self, region: str) -> int:
        ...


class InMemoryCache:
    """
    In-memory ``CacheBackend`` for testing and single-process development.

    Honors TTLs against an injectable clock so expiry can be simulated
    without sleeping. Not distributed.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._store: dict[str, str] = {}
        self._expires_at: dict[str, float] = {}
        self._clock = clock
        self._connected = False

    async def connect(self) -> None:
        """Simulate connection."""
        self._connected = True

    async def disconnect(self) -> None:
        """Simulate disconnection."""
        self._connected = False
        self._store.clear()
        self._expires_at.clear()

    async def ping(self) -> bool:
        """Check if connected."""
        return self._connected

    def _purge_if_expired(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and self._clock() >= deadline:
            self._store.pop(key, None)
            self._expires_at.pop(key, None)

    async def get(self, key: str) -> str | None:
        """Get value from in-memory store."""
        self._purge_if_expired(key)
        return self._store.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Set value in in-memory store."""
        self._store[key] = value
        if ttl:
            self._expires_at[key] = self._clock() + ttl
        else:
            self._expires_at.pop(key, None)
        return True

    async def delete(self, *keys: str) -> int:
        """Delete keys from in-memory store."""
        count = 0
        for key in keys:
            self._purge_if_expired(key)
            if key in self._store:
                del self._store[key]
                self._expires_at.pop(key, None)
                count += 1
        return count

    async def scan_keys(self, pattern: str, count: int = 500) -> list[str]:
        """Return live keys matching a glob pattern."""
        for key in list(self._store):
            self._purge_if_expired(key)
        return [key for key in self._store if fnmatch.fnmatchcase(key, pattern)]

    async def ttl(self, key: str) -> int:
        """Remaining TTL in seconds, -1 if no TTL, -2 if key doesn't exist."""
        self._purge_if_expired(key)
        if key not in self._store:
            return -2
        deadline = self._expires_at.get(key)
        if deadline is None:
            return -1
        return max(0, int(deadline - self._clock()))

    async def health_check(self) -> dict[str, Any]:
        """Health check."""
        return {
            "status": "healthy" if self._connected else "unhealthy",
            "connected": self._connected,
            "keys_count": len(self._store),
        }
