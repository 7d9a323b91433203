"""
L2 Store: shared Redis tier.

Physical key layout:

    <prefix>:{<region>}:<key>        cache:{product::page}:0-10-id:ASC

The region sits inside a Redis hash tag. That makes region boundaries
unambiguous for the sweep pattern (``cache:{product}:*`` can never match a
key of ``product::page``) and keeps every key of a region on one cluster
slot. Expiry is native Redis TTL, so the server reaps expired entries.
"""

from typing import Any

from tiered_cache.core.config.constants import L2_SWEEP_BATCH_SIZE, Stage
from tiered_cache.core.exceptions import CacheUnavailableError
from tiered_cache.core.interfaces.cache import CacheBackend
from tiered_cache.core.logging.logger import get_logger
from tiered_cache.infrastructure.cache.keys import CacheKey

logger = get_logger(__name__)

DEFAULT_L2_TTL = 900


def _glob_escape(text: str) -> str:
    """Escape glob metacharacters with single-character classes."""
    return "".join(f"[{c}]" if c in "*?[" else c for c in text)


class L2Store:
    """
    Redis distributed cache storage.

    Responsibility: shared storage with per-entry TTL and region sweeps.
    Commit-deferred writes are queued by the façade, not here. Backend
    failures surface as CacheUnavailableError; deciding what to do about
    them is the façade's job.

    Args:
        backend: RedisClient or any CacheBackend
        key_prefix: Namespace for every physical key
        default_ttl: TTL in seconds when put() is not given one
        sweep_batch_size: Keys per SCAN page and per DEL call
    """

    def __init__(
        self,
        backend: CacheBackend,
        key_prefix: str = "cache",
        default_ttl: int = DEFAULT_L2_TTL,
        sweep_batch_size: int = L2_SWEEP_BATCH_SIZE,
    ):
        self._backend = backend
        self._prefix = key_prefix
        self._default_ttl = default_ttl
        self._sweep_batch_size = sweep_batch_size

    def physical_key(self, key: CacheKey) -> str:
        return f"{self._prefix}:{{{key.region}}}:{key.key}"

    def region_pattern(self, region_name: str) -> str:
        return f"{_glob_escape(self._prefix)}:{{{_glob_escape(region_name)}}}:*"

    async def connect(self) -> None:
        """
        Establish the backend connection.

        Raises:
            CacheUnavailableError: If connection fails
        """
        await self._call(self._backend.connect, "connect")

    async def disconnect(self) -> None:
        await self._backend.disconnect()

    async def _call(self, operation, name: str, *args, **kwargs):
        try:
            return await operation(*args, **kwargs)
        except CacheUnavailableError as e:
            raise e.with_context(operation=name)
        except OSError as e:
            # Socket-level failures from backends that do not wrap them
            raise CacheUnavailableError.from_exception(e, operation=name)

    async def get(self, key: CacheKey) -> str | None:
        """
        Get a serialized value.

        Raises:
            CacheUnavailableError: If Redis is unreachable
        """
        return await self._call(self._backend.get, "get", self.physical_key(key))

    async def put(self, key: CacheKey, value: str, ttl: int | None = None) -> None:
        """
        Store a serialized value with TTL, immediately.

        Raises:
            CacheUnavailableError: If Redis is unreachable
        """
        await self._call(
            self._backend.set, "set", self.physical_key(key), value, ttl=ttl or self._default_ttl
        )

    async def evict(self, key: CacheKey) -> bool:
        """
        Delete one key. Returns True if it existed.

        Raises:
            CacheUnavailableError: If Redis is unreachable
        """
        deleted = await self._call(self._backend.delete, "delete", self.physical_key(key))
        return bool(deleted)

    async def evict_region(self, region_name: str) -> int:
        """
        Delete every key of a region (SCAN + batched DEL).

        Raises:
            CacheUnavailableError: If Redis is unreachable
        """
        keys = await self._call(
            self._backend.scan_keys, "scan", self.region_pattern(region_name), self._sweep_batch_size
        )
        deleted = 0
        for start in range(0, len(keys), self._sweep_batch_size):
            batch = keys[start:start + self._sweep_batch_size]
            deleted += await self._call(self._backend.delete, "delete", *batch)

        logger.debug(
            "L2 region swept", stage=Stage.INVALIDATION.value, region=region_name, deleted=deleted
        )
        return deleted

    async def health_check(self) -> dict[str, Any]:
        try:
            return await self._backend.health_check()
        except CacheUnavailableError as e:
            return {"status": "unhealthy", "error": e.message}
