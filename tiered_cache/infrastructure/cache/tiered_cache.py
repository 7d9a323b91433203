"""
Tiered Cache Façade

Architecture:
    TieredCache (Public API)
        ├── L1Store (in-process LRU, per region)
        ├── L2Store (Redis, shared)
        ├── RegionRegistry (TTL / capacity / write policy)
        ├── ValueCodec (tagged JSON payloads)
        └── CacheObserver (per-region counters, logs, Prometheus)

Read path:   L1 → L2 (back-fills L1) → loader (populates both tiers)
Write path:  region sweeps for derived views, then evict or populate the
             written entity per its region's write policy

Failure rules:
    - A read that cannot reach L2 degrades to a miss
    - A failed L2 write evicts the same key from both tiers
    - A corrupt payload is treated as a miss and dropped
    - Loader errors always reach the caller
"""

import asyncio
import inspect
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from tiered_cache.core.config.constants import CacheTier, Stage, WritePolicy
from tiered_cache.core.config.settings import Settings, get_settings
from tiered_cache.core.exceptions import CacheUnavailableError, SerializationError
from tiered_cache.core.interfaces.cache import CacheBackend, CacheTierStore
from tiered_cache.core.logging.logger import get_logger, log_stage
from tiered_cache.infrastructure.cache.invalidation import InvalidationEvent, InvalidationScope
from tiered_cache.infrastructure.cache.keys import CacheKey, region_name
from tiered_cache.infrastructure.cache.l1_store import L1Store
from tiered_cache.infrastructure.cache.l2_store import L2Store
from tiered_cache.infrastructure.cache.redis_client import RedisClient
from tiered_cache.infrastructure.cache.registry import RegionPolicy, RegionRegistry
from tiered_cache.infrastructure.cache.serialization import ValueCodec
from tiered_cache.infrastructure.cache.transaction import (
    CacheTransaction,
    current_transaction,
    transaction_scope,
)
from tiered_cache.infrastructure.monitoring.metrics_collector import MetricsCollector

logger = get_logger(__name__)

Loader = Callable[[], Awaitable[Any] | Any]

_MISSING = object()


# =============================================================================
# OBSERVABILITY
# =============================================================================


@dataclass(slots=True)
class RegionCounters:
    """Read-path counters for one region."""

    l1_hits: int = 0
    l2_hits: int = 0
    misses: int = 0
    loads: int = 0
    load_failures: int = 0
    total_load_time: float = 0.0
    l2_errors: int = 0
    serialization_errors: int = 0
    invalidations: int = 0

    @property
    def hit_count(self) -> int:
        return self.l1_hits + self.l2_hits

    @property
    def average_load_penalty_ms(self) -> float:
        if self.loads == 0:
            return 0.0
        return self.total_load_time / self.loads * 1000


class CacheObserver:
    """
    Tracks per-region cache counters and logs operations.

    All side effects of the façade (log lines, Prometheus counters) go
    through here, so the read/write logic stays free of them.
    """

    def __init__(self, metrics: MetricsCollector | None = None, logger_instance=None):
        self._metrics = metrics or MetricsCollector()
        self._logger = logger_instance or logger
        self._regions: dict[str, RegionCounters] = {}

    def counters(self, region: str) -> RegionCounters:
        counters = self._regions.get(region)
        if counters is None:
            counters = self._regions.setdefault(region, RegionCounters())
        return counters

    def regions(self) -> list[str]:
        return list(self._regions)

    def record_hit(self, key: CacheKey, tier: CacheTier) -> None:
        counters = self.counters(key.region)
        if tier is CacheTier.L1:
            counters.l1_hits += 1
            log_stage(self._logger, Stage.L1_LOOKUP, "L1 cache hit", level="debug",
                      region=key.region, cache_key=key.key)
        else:
            counters.l2_hits += 1
            log_stage(self._logger, Stage.L2_LOOKUP, "L2 cache hit", level="debug",
                      region=key.region, cache_key=key.key)
        self._metrics.record_cache_hit(key.region, tier.value)

    def record_miss(self, key: CacheKey) -> None:
        self.counters(key.region).misses += 1
        log_stage(self._logger, Stage.L2_LOOKUP, "Cache miss", level="debug",
                  region=key.region, cache_key=key.key)
        self._metrics.record_cache_miss(key.region)

    def record_load(self, key: CacheKey, duration: float, failed: bool = False) -> None:
        counters = self.counters(key.region)
        counters.loads += 1
        counters.total_load_time += duration
        if failed:
            counters.load_failures += 1
        self._metrics.record_load(key.region, duration)
        log_stage(self._logger, Stage.SOURCE_LOAD, "Source load finished", level="debug",
                  region=key.region, cache_key=key.key, duration_ms=round(duration * 1000, 3),
                  failed=failed)

    def record_l2_error(self, region: str, operation: str, error: Exception) -> None:
        self.counters(region).l2_errors += 1
        self._metrics.record_tier_error(CacheTier.L2.value, operation)
        self._logger.warning(
            "L2 cache operation failed",
            stage=Stage.L2_LOOKUP.value,
            region=region,
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
        )

    def record_serialization_error(
        self, key: CacheKey, tier: CacheTier, error: Exception, operation: str = "decode"
    ) -> None:
        self.counters(key.region).serialization_errors += 1
        self._metrics.record_tier_error(tier.value, operation)
        self._logger.warning(
            "Cache value could not be serialized" if operation == "encode" else "Dropping unreadable cache entry",
            stage=Stage.L1_LOOKUP.value if tier is CacheTier.L1 else Stage.L2_LOOKUP.value,
            region=key.region,
            cache_key=key.key,
            error=str(error),
        )

    def record_invalidation(self, event: InvalidationEvent) -> None:
        self.counters(event.region).invalidations += 1
        self._metrics.record_invalidation(event.region, event.scope.value)
        log_stage(self._logger, Stage.INVALIDATION, "Cache invalidated", level="debug",
                  region=event.region, scope=event.scope.value,
                  cache_key=event.key.key if event.key else None)

    def get_stats(self) -> dict[str, Any]:
        l1_hits = sum(c.l1_hits for c in self._regions.values())
        l2_hits = sum(c.l2_hits for c in self._regions.values())
        misses = sum(c.misses for c in self._regions.values())
        total = l1_hits + l2_hits + misses
        return {
            "l1_hits": l1_hits,
            "l2_hits": l2_hits,
            "misses": misses,
            "total_requests": total,
            "hit_rate": round((l1_hits + l2_hits) / total, 3) if total > 0 else 0.0,
            "l1_hit_rate": round(l1_hits / total, 3) if total > 0 else 0.0,
        }


# =============================================================================
# PUBLIC API
# =============================================================================


class TieredCache:
    """
    Two-tier read-through cache with write-driven invalidation.

    Usage:
        cache = TieredCache.from_settings()
        await cache.initialize()

        product = await cache.read_through(
            build_entity_key(Region.PRODUCTS, 42),
            lambda: repository.find_by_id(42),
        )

        async with cache.transaction():
            saved = await repository.save(product)
            await cache.apply_write(build_entity_key(Region.PRODUCTS, saved.id), saved)
            await cache.invalidate_region(Region.PRODUCT_PAGE)

    Args:
        l1: Process-local tier
        l2: Shared tier
        registry: Region policies
        codec: Value codec with every cached model registered
        l1_ttl_ceiling: Upper bound for L1 entry lifetime in seconds
        enabled: When False every read goes to the loader and writes are no-ops
        observer: Counters/log sink (default: new CacheObserver)
    """

    def __init__(
        self,
        l1: CacheTierStore,
        l2: CacheTierStore,
        registry: RegionRegistry,
        codec: ValueCodec,
        l1_ttl_ceiling: int = 300,
        enabled: bool = True,
        observer: CacheObserver | None = None,
    ):
        self._l1 = l1
        self._l2 = l2
        self._registry = registry
        self._codec = codec
        self._l1_ttl_ceiling = l1_ttl_ceiling
        self._enabled = enabled
        self._observer = observer or CacheObserver()
        self._initialized = False
        self._l2_available = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        codec: ValueCodec | None = None,
        backend: CacheBackend | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> "TieredCache":
        """
        Wire both tiers, the registry and the codec from settings.

        Args:
            settings: Settings (default: get_settings())
            codec: Value codec (default: empty codec, JSON values only)
            backend: L2 backend (default: RedisClient)
            clock: Time source for L1 expiry
        """
        settings = settings or get_settings()
        cache_settings = settings.cache
        registry = RegionRegistry.from_settings(settings)

        l1 = L1Store(
            max_size=cache_settings.CACHE_L1_MAX_SIZE,
            default_ttl=cache_settings.CACHE_L1_TTL,
            clock=clock,
            capacity_for=registry.max_entries,
        )
        l2 = L2Store(
            backend or RedisClient(settings),
            key_prefix=cache_settings.CACHE_KEY_PREFIX,
            default_ttl=cache_settings.CACHE_L2_DEFAULT_TTL,
        )

        cache = cls(
            l1,
            l2,
            registry,
            codec or ValueCodec(),
            l1_ttl_ceiling=cache_settings.CACHE_L1_TTL,
            enabled=cache_settings.ENABLE_CACHING,
        )
        logger.info(
            "Tiered cache initialized",
            stage=Stage.LIFECYCLE.value,
            l1_max_size=cache_settings.CACHE_L1_MAX_SIZE,
            l1_ttl=cache_settings.CACHE_L1_TTL,
            caching_enabled=cache_settings.ENABLE_CACHING,
        )
        return cache

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> RegionRegistry:
        return self._registry

    @property
    def observer(self) -> CacheObserver:
        return self._observer

    @property
    def l1(self) -> CacheTierStore:
        return self._l1

    @property
    def l2(self) -> CacheTierStore:
        return self._l2

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Connect the shared tier.

        An unreachable Redis does not stop startup: the cache runs on L1
        alone and every L2 call degrades to a miss until Redis comes back.
        """
        if self._initialized:
            return

        connect = getattr(self._l2, "connect", None)
        if connect is not None:
            try:
                await connect()
                self._l2_available = True
            except CacheUnavailableError as e:
                self._l2_available = False
                logger.warning(
                    "L2 unavailable at startup, running degraded",
                    stage=Stage.LIFECYCLE.value,
                    error=e.message,
                )
        else:
            self._l2_available = True

        self._initialized = True
        log_stage(logger, Stage.LIFECYCLE, "Tiered cache started", l2_available=self._l2_available)

    async def shutdown(self) -> None:
        """Drop L1 contents and close the shared tier."""
        clear = getattr(self._l1, "clear", None)
        if clear is not None:
            await clear()

        disconnect = getattr(self._l2, "disconnect", None)
        if disconnect is not None:
            await disconnect()

        self._initialized = False
        self._l2_available = False
        log_stage(logger, Stage.LIFECYCLE, "Tiered cache shutdown")

    # -------------------------------------------------------------------------
    # Read Path
    # -------------------------------------------------------------------------

    async def read_through(self, key: CacheKey, loader: Loader) -> Any:
        """
        Return the cached value for ``key``, loading it on a miss.

        Algorithm:
        1. L1 hit → return
        2. L2 hit → back-fill L1, return
        3. Miss → call loader, populate both tiers, return

        Concurrent misses on the same key may each call the loader; the
        last population wins.

        Args:
            key: Key built by the key builder
            loader: Sync or async zero-argument callable reading the source

        Returns:
            The cached or freshly loaded value (None for an absent entity)

        Raises:
            Whatever the loader raises; cache failures never surface here
        """
        if not self._enabled:
            return await self._invoke(loader)

        policy = self._registry.lookup(key.region)

        value = await self._lookup_l1(key)
        if value is not _MISSING:
            self._observer.record_hit(key, CacheTier.L1)
            return value

        value = await self._lookup_l2(key, policy)
        if value is not _MISSING:
            self._observer.record_hit(key, CacheTier.L2)
            return value

        self._observer.record_miss(key)
        started = time.perf_counter()
        try:
            value = await self._invoke(loader)
        except Exception:
            self._observer.record_load(key, time.perf_counter() - started, failed=True)
            raise
        self._observer.record_load(key, time.perf_counter() - started)

        if value is None and not policy.cacheable_null:
            return None

        # Population completes even if the caller is cancelled meanwhile
        await asyncio.shield(self._populate(key, value, policy))
        return value

    async def _invoke(self, loader: Loader) -> Any:
        result = loader()
        if inspect.isawaitable(result):
            result = await result
        return result

    async def _lookup_l1(self, key: CacheKey) -> Any:
        payload = await self._l1.get(key)
        if payload is None:
            return _MISSING
        try:
            return self._codec.decode(payload)
        except SerializationError as e:
            self._observer.record_serialization_error(key, CacheTier.L1, e)
            await self._l1.evict(key)
            return _MISSING

    async def _lookup_l2(self, key: CacheKey, policy: RegionPolicy) -> Any:
        try:
            payload = await self._l2.get(key)
        except CacheUnavailableError as e:
            self._observer.record_l2_error(key.region, "get", e)
            await self._l1.evict(key)
            return _MISSING
        if payload is None:
            return _MISSING

        try:
            value = self._codec.decode(payload)
        except SerializationError as e:
            self._observer.record_serialization_error(key, CacheTier.L2, e)
            await self._guarded_l2(key.region, "delete", self._l2.evict(key))
            return _MISSING

        await self._l1.put(key, payload, self._l1_ttl(policy))
        return value

    # -------------------------------------------------------------------------
    # Population
    # -------------------------------------------------------------------------

    def _l1_ttl(self, policy: RegionPolicy) -> int:
        return min(policy.ttl, self._l1_ttl_ceiling)

    async def _populate(self, key: CacheKey, value: Any, policy: RegionPolicy) -> None:
        try:
            payload = self._codec.encode(value)
        except SerializationError as e:
            # The loaded value is still returned; it just is not cached.
            self._observer.record_serialization_error(key, CacheTier.L2, e, operation="encode")
            return

        tx = current_transaction()
        if tx is not None:
            async def _apply() -> None:
                await self._store(key, payload, policy)

            tx.after_commit(_apply)
            return

        await self._store(key, payload, policy)

    async def _store(self, key: CacheKey, payload: str, policy: RegionPolicy) -> None:
        try:
            await self._l2.put(key, payload, policy.ttl)
        except CacheUnavailableError as e:
            self._observer.record_l2_error(key.region, "set", e)
            # The previous L2 value must not outlive a write that never landed
            await self._guarded_l2(key.region, "delete", self._l2.evict(key))
            await self._l1.evict(key)
            return
        await self._l1.put(key, payload, self._l1_ttl(policy))

    async def put(self, key: CacheKey, value: Any) -> None:
        """
        Write a value into both tiers.

        Inside a transaction the write is deferred until commit and dropped
        on rollback. A None value is cached only for regions with negative
        caching; elsewhere the key is evicted instead.
        """
        if not self._enabled:
            return

        policy = self._registry.lookup(key.region)
        if value is None and not policy.cacheable_null:
            await self.invalidate_key(key)
            return
        await self._populate(key, value, policy)

    async def apply_write(self, key: CacheKey, value: Any) -> None:
        """
        Reflect a write of one entity in its cached entry.

        The old entry is evicted from both tiers first. POPULATE regions then
        store ``value`` (after commit, inside a transaction), so a put that
        fails leaves a miss rather than the pre-write value.
        """
        await self.invalidate_key(key)
        policy = self._registry.lookup(key.region)
        if policy.write_policy is WritePolicy.POPULATE and value is not None:
            await self.put(key, value)

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    async def invalidate(self, event: InvalidationEvent) -> None:
        """
        Evict a key or a whole region from both tiers.

        L2 goes first, then L1, so this process cannot re-fill L1 from a
        stale L2 entry in between. An unreachable L2 is logged and L1 is
        still cleared. Inside a transaction the eviction is applied now and
        again after commit, closing the window in which a concurrent reader
        could re-cache the pre-commit state.
        """
        if not self._enabled:
            return

        await self._evict(event)

        tx = current_transaction()
        if tx is not None:
            async def _again() -> None:
                await self._evict(event)

            tx.after_commit(_again)

    async def _evict(self, event: InvalidationEvent) -> None:
        if event.scope is InvalidationScope.KEY:
            await self._guarded_l2(event.region, "delete", self._l2.evict(event.key))
            await self._l1.evict(event.key)
        else:
            await self._guarded_l2(event.region, "sweep", self._l2.evict_region(event.region))
            await self._l1.evict_region(event.region)
        self._observer.record_invalidation(event)

    async def invalidate_key(self, key: CacheKey) -> None:
        await self.invalidate(InvalidationEvent.for_key(key))

    async def invalidate_region(self, region) -> None:
        await self.invalidate(InvalidationEvent.for_region(region))

    async def _guarded_l2(self, region: str, operation: str, call: Awaitable[Any]) -> Any:
        try:
            return await call
        except CacheUnavailableError as e:
            self._observer.record_l2_error(region, operation, e)
            return None

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[CacheTransaction]:
        """
        Defer cache population until the enclosing block completes.

        Commits queued writes on normal exit and drops them on error.
        """
        async with transaction_scope() as tx:
            yield tx

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def regions(self) -> list[str]:
        """Registered regions plus any region this cache has touched."""
        seen = dict.fromkeys(self._registry.regions())
        seen.update(dict.fromkeys(self._observer.regions()))
        l1_regions = getattr(self._l1, "regions", None)
        if l1_regions is not None:
            seen.update(dict.fromkeys(l1_regions()))
        return list(seen)

    def region_stats(self, region) -> dict[str, Any]:
        """
        Counters for one region.

        hit_count covers both tiers, miss_count counts loader calls,
        eviction_count is L1 capacity and expiry evictions.
        """
        name = region_name(region)
        counters = self._observer.counters(name)
        l1_stats = self._l1.stats(name) if hasattr(self._l1, "stats") else {}
        return {
            "region": name,
            "hit_count": counters.hit_count,
            "l1_hit_count": counters.l1_hits,
            "l2_hit_count": counters.l2_hits,
            "miss_count": counters.misses,
            "load_count": counters.loads,
            "load_failure_count": counters.load_failures,
            "eviction_count": l1_stats.get("eviction_count", 0),
            "average_load_penalty_ms": round(counters.average_load_penalty_ms, 3),
            "l2_error_count": counters.l2_errors,
            "l1_size": l1_stats.get("size", 0),
        }

    def stats(self) -> dict[str, Any]:
        """
        Cache performance statistics.

        Returns:
            Dict with hit rates, per-region counters and L1 sizes
        """
        return {
            **self._observer.get_stats(),
            "regions": {name: self.region_stats(name) for name in self.regions()},
            "l2_connected": self._l2_available,
            "caching_enabled": self._enabled,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def health_check(self) -> dict[str, Any]:
        """
        Health of both tiers.

        Returns:
            Dict with overall status ("healthy" or "degraded") and per-tier detail
        """
        l1_size = self._l1.size() if hasattr(self._l1, "size") else None
        health = {
            "status": "healthy",
            "caching_enabled": self._enabled,
            "l1": {"status": "healthy", "size": l1_size},
            "l2": None,
        }

        l2_health_check = getattr(self._l2, "health_check", None)
        if not self._initialized:
            health["status"] = "degraded"
            health["l2"] = {"status": "not_connected"}
        elif l2_health_check is not None:
            l2_health = await l2_health_check()
            health["l2"] = l2_health
            if l2_health.get("status") != "healthy":
                health["status"] = "degraded"

        return health
