"""
Invalidation events produced by writes and consumed by the cache façade.
"""

from dataclasses import dataclass
from enum import Enum

from tiered_cache.infrastructure.cache.keys import CacheKey, region_name


class InvalidationScope(str, Enum):
    KEY = "key"
    REGION = "region"


@dataclass(frozen=True, slots=True)
class InvalidationEvent:
    """Evict one key, or every key of a region, from both tiers."""

    region: str
    scope: InvalidationScope
    key: CacheKey | None = None

    def __post_init__(self):
        if self.scope is InvalidationScope.KEY:
            if self.key is None:
                raise ValueError("key-scoped invalidation needs a key")
            if self.key.region != self.region:
                raise ValueError(f"key {self.key.qualified} is not in region {self.region}")

    @classmethod
    def for_key(cls, key: CacheKey) -> "InvalidationEvent":
        return cls(region=key.region, scope=InvalidationScope.KEY, key=key)

    @classmethod
    def for_region(cls, region) -> "InvalidationEvent":
        return cls(region=region_name(region), scope=InvalidationScope.REGION)
