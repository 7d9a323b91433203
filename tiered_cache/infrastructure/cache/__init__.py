"""
Cache Module

Provides the two-tier cache (L1 in-process + L2 Redis), its key builder,
value codec, region registry and transaction boundary.
"""

from .invalidation import InvalidationEvent, InvalidationScope
from .keys import CacheKey, build_entity_key, build_named_key, build_query_key, region_name
from .l1_store import L1Store
from .l2_store import L2Store
from .redis_client import RedisClient
from .registry import DEFAULT_REGION_POLICIES, RegionPolicy, RegionRegistry, load_region_file
from .serialization import ValueCodec
from .tiered_cache import CacheObserver, TieredCache
from .transaction import (
    CacheTransaction,
    TransactionState,
    begin_transaction,
    current_transaction,
    transaction_scope,
)

__all__ = [
    "CacheKey",
    "build_entity_key",
    "build_query_key",
    "build_named_key",
    "region_name",
    "ValueCodec",
    "L1Store",
    "L2Store",
    "RedisClient",
    "RegionPolicy",
    "RegionRegistry",
    "DEFAULT_REGION_POLICIES",
    "load_region_file",
    "InvalidationEvent",
    "InvalidationScope",
    "CacheTransaction",
    "TransactionState",
    "begin_transaction",
    "current_transaction",
    "transaction_scope",
    "CacheObserver",
    "TieredCache",
]
