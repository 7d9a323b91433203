"""
Cache-Related Exceptions

Failures of a cache tier. The façade absorbs all of these: reads fall through
to the source of truth, writes evict rather than risk a stale hit.
"""

from tiered_cache.core.exceptions.base import TieredCacheError


class CacheError(TieredCacheError):
    """Base exception for cache-related errors."""
    pass


class CacheUnavailableError(CacheError):
    """
    Raised when the shared tier cannot be reached or times out.

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Socket timeout
    - Client used before connect()
    """
    pass


class SerializationError(CacheError):
    """
    Raised when a value cannot be encoded for, or decoded from, a tier.

    Common causes:
    - Value type not registered with the codec
    - Corrupted or foreign payload under a cache key
    """
    pass
