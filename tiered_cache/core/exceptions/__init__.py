"""
Exception Module

Structured exception hierarchy for the tiered cache core.

Module Structure:
-----------------
- **base.py**: TieredCacheError base class + ConfigurationError
- **cache.py**: Cache tier failures (unavailable tier, serialization)
- **source.py**: Source-of-truth errors propagated to callers

Usage:
------
```python
from tiered_cache.core.exceptions import CacheUnavailableError, EntityNotFoundError
```
"""

from tiered_cache.core.exceptions.base import ConfigurationError, TieredCacheError
from tiered_cache.core.exceptions.cache import (
    CacheError,
    CacheUnavailableError,
    SerializationError,
)
from tiered_cache.core.exceptions.source import EntityNotFoundError

__all__ = [
    # Base
    "TieredCacheError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheUnavailableError",
    "SerializationError",
    # Source of truth
    "EntityNotFoundError",
]
