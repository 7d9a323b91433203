"""
Configuration Module

Centralized, type-safe configuration for the tiered cache core.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Region names, tier/stage enums and key-builder tokens

Usage:
------
```python
from tiered_cache.core.config import get_settings, Region

settings = get_settings()
ceiling = settings.cache.CACHE_L1_TTL
region = Region.PRODUCT_PAGE  # "product::page"
```
"""

from tiered_cache.core.config.constants import (
    ALL_ENTRIES_KEY,
    REGION_SEPARATOR,
    SEARCH_PREFIX,
    UNSORTED_TOKEN,
    CacheTier,
    Region,
    Stage,
    WritePolicy,
)
from tiered_cache.core.config.settings import get_settings, reload_settings

__all__ = [
    # Settings
    "get_settings",
    "reload_settings",
    # Enums
    "CacheTier",
    "Region",
    "Stage",
    "WritePolicy",
    # Tokens
    "ALL_ENTRIES_KEY",
    "REGION_SEPARATOR",
    "SEARCH_PREFIX",
    "UNSORTED_TOKEN",
]
