"""
System Constants and Enumerations

Region names, tier identifiers, stage codes and the reserved tokens used by
the key builder. Everything here is immutable and shared freely.
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Cache processing stages used as the ``stage`` field of log lines.

    Format: {PREFIX}.{SEQUENCE}
    """

    LIFECYCLE = "C.0"
    L1_LOOKUP = "C.1"
    L2_LOOKUP = "C.2"
    SOURCE_LOAD = "C.3"
    INVALIDATION = "C.4"
    TRANSACTION = "C.5"
    METRICS = "M.1"


# ============================================================================
# Cache Tiers
# ============================================================================


class CacheTier(str, Enum):
    """
    Multi-tier caching levels.

    L1: In-process LRU cache (fastest, not shared)
    L2: Redis distributed cache (shared across processes)
    """

    L1 = "l1"
    L2 = "l2"


# ============================================================================
# Write Policies
# ============================================================================


class WritePolicy(str, Enum):
    """
    What a write of a single entity does to that entity's cached entry.

    EVICT: drop the entry; the next read reloads it
    POPULATE: replace the entry with the freshly written value
    """

    EVICT = "evict"
    POPULATE = "populate"


# ============================================================================
# Region Names
# ============================================================================


class Region(str, Enum):
    """Known cache regions, one per entity or derived view."""

    PRODUCTS = "products"
    PRODUCT_PAGE = "product::page"
    CATEGORIES = "categories"
    CATEGORY_LIST = "category::list"
    SETTINGS = "settings"
    SETTING_LIST = "setting::list"
    USERS = "users"
    USER_LIST = "user::list"
    USER_EMAIL = "user::email"


# ============================================================================
# Key Builder Tokens
# ============================================================================

# Separator between region and key in qualified keys ("products::id:7")
REGION_SEPARATOR = "::"

# Rendered sort spec when a query is unsorted
UNSORTED_TOKEN = "UNSORTED"

# Prefix marking a search-scoped query key
SEARCH_PREFIX = "search"

# Fixed key for "list everything" reads
ALL_ENTRIES_KEY = "all"

# Batch size for SCAN/DEL region sweeps in L2
L2_SWEEP_BATCH_SIZE = 500

# ============================================================================
# Defaults for regions missing from the registry
# ============================================================================

UNKNOWN_REGION_TTL = 60
UNKNOWN_REGION_MAX_ENTRIES = 100
