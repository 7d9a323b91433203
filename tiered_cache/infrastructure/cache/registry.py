"""
Region Policy Registry

Static mapping from region name to TTL, L1 capacity, negative-caching and
write policy, built once at startup and read-only afterwards.

Single-record regions live 5-20 minutes; the list/page/search views of the
same entity get shorter TTLs because they go stale on every write to any
member. A region nobody registered gets a conservative policy (short TTL,
no negative caching, evict on write) instead of an error.

Override file format (``CACHE_REGION_CONFIG_FILE``):

    {
      "regions": {
        "products": {"ttl": 1200, "write_policy": "populate"},
        "product::page": {"ttl": 300, "max_entries": 200}
      }
    }
"""

from collections.abc import Iterable
from pathlib import Path

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tiered_cache.core.config.constants import (
    UNKNOWN_REGION_MAX_ENTRIES,
    UNKNOWN_REGION_TTL,
    Region,
    Stage,
    WritePolicy,
)
from tiered_cache.core.config.settings import Settings
from tiered_cache.core.exceptions import ConfigurationError
from tiered_cache.core.logging.logger import get_logger
from tiered_cache.infrastructure.cache.keys import region_name

logger = get_logger(__name__)

MINUTE = 60


class RegionPolicy(BaseModel):
    """Caching policy for one region."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    ttl: int = Field(gt=0, description="Time-to-live in seconds")
    max_entries: int | None = Field(default=None, ge=0, description="L1 capacity; None = settings default")
    cacheable_null: bool = Field(default=False, description="Cache absent results (negative caching)")
    write_policy: WritePolicy = Field(default=WritePolicy.EVICT)


DEFAULT_REGION_POLICIES: tuple[RegionPolicy, ...] = (
    RegionPolicy(name=Region.PRODUCTS.value, ttl=20 * MINUTE, write_policy=WritePolicy.POPULATE),
    RegionPolicy(name=Region.PRODUCT_PAGE.value, ttl=5 * MINUTE),
    RegionPolicy(name=Region.CATEGORIES.value, ttl=20 * MINUTE, write_policy=WritePolicy.POPULATE),
    RegionPolicy(name=Region.CATEGORY_LIST.value, ttl=15 * MINUTE),
    RegionPolicy(name=Region.SETTINGS.value, ttl=20 * MINUTE, write_policy=WritePolicy.POPULATE),
    RegionPolicy(name=Region.SETTING_LIST.value, ttl=15 * MINUTE),
    RegionPolicy(name=Region.USERS.value, ttl=7 * MINUTE, write_policy=WritePolicy.POPULATE),
    RegionPolicy(name=Region.USER_LIST.value, ttl=5 * MINUTE),
    RegionPolicy(name=Region.USER_EMAIL.value, ttl=7 * MINUTE),
)


class RegionRegistry:
    """
    Read-only lookup of region policies.

    Args:
        policies: Known regions (later entries override earlier ones)
        default_max_entries: L1 capacity for policies that leave it unset
        unknown_ttl: TTL for regions nobody registered
    """

    def __init__(
        self,
        policies: Iterable[RegionPolicy] = DEFAULT_REGION_POLICIES,
        default_max_entries: int = 1000,
        unknown_ttl: int = UNKNOWN_REGION_TTL,
    ):
        self._policies: dict[str, RegionPolicy] = {}
        for policy in policies:
            if policy.max_entries is None:
                policy = policy.model_copy(update={"max_entries": default_max_entries})
            self._policies[policy.name] = policy

        self._unknown_ttl = unknown_ttl
        self._warned: set[str] = set()

    @classmethod
    def from_settings(cls, settings: Settings) -> "RegionRegistry":
        """
        Build the registry from the embedded table plus the optional file.

        Raises:
            ConfigurationError: If the override file is missing or malformed
        """
        cache_settings = settings.cache
        policies = list(DEFAULT_REGION_POLICIES)
        if cache_settings.CACHE_REGION_CONFIG_FILE:
            policies.extend(load_region_file(cache_settings.CACHE_REGION_CONFIG_FILE))

        registry = cls(policies, default_max_entries=cache_settings.CACHE_L1_MAX_SIZE)
        logger.info(
            "Region registry loaded", stage=Stage.LIFECYCLE.value, regions=registry.regions()
        )
        return registry

    def lookup(self, region) -> RegionPolicy:
        """
        Policy for a region; unknown regions get the conservative default.

        Never raises for an unknown name: a newly introduced region is
        cached briefly and never negatively.
        """
        name = region_name(region)
        policy = self._policies.get(name)
        if policy is not None:
            return policy

        if name not in self._warned:
            self._warned.add(name)
            logger.warning(
                "Unknown cache region, using conservative default policy",
                stage=Stage.LIFECYCLE.value,
                region=name,
                ttl=self._unknown_ttl,
            )
        return RegionPolicy(
            name=name,
            ttl=self._unknown_ttl,
            max_entries=UNKNOWN_REGION_MAX_ENTRIES,
            cacheable_null=False,
            write_policy=WritePolicy.EVICT,
        )

    def max_entries(self, region) -> int:
        """L1 capacity for a region (used as the L1 store's capacity lookup)."""
        return self.lookup(region).max_entries

    def regions(self) -> list[str]:
        return list(self._policies)

    def __contains__(self, region) -> bool:
        return region_name(region) in self._policies


def load_region_file(path: str | Path) -> list[RegionPolicy]:
    """
    Parse a JSON region override file.

    Raises:
        ConfigurationError: If the file cannot be read or validated
    """
    file_path = Path(path)
    try:
        document = orjson.loads(file_path.read_bytes())
    except OSError as e:
        raise ConfigurationError.from_exception(e, message=f"Cannot read region config {file_path}")
    except orjson.JSONDecodeError as e:
        raise ConfigurationError.from_exception(e, message=f"Region config {file_path} is not valid JSON")

    regions = document.get("regions") if isinstance(document, dict) else None
    if not isinstance(regions, dict):
        raise ConfigurationError(
            f"Region config {file_path} must contain a 'regions' object",
            details={"path": str(file_path)},
        )

    policies = []
    for name, body in regions.items():
        if not isinstance(body, dict):
            raise ConfigurationError(
                f"Region '{name}' must map to an object", details={"path": str(file_path)}
            )
        try:
            policies.append(RegionPolicy(name=name, **body))
        except (ValidationError, TypeError) as e:
            raise ConfigurationError.from_exception(
                e, message=f"Invalid policy for region '{name}'", path=str(file_path)
            )
    return policies
