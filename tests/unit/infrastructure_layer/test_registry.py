"""
Unit Tests for RegionRegistry

Default table, conservative fallback for unknown regions and the JSON
override file.
"""

import orjson
import pytest
from pydantic import ValidationError

from tiered_cache.core.config.constants import Region, Stage, WritePolicy
from tiered_cache.core.config.settings import Settings
from tiered_cache.core.exceptions import ConfigurationError
from tiered_cache.infrastructure.cache.registry import (
    DEFAULT_REGION_POLICIES,
    RegionPolicy,
    RegionRegistry,
    load_region_file,
)


@pytest.mark.unit
class TestDefaultPolicies:
    @pytest.fixture
    def registry(self):
        return RegionRegistry()

    @pytest.mark.parametrize(
        "region,ttl,policy",
        [
            (Region.PRODUCTS, 1200, WritePolicy.POPULATE),
            (Region.PRODUCT_PAGE, 300, WritePolicy.EVICT),
            (Region.CATEGORIES, 1200, WritePolicy.POPULATE),
            (Region.CATEGORY_LIST, 900, WritePolicy.EVICT),
            (Region.SETTINGS, 1200, WritePolicy.POPULATE),
            (Region.SETTING_LIST, 900, WritePolicy.EVICT),
            (Region.USERS, 420, WritePolicy.POPULATE),
            (Region.USER_LIST, 300, WritePolicy.EVICT),
            (Region.USER_EMAIL, 420, WritePolicy.EVICT),
        ],
    )
    def test_table(self, registry, region, ttl, policy):
        found = registry.lookup(region)

        assert found.ttl == ttl
        assert found.write_policy is policy
        assert found.cacheable_null is False
        assert found.max_entries == 1000

    def test_every_ttl_is_within_five_to_twenty_minutes(self):
        assert all(300 <= p.ttl <= 1200 for p in DEFAULT_REGION_POLICIES)

    def test_every_region_enum_is_registered(self, registry):
        assert all(region in registry for region in Region)


@pytest.mark.unit
class TestUnknownRegion:
    def test_conservative_default(self):
        policy = RegionRegistry().lookup("brand::new")

        assert policy.ttl == 60
        assert policy.max_entries == 100
        assert policy.cacheable_null is False
        assert policy.write_policy is WritePolicy.EVICT

    def test_warns_once(self, monkeypatch):
        from tiered_cache.infrastructure.cache import registry as registry_module

        warnings = []
        monkeypatch.setattr(
            registry_module.logger, "warning", lambda *args, **kwargs: warnings.append(kwargs)
        )
        registry = RegionRegistry()

        registry.lookup("brand::new")
        registry.lookup("brand::new")

        assert len(warnings) == 1
        assert warnings[0]["region"] == "brand::new"
        assert warnings[0]["stage"] == Stage.LIFECYCLE.value
        assert "brand::new" not in registry


@pytest.mark.unit
class TestRegionPolicy:
    def test_policies_are_immutable(self):
        policy = RegionPolicy(name="r", ttl=10)

        with pytest.raises(ValidationError):
            policy.ttl = 20

    @pytest.mark.parametrize("kwargs", [{"ttl": 0}, {"ttl": 10, "max_entries": -1}, {"ttl": 10, "color": "red"}])
    def test_invalid_policies_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            RegionPolicy(name="r", **kwargs)

    def test_later_policies_override_earlier(self):
        registry = RegionRegistry(
            [RegionPolicy(name="r", ttl=10), RegionPolicy(name="r", ttl=20, max_entries=5)]
        )

        assert registry.lookup("r").ttl == 20
        assert registry.max_entries("r") == 5


@pytest.mark.unit
class TestRegionFile:
    def test_file_overrides_defaults(self, tmp_path):
        path = tmp_path / "regions.json"
        path.write_bytes(orjson.dumps({
            "regions": {
                "products": {"ttl": 600, "write_policy": "evict"},
                "brands": {"ttl": 900, "cacheable_null": True, "max_entries": 50},
            }
        }))

        registry = RegionRegistry.from_settings(Settings(CACHE_REGION_CONFIG_FILE=str(path)))

        assert registry.lookup("products").ttl == 600
        assert registry.lookup("products").write_policy is WritePolicy.EVICT
        assert registry.lookup("brands").cacheable_null is True
        assert registry.max_entries("brands") == 50
        assert registry.lookup("product::page").ttl == 300

    def test_settings_capacity_is_the_default(self):
        registry = RegionRegistry.from_settings(Settings(CACHE_L1_MAX_SIZE=250))

        assert registry.max_entries(Region.PRODUCTS) == 250

    @pytest.mark.parametrize(
        "content",
        [
            b"not json",
            b"[]",
            b'{"regions": []}',
            b'{"regions": {"r": 5}}',
            b'{"regions": {"r": {"ttl": -1}}}',
            b'{"regions": {"r": {"ttl": 10, "unknown": 1}}}',
        ],
    )
    def test_malformed_files_raise(self, tmp_path, content):
        path = tmp_path / "regions.json"
        path.write_bytes(content)

        with pytest.raises(ConfigurationError):
            load_region_file(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_region_file(tmp_path / "absent.json")
