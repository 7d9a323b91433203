"""Unit Tests for constants and enumerations."""

import pytest

from tiered_cache.core.config.constants import (
    REGION_SEPARATOR,
    UNKNOWN_REGION_MAX_ENTRIES,
    UNKNOWN_REGION_TTL,
    CacheTier,
    Region,
    Stage,
    WritePolicy,
)


@pytest.mark.unit
class TestConstants:
    def test_region_names_match_cache_names(self):
        assert Region.PRODUCTS.value == "products"
        assert Region.PRODUCT_PAGE.value == "product::page"
        assert Region.USER_EMAIL.value == "user::email"

    def test_enums_compare_as_strings(self):
        assert CacheTier.L1 == "l1"
        assert WritePolicy.POPULATE == "populate"
        assert Stage.INVALIDATION == "C.4"

    def test_unknown_region_defaults_are_conservative(self):
        assert UNKNOWN_REGION_TTL == 60
        assert UNKNOWN_REGION_MAX_ENTRIES == 100
        assert REGION_SEPARATOR == "::"
