"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tests.test_fixtures import CacheTestFactory, ManualClock, RepositoryTestFactory  # noqa: E402

# ============================================================================
# Settings Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch):
    """Run every test against default settings, whatever the shell exports."""
    from tiered_cache.core.config import settings as settings_module

    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setattr(settings_module, "_settings", None)


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def clock():
    """Manual monotonic clock shared by both tiers."""
    return ManualClock()


@pytest.fixture
def backend(clock):
    """In-memory L2 backend honoring TTLs against the manual clock."""
    return CacheTestFactory.backend(clock)


@pytest.fixture
def cache(backend, clock):
    """Tiered cache over the in-memory backend with the default region table."""
    return CacheTestFactory.tiered_cache(backend=backend, clock=clock)


@pytest.fixture
def failing_backend(clock):
    """Backend whose every data operation raises CacheUnavailableError."""
    return CacheTestFactory.failing_backend(clock=clock)


# ============================================================================
# Repository Fixtures
# ============================================================================


@pytest.fixture
def product_repository():
    return RepositoryTestFactory.products()


@pytest.fixture
def category_repository():
    return RepositoryTestFactory.categories()


@pytest.fixture
def setting_repository():
    return RepositoryTestFactory.settings()


@pytest.fixture
def user_repository():
    return RepositoryTestFactory.users()
