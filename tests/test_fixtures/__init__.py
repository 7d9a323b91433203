"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import CacheTestFactory, ManualClock
from .repository_factory import InMemoryRepository, RepositoryTestFactory

__all__ = ["CacheTestFactory", "ManualClock", "InMemoryRepository", "RepositoryTestFactory"]
