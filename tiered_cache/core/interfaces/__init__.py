from .cache import CacheBackend, CacheTierStore, InMemoryCache
from .repository import Repository

__all__ = ["CacheBackend", "CacheTierStore", "InMemoryCache", "Repository"]
