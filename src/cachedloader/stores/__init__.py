"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: stores/__init__.py.
"""

from .base import CacheEntry, CacheStore
from .factory import create_cache_store, create_cache_store_from_env
from .inmemory import InMemoryCacheStore

__all__ = [
    "CacheEntry",
    "CacheStore",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "create_cache_store",
    "create_cache_store_from_env",
]


# Lazy import for Redis store
def __getattr__(name: str):
    """Lazily expose optional store backends that require extra dependencies."""
    if name == "RedisCacheStore":
        from .redis import RedisCacheStore

        return RedisCacheStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
