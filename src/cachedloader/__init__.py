"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Batching request coalescer with a TTL cache store in front of the loader.

Quick start::

    from cachedloader import CachedBatchLoader

    async def fetch_users(ids):
        rows = await db.fetch_users(ids)
        by_id = {row["id"]: row for row in rows}
        return [by_id.get(i, KeyError(i)) for i in ids]

    users = CachedBatchLoader(fetch_users, ttl_ms=60_000)
    alice, bob = await asyncio.gather(users.load(1), users.load(2))
"""

from .coalescing import BatchCoalescer, BatchOptions
from .errors import (
    BatchLoadContractError,
    CachedLoaderError,
    CacheStoreError,
    LoaderInvariantError,
)
from .loader import CachedBatchLoader
from .settings import LoaderSettings
from .stores import (
    CacheEntry,
    CacheStore,
    InMemoryCacheStore,
    create_cache_store,
    create_cache_store_from_env,
)
from .types import MISSING, Fault, default_cache_key, is_fault

__all__ = [
    "CachedBatchLoader",
    "BatchCoalescer",
    "BatchOptions",
    "LoaderSettings",
    "CacheEntry",
    "CacheStore",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "create_cache_store",
    "create_cache_store_from_env",
    "CachedLoaderError",
    "CacheStoreError",
    "BatchLoadContractError",
    "LoaderInvariantError",
    "MISSING",
    "Fault",
    "default_cache_key",
    "is_fault",
]


# Lazy import for Redis store
def __getattr__(name: str):
    """Lazily expose optional store backends that require extra dependencies."""
    if name == "RedisCacheStore":
        from .stores.redis import RedisCacheStore

        return RedisCacheStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
