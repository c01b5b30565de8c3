"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for selecting cache store backends by id or environment.
"""

from __future__ import annotations

import os
from typing import Any

from ..errors import CacheStoreError
from .base import CacheStore
from .inmemory import InMemoryCacheStore

_INMEMORY_IDS = ("mem", "memory", "inmemory", "in_memory")


def _env_first(*names: str, default: str | None = None) -> str | None:
    """
    Return the first non-empty environment variable in `names`.

    Args:
        *names: Environment variable names to check in order.
        default: Value returned if no non-empty variable is found.
    """
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def _redis_url_from_env() -> str:
    """Build a Redis URL from `CACHEDLOADER_REDIS_*` variables."""
    url = _env_first("CACHEDLOADER_REDIS_URL", "REDIS_URL")
    if url:
        return url
    host = _env_first("CACHEDLOADER_REDIS_HOST", default="localhost") or "localhost"
    port = _env_first("CACHEDLOADER_REDIS_PORT", default="6379") or "6379"
    db = _env_first("CACHEDLOADER_REDIS_DB", default="0") or "0"
    password = _env_first("CACHEDLOADER_REDIS_PASSWORD", default="") or ""
    if password:
        return f"redis://:{password}@{host}:{port}/{db}"
    return f"redis://{host}:{port}/{db}"


def _build_redis_client(url: str) -> Any:
    try:
        import redis.asyncio as redis
    except ModuleNotFoundError as exc:  # pragma: no cover
        raise CacheStoreError(
            "Redis cache backend requires `redis` to be installed."
        ) from exc
    return redis.Redis.from_url(url)


def create_cache_store(
    backend: str | CacheStore | None = None,
    **options: Any,
) -> CacheStore:
    """
    Resolve a cache store from a backend id, an instance, or the default.

    Backends:
    - `inmemory` (default)
    - `redis`: uses `redis_client` when supplied, else builds a client from
      `redis_url` or the environment.

    Remaining `options` are passed to the store constructor.
    """
    if backend is not None and not isinstance(backend, str):
        if options:
            raise CacheStoreError("Store options cannot be applied to a store instance")
        return backend

    key = (backend or "inmemory").strip().lower()
    if key in _INMEMORY_IDS:
        return InMemoryCacheStore(**options)

    if key == "redis":
        from .redis import RedisCacheStore

        client = options.pop("redis_client", None)
        url = options.pop("redis_url", None)
        if client is None:
            client = _build_redis_client(url or _redis_url_from_env())
        return RedisCacheStore(client, **options)

    raise CacheStoreError(f"Unknown cache store backend '{backend}'")


def create_cache_store_from_env(*, redis_client: Any | None = None) -> CacheStore:
    """
    Create a cache store from `CACHEDLOADER_*` environment variables.

    Reads `CACHEDLOADER_STORE_BACKEND` (default `inmemory`). The Redis
    backend also reads `CACHEDLOADER_NAMESPACE` (default `cachedloader`).
    """
    backend = _env_first("CACHEDLOADER_STORE_BACKEND", default="inmemory") or "inmemory"
    options: dict[str, Any] = {}
    if backend.strip().lower() == "redis":
        options["namespace"] = (
            _env_first("CACHEDLOADER_NAMESPACE", default="cachedloader") or "cachedloader"
        )
        if redis_client is not None:
            options["redis_client"] = redis_client
    return create_cache_store(backend, **options)
