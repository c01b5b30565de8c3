"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: stores/redis.py.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from typing import Any

from ..types import MISSING
from .base import CacheStore

logger = logging.getLogger("cachedloader.stores.redis")

_CLEAR_CHUNK_SIZE = 500


class RedisCacheStore(CacheStore):
    """
    Redis-backed cache store for multi-process deployments.

    Every key is stored as ``{namespace}:{key}`` so ``clear`` only removes
    rows owned by this namespace. Values go through ``serializer`` and must
    round-trip through it (JSON by default).

    Requires ``redis.asyncio`` (``pip install redis``).

    Args:
        redis: An ``redis.asyncio.Redis`` client instance.
        namespace: Key prefix for namespacing.
        default_ttl_ms: Expiry applied when a write passes no TTL.
    """

    backend_id = "redis"

    def __init__(
        self,
        redis: Any,
        *,
        namespace: str = "cachedloader",
        default_ttl_ms: int | None = None,
        serializer: Callable[[Any], str] = json.dumps,
        deserializer: Callable[[str | bytes], Any] = json.loads,
    ) -> None:
        if default_ttl_ms is not None and default_ttl_ms <= 0:
            raise ValueError("default_ttl_ms must be > 0")
        self._redis = redis
        self.namespace = namespace
        self._default_ttl_ms = default_ttl_ms
        self._serializer = serializer
        self._deserializer = deserializer

    def _key(self, key: str) -> str:
        """Redis key holding one namespaced cache row."""
        return f"{self.namespace}:{key}"

    def _ttl(self, ttl_ms: int | None) -> int | None:
        return ttl_ms if ttl_ms is not None else self._default_ttl_ms

    def _decode(self, key: str, blob: Any) -> Any:
        if blob is None:
            return MISSING
        try:
            return self._deserializer(blob)
        except (TypeError, ValueError):
            logger.warning("Dropping undecodable cache row %s", self._key(key))
            return MISSING

    async def get(self, key: str) -> Any:
        return self._decode(key, await self._redis.get(self._key(key)))

    async def get_many(self, keys: Sequence[str]) -> list[Any]:
        if not keys:
            return []
        blobs = await self._redis.mget([self._key(key) for key in keys])
        return [self._decode(key, blob) for key, blob in zip(keys, blobs)]

    async def set(self, key: str, value: Any, *, ttl_ms: int | None = None) -> None:
        await self._redis.set(
            self._key(key),
            self._serializer(value),
            px=self._ttl(ttl_ms),
        )

    async def set_many(
        self,
        entries: Sequence[tuple[str, Any]],
        *,
        ttl_ms: int | None = None,
    ) -> None:
        if not entries:
            return
        ttl = self._ttl(ttl_ms)
        pipe = self._redis.pipeline(transaction=False)
        for key, value in entries:
            pipe.set(self._key(key), self._serializer(value), px=ttl)
        await pipe.execute()

    async def delete(self, key: str) -> bool:
        return bool(await self._redis.delete(self._key(key)))

    async def delete_many(self, keys: Sequence[str]) -> bool:
        if not keys:
            return False
        removed = await self._redis.delete(*(self._key(key) for key in keys))
        return bool(removed)

    async def clear(self) -> None:
        """Delete every row under this namespace in ``SCAN``-sized chunks."""
        removed = 0
        buffer: list[Any] = []
        async for key in self._redis.scan_iter(
            match=f"{self.namespace}:*", count=_CLEAR_CHUNK_SIZE
        ):
            buffer.append(key)
            if len(buffer) >= _CLEAR_CHUNK_SIZE:
                removed += await self._redis.delete(*buffer)
                buffer = []
        if buffer:
            removed += await self._redis.delete(*buffer)
        logger.info("Cleared %d cache rows in namespace %s", removed, self.namespace)
