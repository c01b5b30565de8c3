"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: stores/inmemory.py.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import Any

from ..types import MISSING
from .base import CacheEntry, CacheStore


class InMemoryCacheStore(CacheStore):
    """
    Process-local cache store suitable for development/test workloads.

    Rows live in this instance only; two stores never share entries.
    Expiry is evaluated lazily on read against ``clock`` (seconds).
    """

    backend_id = "inmemory"

    def __init__(
        self,
        *,
        default_ttl_ms: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if default_ttl_ms is not None and default_ttl_ms <= 0:
            raise ValueError("default_ttl_ms must be > 0")
        self._default_ttl_ms = default_ttl_ms
        self._clock = clock
        self._rows: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def _expires_at(self, ttl_ms: int | None) -> float | None:
        ttl = ttl_ms if ttl_ms is not None else self._default_ttl_ms
        if ttl is None:
            return None
        return self._clock() + ttl / 1000.0

    def _read(self, key: str) -> Any:
        row = self._rows.get(key)
        if row is None:
            return MISSING
        if row.is_expired(self._clock()):
            self._rows.pop(key, None)
            return MISSING
        return row.value

    async def get(self, key: str) -> Any:
        return self._read(key)

    async def get_many(self, keys: Sequence[str]) -> list[Any]:
        return [self._read(key) for key in keys]

    async def set(self, key: str, value: Any, *, ttl_ms: int | None = None) -> None:
        self._rows[key] = CacheEntry(value=value, expires_at_s=self._expires_at(ttl_ms))

    async def set_many(
        self,
        entries: Sequence[tuple[str, Any]],
        *,
        ttl_ms: int | None = None,
    ) -> None:
        expires_at = self._expires_at(ttl_ms)
        for key, value in entries:
            self._rows[key] = CacheEntry(value=value, expires_at_s=expires_at)

    async def delete(self, key: str) -> bool:
        return self._rows.pop(key, None) is not None

    async def delete_many(self, keys: Sequence[str]) -> bool:
        removed = False
        for key in keys:
            if self._rows.pop(key, None) is not None:
                removed = True
        return removed

    async def clear(self) -> None:
        self._rows.clear()
