"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: stores/base.py.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached value with optional expiration timestamp."""
    value: Any
    expires_at_s: float | None = None

    def is_expired(self, now_s: float) -> bool:
        return self.expires_at_s is not None and self.expires_at_s <= now_s


@runtime_checkable
class CacheStore(Protocol):
    """
    Async key-value store consumed by the cached batch loader.

    Reads return ``MISSING`` for absent keys. ``ttl_ms=None`` falls back to
    the store default; a store without a default keeps entries until they
    are deleted.
    """
    backend_id: str

    async def get(self, key: str) -> Any: ...

    async def get_many(self, keys: Sequence[str]) -> list[Any]: ...

    async def set(self, key: str, value: Any, *, ttl_ms: int | None = None) -> None: ...

    async def set_many(
        self,
        entries: Sequence[tuple[str, Any]],
        *,
        ttl_ms: int | None = None,
    ) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def delete_many(self, keys: Sequence[str]) -> bool: ...

    async def clear(self) -> None: ...
