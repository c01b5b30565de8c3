"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Shared types for keys, values, faults, and the absent-value sentinel.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Final


class _Missing:
    """Sentinel type marking a cache position with no stored value."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()

# A Fault is an exception instance placed in a result list instead of raised.
Fault = Exception

BatchLoadFn = Callable[[list[Any]], Awaitable[Sequence[Any]]]
CacheKeyFn = Callable[[Any], str]


def is_fault(value: object) -> bool:
    """Return True when one result slot carries a per-key failure."""
    return isinstance(value, Exception)


def default_cache_key(key: object) -> str:
    """Stringify a key. Structured keys need a caller-supplied function."""
    return str(key)
