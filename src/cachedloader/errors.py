"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error types raised by the cached batch loader.
"""

from __future__ import annotations


class CachedLoaderError(RuntimeError):
    """Base class for loader failures."""


class CacheStoreError(CachedLoaderError):
    """Raised when a cache store operation or backend resolution fails."""


class BatchLoadContractError(CachedLoaderError):
    """Raised when a batch function breaks the same-length-list contract."""


class LoaderInvariantError(CachedLoaderError):
    """Raised when merged batch results are inconsistent."""
