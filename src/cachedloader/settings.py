"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Loader settings and explicit config loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .coalescing import BatchOptions


def _optional_int(name: str) -> int | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class LoaderSettings:
    """Explicit settings used to build a cached batch loader."""

    store_backend: str = "inmemory"
    namespace: str = "cachedloader"
    ttl_ms: int | None = None
    redis_url: str | None = None

    max_batch_size: int | None = None
    batch_delay_s: float = 0.0

    @staticmethod
    def from_env() -> "LoaderSettings":
        """Load settings from environment variables."""
        return LoaderSettings(
            store_backend=os.getenv("CACHEDLOADER_STORE_BACKEND", "inmemory").strip().lower()
            or "inmemory",
            namespace=os.getenv("CACHEDLOADER_NAMESPACE", "cachedloader").strip()
            or "cachedloader",
            ttl_ms=_optional_int("CACHEDLOADER_TTL_MS"),
            redis_url=os.getenv("CACHEDLOADER_REDIS_URL") or None,
            max_batch_size=_optional_int("CACHEDLOADER_MAX_BATCH_SIZE"),
            batch_delay_s=_float("CACHEDLOADER_BATCH_DELAY_S", 0.0),
        )

    def batch_options(self) -> BatchOptions:
        """Adapt settings into coalescer batch options."""
        return BatchOptions(
            max_batch_size=self.max_batch_size,
            batch_delay_s=self.batch_delay_s,
        )
