"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cached batch loader: a batch coalescer fronted by an external cache store.

The coalescer groups same-tick ``load`` calls into one ordered key list. The
wrapped batch function splits that list into cache hits and misses with one
batch read, calls the user batch function for the misses only, writes the
loaded values back with one batch write, and merges both positionally.

The cache store is the only result cache; the coalescer holds no results
across batches. Faults are never written to the store.

Known race: a ``prime`` landing between a batch's cache read and its
write-back can be overwritten by that write-back. Stores are not assumed to
support multi-key transactions, so this window is accepted.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable, Mapping
from typing import Any, TypeVar

from .coalescing import BatchCoalescer, BatchOptions
from .errors import BatchLoadContractError, CacheStoreError, LoaderInvariantError
from .settings import LoaderSettings
from .stores import CacheStore, create_cache_store
from .types import MISSING, BatchLoadFn, CacheKeyFn, default_cache_key, is_fault

logger = logging.getLogger("cachedloader.loader")

T = TypeVar("T")


async def _store_call(awaitable: Awaitable[T], action: str) -> T:
    """Await one store operation, wrapping failures in ``CacheStoreError``."""
    try:
        return await awaitable
    except CacheStoreError:
        raise
    except Exception as exc:
        raise CacheStoreError(f"Cache {action} failed: {exc}") from exc


class CachedBatchLoader:
    """
    Drop-in batch loader with a TTL cache in front of ``batch_load_fn``.

    Args:
        batch_load_fn: Async function mapping a list of keys to a list of
            values or exception instances of the same length and order.
        cache_key_fn: Pure function deriving the store key from a key.
            Structured keys need one; the default is ``str``.
        ttl_ms: Expiry for every written entry, in milliseconds. ``None``
            defers to the store's own policy.
        store: Backend id or an already-built ``CacheStore``.
        store_options: Keyword arguments for the store constructor.
        batch_options: ``BatchOptions`` or a mapping of its fields.

    ``prime``, ``clear``, ``clear_many`` and ``clear_all`` resolve to the
    loader once the store acknowledged the change, so awaited chains such
    as ``await (await loader.clear(k)).prime(k, v)`` are ordered.
    """

    def __init__(
        self,
        batch_load_fn: BatchLoadFn,
        *,
        cache_key_fn: CacheKeyFn = default_cache_key,
        ttl_ms: int | None = None,
        store: str | CacheStore | None = None,
        store_options: Mapping[str, Any] | None = None,
        batch_options: BatchOptions | Mapping[str, Any] | None = None,
    ) -> None:
        if not callable(batch_load_fn):
            raise TypeError("batch_load_fn must be callable")
        if ttl_ms is not None and ttl_ms <= 0:
            raise ValueError("ttl_ms must be > 0")
        self._batch_load_fn = batch_load_fn
        self._cache_key_fn = cache_key_fn
        self._ttl_ms = ttl_ms
        self._store = create_cache_store(store, **dict(store_options or {}))
        self._coalescer = BatchCoalescer(
            self._resolve_batch,
            cache_key_fn=cache_key_fn,
            options=batch_options,
        )

    @classmethod
    def from_settings(
        cls,
        batch_load_fn: BatchLoadFn,
        settings: LoaderSettings | None = None,
        *,
        cache_key_fn: CacheKeyFn = default_cache_key,
        redis_client: Any | None = None,
    ) -> CachedBatchLoader:
        """Build a loader from ``LoaderSettings`` (environment by default)."""
        settings = settings or LoaderSettings.from_env()
        store_options: dict[str, Any] = {}
        if settings.store_backend == "redis":
            store_options["namespace"] = settings.namespace
            if redis_client is not None:
                store_options["redis_client"] = redis_client
            elif settings.redis_url:
                store_options["redis_url"] = settings.redis_url
        return cls(
            batch_load_fn,
            cache_key_fn=cache_key_fn,
            ttl_ms=settings.ttl_ms,
            store=settings.store_backend,
            store_options=store_options,
            batch_options=settings.batch_options(),
        )

    def __repr__(self) -> str:
        name = getattr(self._batch_load_fn, "__name__", type(self._batch_load_fn).__name__)
        return (
            f"{type(self).__name__}(batch_load_fn={name}, "
            f"store={self._store.backend_id}, ttl_ms={self._ttl_ms})"
        )

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def cache_key_fn(self) -> CacheKeyFn:
        return self._cache_key_fn

    @property
    def ttl_ms(self) -> int | None:
        return self._ttl_ms

    def load(self, key: Any) -> asyncio.Future[Any]:
        """
        Return a future for one key's value.

        Calls made before the event loop yields share one batch. The future
        raises the key's fault, or the batch-wide error, on failure.
        """
        return self._coalescer.load(key)

    async def load_many(self, keys: Iterable[Any]) -> list[Any]:
        """Load several keys; each failure is returned in place as an exception."""
        return await self._coalescer.load_many(keys)

    async def prime(self, key: Any, value: Any) -> CachedBatchLoader:
        """
        Seed a result for ``key`` without calling the batch function.

        A value is stored only when the store holds nothing for the key;
        force an update with ``clear`` first. An exception instance deletes
        any stored value and replaces any primed result.

        The primed result reaches the coalescer only for loads issued before
        the event loop's next iteration; later loads read the store.
        """
        cache_key = self._cache_key_fn(key)
        if is_fault(value):
            await _store_call(self._store.delete(cache_key), "delete")
            self._coalescer.clear(key).prime(key, value)
            return self
        if value is MISSING:
            raise LoaderInvariantError(f"Cannot prime {cache_key!r} with MISSING")

        existing = await _store_call(self._store.get(cache_key), "read")
        if existing is MISSING:
            await _store_call(
                self._store.set(cache_key, value, ttl_ms=self._ttl_ms), "write"
            )
            self._coalescer.prime(key, value)
        return self

    async def clear(self, key: Any) -> CachedBatchLoader:
        """Forget ``key`` in the coalescer and the store. Idempotent."""
        self._coalescer.clear(key)
        await _store_call(self._store.delete(self._cache_key_fn(key)), "delete")
        return self

    async def clear_many(self, keys: Iterable[Any]) -> CachedBatchLoader:
        """Batched ``clear`` using one store delete."""
        keys = list(keys)
        if not keys:
            return self
        for key in keys:
            self._coalescer.clear(key)
        cache_keys = [self._cache_key_fn(key) for key in keys]
        await _store_call(self._store.delete_many(cache_keys), "delete")
        return self

    async def clear_all(self) -> CachedBatchLoader:
        """Forget every primed result and every row the store namespace owns."""
        self._coalescer.clear_all()
        await _store_call(self._store.clear(), "clear")
        return self

    async def _resolve_batch(self, keys: list[Any]) -> list[Any]:
        """Resolve one coalesced batch through the cache, positionally."""
        if not keys:
            return []

        cache_keys = [self._cache_key_fn(key) for key in keys]
        cached = await _store_call(self._store.get_many(cache_keys), "read")
        if len(cached) != len(keys):
            raise LoaderInvariantError(
                f"Cache returned {len(cached)} rows for {len(keys)} keys"
            )

        missing = [index for index, value in enumerate(cached) if value is MISSING]
        logger.debug(
            "Batch of %d keys: %d cached, %d to load",
            len(keys),
            len(keys) - len(missing),
            len(missing),
        )
        if not missing:
            return list(cached)

        merged = list(cached)
        loaded = await self._load_uncached([keys[index] for index in missing])

        entries: list[tuple[str, Any]] = []
        written: list[int] = []
        for index, value in zip(missing, loaded):
            if value is MISSING:
                raise LoaderInvariantError(
                    f"Batch function returned MISSING for {cache_keys[index]!r}"
                )
            merged[index] = value
            if not is_fault(value):
                entries.append((cache_keys[index], value))
                written.append(index)

        if entries:
            try:
                await self._store.set_many(entries, ttl_ms=self._ttl_ms)
            except Exception as exc:
                logger.warning(
                    "Cache write-back failed for %d keys: %s", len(entries), exc
                )
                error = CacheStoreError(f"Cache write failed: {exc}")
                error.__cause__ = exc
                for index in written:
                    merged[index] = error

        unfilled = [index for index, value in enumerate(merged) if value is MISSING]
        if unfilled:
            raise LoaderInvariantError(f"Batch positions left unfilled: {unfilled}")
        return merged

    async def _load_uncached(self, keys: list[Any]) -> list[Any]:
        """
        Call the user batch function once for the cache misses.

        A failed call, or a result breaking the same-length-list contract,
        becomes the same fault at every miss position.
        """
        try:
            loaded = await self._batch_load_fn(keys)
        except Exception as error:
            logger.debug("Batch function failed for %d keys: %s", len(keys), error)
            return [error] * len(keys)

        if not isinstance(loaded, (list, tuple)):
            error = BatchLoadContractError(
                f"Batch function must return a list, got {type(loaded).__name__}"
            )
            return [error] * len(keys)
        if len(loaded) != len(keys):
            error = BatchLoadContractError(
                "Batch function must return a list of the same length as its "
                f"keys: expected {len(keys)}, got {len(loaded)}"
            )
            return [error] * len(keys)
        return list(loaded)
