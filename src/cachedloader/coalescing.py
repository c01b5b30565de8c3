"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: coalescing.py.

Groups per-key load requests issued in the same event-loop iteration into
one ordered batch call. The coalescer keeps no result cache across batches.
Primed results are one-shot: the next ``load`` of their key consumes them,
and any left unconsumed are dropped on the next event-loop iteration.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from more_itertools import chunked

from .errors import BatchLoadContractError
from .types import BatchLoadFn, CacheKeyFn, default_cache_key, is_fault

logger = logging.getLogger("cachedloader.coalescing")


@dataclass(frozen=True, slots=True)
class BatchOptions:
    """
    Batching knobs for one coalescer.

    Attributes:
        max_batch_size: Largest number of keys passed to one batch call;
            ``None`` means unbounded.
        batch_delay_s: Extra wait before dispatching a batch. ``0`` dispatches
            on the next event-loop iteration.
    """

    max_batch_size: int | None = None
    batch_delay_s: float = 0.0

    def __post_init__(self) -> None:
        if self.max_batch_size is not None and self.max_batch_size < 1:
            raise ValueError("max_batch_size must be >= 1")
        if self.batch_delay_s < 0:
            raise ValueError("batch_delay_s must be >= 0")

    @classmethod
    def coerce(cls, value: BatchOptions | Mapping[str, Any] | None) -> BatchOptions:
        """Accept an instance, a mapping of fields, or ``None``."""
        if value is None:
            return cls()
        if isinstance(value, BatchOptions):
            return value
        return cls(**dict(value))


@dataclass(slots=True)
class _PendingSlot:
    """One distinct key waiting for dispatch with every caller future."""

    key: Any
    futures: list[asyncio.Future[Any]] = field(default_factory=list)


def _settle(future: asyncio.Future[Any], result: Any) -> None:
    if future.done():
        return
    if is_fault(result):
        future.set_exception(result)
    else:
        future.set_result(result)


class BatchCoalescer:
    """Coalesce same-tick ``load`` calls into ordered batch calls."""

    def __init__(
        self,
        batch_load_fn: BatchLoadFn,
        *,
        cache_key_fn: CacheKeyFn = default_cache_key,
        options: BatchOptions | Mapping[str, Any] | None = None,
    ) -> None:
        if not callable(batch_load_fn):
            raise TypeError("batch_load_fn must be callable")
        self._batch_load_fn = batch_load_fn
        self._cache_key_fn = cache_key_fn
        self._options = BatchOptions.coerce(options)
        self._pending: dict[str, _PendingSlot] = {}
        self._primed: dict[str, Any] = {}
        self._primed_handle: asyncio.Handle | None = None
        self._dispatch_handle: asyncio.Handle | asyncio.TimerHandle | None = None
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def options(self) -> BatchOptions:
        return self._options

    def load(self, key: Any) -> asyncio.Future[Any]:
        """
        Queue one key and return a future for its result.

        Must be called with a running event loop. Loads of the same cache key
        within one tick share a single batch slot.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        cache_key = self._cache_key_fn(key)

        if cache_key in self._primed:
            _settle(future, self._primed.pop(cache_key))
            return future

        slot = self._pending.get(cache_key)
        if slot is None:
            slot = _PendingSlot(key=key)
            self._pending[cache_key] = slot
        slot.futures.append(future)

        if self._dispatch_handle is None:
            if self._options.batch_delay_s > 0:
                self._dispatch_handle = loop.call_later(
                    self._options.batch_delay_s, self._dispatch
                )
            else:
                self._dispatch_handle = loop.call_soon(self._dispatch)
        return future

    async def load_many(self, keys: Iterable[Any]) -> list[Any]:
        """Load several keys; failures are returned in place, never raised."""
        keys = list(keys)
        if not keys:
            return []
        futures = [self.load(key) for key in keys]
        return list(await asyncio.gather(*futures, return_exceptions=True))

    def prime(self, key: Any, value: Any) -> BatchCoalescer:
        """
        Register a one-shot result for ``key`` unless one is registered.

        Must be called with a running event loop. The result is only visible
        to loads issued before the loop's next iteration.
        """
        loop = asyncio.get_running_loop()
        self._primed.setdefault(self._cache_key_fn(key), value)
        if self._primed_handle is None:
            self._primed_handle = loop.call_soon(self._drop_primed)
        return self

    def clear(self, key: Any) -> BatchCoalescer:
        self._primed.pop(self._cache_key_fn(key), None)
        return self

    def clear_all(self) -> BatchCoalescer:
        self._primed.clear()
        return self

    def _drop_primed(self) -> None:
        """Forget primed results not consumed within their tick."""
        self._primed_handle = None
        if self._primed:
            logger.debug("Dropping %d unconsumed primed results", len(self._primed))
            self._primed.clear()

    def _dispatch(self) -> None:
        """Swap out the pending queue and start one task per chunk."""
        self._dispatch_handle = None
        pending, self._pending = self._pending, {}
        if not pending:
            return

        slots = list(pending.values())
        loop = asyncio.get_running_loop()
        for chunk in chunked(slots, self._options.max_batch_size):
            task = loop.create_task(self._run_batch(chunk))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def _run_batch(self, slots: list[_PendingSlot]) -> None:
        keys = [slot.key for slot in slots]
        logger.debug("Dispatching batch of %d keys", len(keys))
        try:
            results = await self._batch_load_fn(keys)
        except asyncio.CancelledError:
            for slot in slots:
                for future in slot.futures:
                    future.cancel()
            raise
        except Exception as error:
            self._fail(slots, error)
            return

        if not isinstance(results, (list, tuple)):
            self._fail(
                slots,
                BatchLoadContractError(
                    "Batch function must return a list, got "
                    f"{type(results).__name__}"
                ),
            )
            return
        if len(results) != len(keys):
            self._fail(
                slots,
                BatchLoadContractError(
                    "Batch function must return a list of the same length as "
                    f"its keys: expected {len(keys)}, got {len(results)}"
                ),
            )
            return

        for slot, result in zip(slots, results):
            for future in slot.futures:
                _settle(future, result)

    @staticmethod
    def _fail(slots: list[_PendingSlot], error: Exception) -> None:
        for slot in slots:
            for future in slot.futures:
                if not future.done():
                    future.set_exception(error)
