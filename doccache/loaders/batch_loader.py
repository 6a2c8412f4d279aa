"""Tick-scoped request coalescing on top of asyncio.

A :class:`BatchLoader` collects every ``load(key)`` issued before the event
loop regains control and hands the de-duplicated keys to one call of its
batch function.  The first ``load`` of a batch schedules the dispatch with
``loop.call_soon``; coroutines that were already scheduled (for example the
siblings passed to the same ``asyncio.gather``) run before that callback,
so their loads land in the same batch.  Loads issued after the dispatch
start a new batch.

The batch function receives the keys in first-request order and must return
one result per key in the same order.  A result that is an exception
instance fails only that key; an exception raised by the batch function
fails every key in the batch.

With ``collect_variants=True`` each batch entry is instead the list of every
distinct raw key that mapped to the same identity during the tick (for
example an object-id and its hex string), so the batch function can ask the
store for all of them.

Pending futures are kept in a per-instance map so repeated loads of one key
share a single result.  Each caller awaits a shielded view of that shared
future: cancelling one caller never cancels the others.  By default a key
leaves the map as soon as its batch completes, so the next tick fetches
fresh data.  With ``cache=True`` resolved futures are kept until
:meth:`clear` is called.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable, Iterable, Sequence
from typing import Any, Generic, TypeVar

import structlog

from doccache.utils.errors import BatchLoadError
from doccache.utils.logging import get_logger

_K = TypeVar("_K")
_V = TypeVar("_V")

BatchFn = Callable[[list[Any]], Awaitable[Sequence[Any]]]


def _identity(key: Any) -> Hashable:
    return key


def _same_form(left: Any, right: Any) -> bool:
    return type(left) is type(right) and left == right


class _Pending:
    __slots__ = ("forms", "identity", "future")

    def __init__(self, key: Any, identity: Hashable, future: asyncio.Future) -> None:
        self.forms = [key]
        self.identity = identity
        self.future = future

    def add_form(self, key: Any) -> None:
        if not any(_same_form(key, form) for form in self.forms):
            self.forms.append(key)


class BatchLoader(Generic[_K, _V]):
    """Coalesces concurrent single-key loads into batched calls.

    Parameters
    ----------
    batch_fn:
        Async callable taking a list of unique keys and returning a
        same-length sequence of values (or exception instances).
    key_fn:
        Maps a requested key to the hashable identity used for
        de-duplication, e.g. a normalized id or a canonical query string.
    cache:
        Keep resolved results across ticks until explicitly cleared.
    max_batch_size:
        Split a tick's keys into several batch calls of at most this size.
    collect_variants:
        Pass ``batch_fn`` the list of distinct raw keys per identity
        instead of only the first one.
    name:
        Label used in log events.
    """

    def __init__(
        self,
        batch_fn: BatchFn,
        key_fn: Callable[[_K], Hashable] = _identity,
        cache: bool = False,
        max_batch_size: int | None = None,
        collect_variants: bool = False,
        name: str = "loader",
    ) -> None:
        if max_batch_size is not None and max_batch_size < 1:
            raise ValueError("max_batch_size must be a positive integer")
        self._batch_fn = batch_fn
        self._key_fn = key_fn
        self._cache = cache
        self._max_batch_size = max_batch_size
        self._collect_variants = collect_variants
        self._name = name
        self._futures: dict[Hashable, asyncio.Future] = {}
        self._queue: list[_Pending] = []
        self._queued: dict[Hashable, _Pending] = {}
        self._dispatch_scheduled = False
        self._tasks: set[asyncio.Task] = set()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, key: _K) -> asyncio.Future:
        """Return a future resolving to the value for *key*.

        Must be called from inside a running event loop.
        """
        identity = self._key_fn(key)
        existing = self._futures.get(identity)
        if existing is not None:
            pending = self._queued.get(identity)
            if pending is not None and pending.future is existing:
                pending.add_form(key)
            return asyncio.shield(existing)

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._futures[identity] = future
        pending = _Pending(key, identity, future)
        self._queue.append(pending)
        self._queued[identity] = pending
        if not self._dispatch_scheduled:
            self._dispatch_scheduled = True
            loop.call_soon(self._dispatch)
        return asyncio.shield(future)

    async def load_many(self, keys: Iterable[_K]) -> list[_V]:
        """Load several keys; the result matches the input length and order."""
        return list(await asyncio.gather(*(self.load(key) for key in keys)))

    def clear(self, key: _K) -> BatchLoader[_K, _V]:
        """Forget *key* so the next load fetches it again.

        Callers already awaiting an in-flight future still receive its
        result; only later loads are affected.
        """
        identity = self._key_fn(key)
        self._futures.pop(identity, None)
        self._queued.pop(identity, None)
        return self

    def clear_all(self) -> BatchLoader[_K, _V]:
        self._futures.clear()
        self._queued.clear()
        return self

    def prime(self, key: _K, value: _V) -> BatchLoader[_K, _V]:
        """Seed a resolved value for *key* (only when ``cache=True``)."""
        if not self._cache:
            return self
        identity = self._key_fn(key)
        if identity not in self._futures:
            future = asyncio.get_running_loop().create_future()
            future.set_result(value)
            self._futures[identity] = future
        return self

    def __contains__(self, key: object) -> bool:
        return self._key_fn(key) in self._futures  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(self) -> None:
        self._dispatch_scheduled = False
        queue, self._queue = self._queue, []
        for pending in queue:
            if self._queued.get(pending.identity) is pending:
                del self._queued[pending.identity]
        if not queue:
            return

        size = self._max_batch_size or len(queue)
        for start in range(0, len(queue), size):
            task = asyncio.ensure_future(self._run_batch(queue[start:start + size]))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run_batch(self, batch: list[_Pending]) -> None:
        if self._collect_variants:
            keys = [list(pending.forms) for pending in batch]
        else:
            keys = [pending.forms[0] for pending in batch]
        self._logger.debug("batch_dispatched", loader=self._name, size=len(keys))
        try:
            results = list(await self._batch_fn(keys))
            if len(results) != len(keys):
                raise BatchLoadError(
                    f"{self._name} batch function returned {len(results)} results "
                    f"for {len(keys)} keys",
                    provider_name=self._name,
                )
        except Exception as exc:
            self._logger.warning(
                "batch_failed", loader=self._name, size=len(keys), error=str(exc)
            )
            for pending in batch:
                self._settle(pending, exc)
            return

        for pending, result in zip(batch, results):
            self._settle(pending, result)

    def _settle(self, pending: _Pending, result: Any) -> None:
        future = pending.future
        failed = isinstance(result, BaseException)
        if not future.done():
            if failed:
                future.set_exception(result)
            else:
                future.set_result(result)
        elif future.cancelled():
            failed = True
        # Only drop the entry if it still belongs to this batch; a clear()
        # followed by a new load may already have replaced it.
        if (failed or not self._cache) and self._futures.get(pending.identity) is future:
            del self._futures[pending.identity]
