"""Scheduler — batches watcher re-runs into one flush per tick.

Mutations made in one synchronous burst queue their watchers here instead
of re-running them inline. The first enqueue of a burst asks the tick
source for a callback; when it comes, the queue is flushed in ascending
watcher id order. Creation order is dependency order: a computed is
created before the render that reads it, a parent before its children.

Tick source: by default the running asyncio loop (loop.call_soon). With
no loop running, queued work waits for flush() or the end of an
action/transaction. set_tick() plugs in another source, e.g. a UI
toolkit's call-later.
"""

from __future__ import annotations

import asyncio
import logging
from operator import attrgetter
from typing import TYPE_CHECKING, Callable

from ripplex import config
from ripplex.errors import InfiniteUpdateLoopError

if TYPE_CHECKING:
    from ripplex.watcher import Watcher

logger = logging.getLogger("ripplex.scheduler")

# A tick source schedules the callback and returns False if it could not.
Tick = Callable[[Callable[[], None]], "bool | None"]


def _asyncio_tick(callback: Callable[[], None]) -> bool:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No running event loop; deferring until flush()")
        return False
    loop.call_soon(callback)
    return True


class Scheduler:
    """Deduplicating, id-ordered watcher queue plus next-tick callbacks."""

    def __init__(self, tick: Tick | None = None) -> None:
        self._tick: Tick = tick or _asyncio_tick
        self._queue: list[Watcher] = []
        self._has: set[int] = set()
        self._circular: dict[int, int] = {}
        self._waiting = False
        self._flushing = False
        self._index = 0
        self._callbacks: list[Callable[[], None]] = []
        self._pending = False
        self._batch_depth = 0

    def set_tick(self, tick: Tick | None) -> None:
        """Install the tick source. None restores the asyncio default."""
        self._tick = tick or _asyncio_tick

    # --- Watcher queue ---

    def queue_watcher(self, watcher: Watcher) -> None:
        """Queue watcher for the next flush. Duplicates are ignored."""
        watcher_id = watcher.id
        if watcher_id in self._has:
            self._schedule()
            return
        self._has.add(watcher_id)
        if not self._flushing:
            self._queue.append(watcher)
        else:
            # Mid-flush: slot in by id, but never before the running watcher.
            i = len(self._queue) - 1
            while i > self._index and self._queue[i].id > watcher_id:
                i -= 1
            self._queue.insert(i + 1, watcher)
        if not self._waiting:
            self._waiting = True
            if not config.async_updates and not self._batch_depth:
                self.flush_queue()
                return
            self._request(self.flush_queue)
        else:
            # The flush may still be waiting for a tick source to accept it.
            self._schedule()

    def flush_queue(self) -> None:
        """Run every queued watcher in ascending id order."""
        self._flushing = True
        self._queue.sort(key=attrgetter("id"))
        logger.debug("Flushing %d watcher(s)", len(self._queue))
        try:
            # The queue may grow while it runs; len() is re-read each pass.
            self._index = 0
            while self._index < len(self._queue):
                watcher = self._queue[self._index]
                if watcher.active and watcher.before is not None:
                    watcher.before()
                watcher_id = watcher.id
                self._has.discard(watcher_id)
                watcher.run()
                if watcher_id in self._has:
                    count = self._circular.get(watcher_id, 0) + 1
                    self._circular[watcher_id] = count
                    if count > config.max_update_count:
                        raise InfiniteUpdateLoopError(watcher)
                self._index += 1
        finally:
            self._reset_queue()

    def _reset_queue(self) -> None:
        self._queue.clear()
        self._has.clear()
        self._circular.clear()
        self._index = 0
        self._waiting = self._flushing = False

    @property
    def pending_count(self) -> int:
        """Number of watchers waiting for the next flush."""
        return len(self._queue) - (self._index if self._flushing else 0)

    # --- Ticks ---

    def next_tick(self, callback: Callable[[], None] | None = None):
        """Run callback after the pending flush.

        Without a callback, returns an asyncio future that resolves then;
        this form needs a running event loop.

        Usage:
            state["count"] += 1
            await scheduler.next_tick()
            # watchers of "count" have run
        """
        future = None
        if callback is None:
            future = asyncio.get_running_loop().create_future()

            def callback() -> None:
                if not future.done():
                    future.set_result(None)

        user_callback = callback

        def _guarded() -> None:
            try:
                user_callback()
            except Exception as e:
                config.handle_error(e, None, "next_tick")

        self._request(_guarded)
        return future

    def _request(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)
        self._schedule()

    def _schedule(self) -> None:
        """Ask the tick source for a run of the pending callbacks, once."""
        if self._pending or not self._callbacks:
            return
        # Set first: a tick source may run the callback before returning.
        self._pending = True
        if self._tick(self._run_callbacks) is False:
            # Retried on the next request or enqueue.
            self._pending = False

    def _run_callbacks(self) -> None:
        self._pending = False
        callbacks, self._callbacks = self._callbacks, []
        for i, callback in enumerate(callbacks):
            try:
                callback()
            except BaseException:
                # Keep what has not run yet for the next tick.
                self._callbacks[:0] = callbacks[i + 1:]
                self._schedule()
                raise

    def flush(self) -> None:
        """Run everything pending now instead of waiting for the tick."""
        self._run_callbacks()

    # --- Batches ---

    def begin_batch(self) -> None:
        self._batch_depth += 1

    def end_batch(self) -> None:
        """Leave a batch; the outermost exit flushes synchronously."""
        self._batch_depth -= 1
        if self._batch_depth == 0:
            self.flush()

    def reset(self) -> None:
        """Drop all queued work and batches. Meant for tests."""
        self._reset_queue()
        self._callbacks.clear()
        self._pending = False
        self._batch_depth = 0
        self._tick = _asyncio_tick


scheduler = Scheduler()


def queue_watcher(watcher: Watcher) -> None:
    scheduler.queue_watcher(watcher)


def next_tick(callback: Callable[[], None] | None = None):
    return scheduler.next_tick(callback)


def flush() -> None:
    scheduler.flush()


def get_pending_count() -> int:
    """Number of watchers waiting to run. Useful for testing."""
    return scheduler.pending_count


def set_tick(tick: Tick | None) -> None:
    scheduler.set_tick(tick)
