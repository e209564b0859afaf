"""Actions and transactions — scopes that end in a synchronous flush.

Outside any scope, a write queues its watchers and the flush waits for the
next tick. Inside a transaction() or an @action, the queue still fills up
the same way, but leaving the outermost scope drains it on the spot,
together with any next_tick callbacks. Scopes nest; inner exits only
lower the depth. Code without an event loop uses these to drive updates.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import Callable, Iterator, ParamSpec, TypeVar

from ripplex.scheduler import scheduler

P = ParamSpec("P")
R = TypeVar("R")


@contextmanager
def transaction() -> Iterator[None]:
    """Hold every flush until the block exits, then flush once.

    The flush also runs when the block raises.

        with transaction():
            state["first"] = "Grace"
            state["last"] = "Hopper"
        # a watcher over both keys has run once, seeing both names
    """
    scheduler.begin_batch()
    try:
        yield
    finally:
        scheduler.end_batch()


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Run each call of fn as a transaction.

        @action
        def rename(first, last):
            state["first"] = first
            state["last"] = last
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with transaction():
            return fn(*args, **kwargs)

    return wrapper
