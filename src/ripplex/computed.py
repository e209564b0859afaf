"""Computed values — derived state with automatic dependency tracking.

A Computed wraps a function in a lazy computed Watcher. The value is cached
and only recomputed when read after one of its dependencies changed. While
some other watcher depends on it, it recomputes eagerly instead, and only
passes the change on when the result actually differs.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

from ripplex.watcher import Watcher

T = TypeVar("T")


class Computed(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_watcher",)

    def __init__(self, fn: Callable[[], T], owner: Any = None) -> None:
        self._watcher = Watcher(owner, fn, computed=True)

    @property
    def watcher(self) -> Watcher:
        return self._watcher

    def get(self) -> T:
        """Read the computed value. Recomputes if dirty."""
        watcher = self._watcher
        # Whoever is evaluating now depends on everything we depend on.
        watcher.depend()
        return watcher.evaluate()

    def teardown(self) -> None:
        """Disconnect from all dependencies. The value stays cached."""
        self._watcher.teardown()

    def __repr__(self) -> str:
        watcher = self._watcher
        state = "dirty" if watcher.dirty else f"cached={watcher.value!r}"
        return f"Computed({watcher.expression}, {state})"


def computed(fn: Callable[[], T]) -> Computed[T]:
    """Decorator/factory to create a Computed from a function.

    Usage:
        state = reactive({"count": 0})

        @computed
        def doubled():
            return state["count"] * 2

        doubled.get()  # 0
        state["count"] = 5
        doubled.get()  # 10
    """
    return Computed(fn)
