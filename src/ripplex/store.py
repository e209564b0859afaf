"""Store — an owning context for reactive state and the watchers over it.

A Store observes its data as root state and owns every watcher created
through it. Dotted-path watch expressions resolve against the state, error
reports name the store, and destroy() tears everything down at once.

Root state has a fixed key set: adding or deleting keys at runtime warns
and does nothing. Declare every key up front; nested containers are free
to grow.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Iterator

from ripplex._tracking import untracked
from ripplex.action import action
from ripplex.computed import Computed
from ripplex.observer import delitem, get_observer, observe, reactive, setitem
from ripplex.reaction import autorun, watch
from ripplex.scheduler import scheduler
from ripplex.watcher import Watcher

logger = logging.getLogger("ripplex.store")


class Store(Mapping):
    """Root reactive state plus the watchers that belong to it."""

    def __init__(self, data: dict | None = None, *, name: str | None = None) -> None:
        self.name = name or type(self).__name__
        self._watchers: list[Watcher] = []
        self._watcher: Watcher | None = None
        self._is_being_destroyed = False
        self._is_destroyed = False
        with untracked():
            self.state = reactive({} if data is None else data)
        observe(self.state, as_root=True)

    # --- Mapping over the state (tracked) ---

    def __getitem__(self, key: str) -> Any:
        return self.state[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.state)

    def __len__(self) -> int:
        return len(self.state)

    def __setitem__(self, key: str, value: Any) -> None:
        self.state[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.state.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.state[key] = value

    @action
    def update(self, values: dict) -> None:
        """Write several keys; watchers run once, after the last write."""
        for key, value in values.items():
            self.set(key, value)

    # --- Structural mutation of nested state ---

    def set_in(self, target: Any, key: Any, value: Any) -> Any:
        return setitem(target, key, value)

    def delete_in(self, target: Any, key: Any) -> None:
        delitem(target, key)

    # --- Watchers owned by this store ---

    def watch(
        self,
        expr_or_fn: str | Callable[[], Any],
        callback: Callable[[Any, Any], Any],
        *,
        deep: bool = False,
        immediate: bool = False,
        sync: bool = False,
    ) -> Watcher:
        """User watcher. String expressions are dotted paths into the state."""
        return watch(
            expr_or_fn, callback, owner=self, deep=deep, immediate=immediate, sync=sync
        )

    def computed(self, fn: Callable[[], Any]) -> Computed:
        return Computed(fn, owner=self)

    def render(self, fn: Callable[[], Any], *, before: Callable[[], Any] | None = None) -> Watcher:
        """The store's render watcher. Replaces any previous one."""
        if self._watcher is not None:
            self._watcher.teardown()
        return autorun(fn, owner=self, before=before)

    def next_tick(self, callback: Callable[[], None] | None = None):
        return scheduler.next_tick(callback)

    def destroy(self) -> None:
        """Tear down every watcher and release the root state."""
        if self._is_being_destroyed:
            return
        self._is_being_destroyed = True
        if self._watcher is not None:
            self._watcher.teardown()
        for watcher in reversed(self._watchers):
            watcher.teardown()
        self._watchers.clear()
        ob = get_observer(self.state)
        if ob is not None:
            ob.vm_count -= 1
        self._is_destroyed = True
        logger.debug("Destroyed store %s", self.name)

    def __repr__(self) -> str:
        state = "destroyed" if self._is_destroyed else f"{len(self._watchers)} watchers"
        return f"Store({self.name}, {state})"
