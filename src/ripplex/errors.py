"""Exceptions raised by ripplex."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ripplex.watcher import Watcher


class InfiniteUpdateLoopError(RuntimeError):
    """A watcher kept re-queueing itself during one scheduler flush."""

    def __init__(self, watcher: Watcher) -> None:
        self.watcher = watcher
        if watcher.user:
            where = f'in watcher with expression "{watcher.expression}"'
        elif watcher.is_render:
            where = "in a render function"
        else:
            where = f"in watcher {watcher.id}"
        super().__init__(f"You may have an infinite update loop {where}.")
