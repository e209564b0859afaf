"""Dep — the subject side of the dependency graph.

One Dep per reactive key, plus one structural Dep per observed container.
Watchers subscribe while they evaluate; a Dep only ever loses a subscriber
when that watcher drops the dependency or is torn down.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ripplex import _anchor
from ripplex._tracking import current_target

if TYPE_CHECKING:
    from ripplex.watcher import Watcher


class Dep:
    """A set of subscribed Watchers, kept in subscription order."""

    __slots__ = ("id", "subs")

    def __init__(self) -> None:
        self.id = _anchor.new_dep_id()
        self.subs: list[Watcher] = []

    def add_sub(self, sub: Watcher) -> None:
        if sub not in self.subs:
            self.subs.append(sub)

    def remove_sub(self, sub: Watcher) -> None:
        try:
            self.subs.remove(sub)
        except ValueError:
            pass  # already removed

    def depend(self) -> None:
        """Subscribe the active watcher, if any. The watcher dedups per cycle."""
        target = current_target()
        if target is not None:
            target.add_dep(self)

    def notify(self) -> None:
        # Snapshot: subscribers may unsubscribe while updating.
        for sub in list(self.subs):
            sub.update()

    def __repr__(self) -> str:
        return f"Dep(id={self.id}, subs={len(self.subs)})"
