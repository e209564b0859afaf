"""Evaluation context — which Watcher is collecting dependencies right now.

Uses contextvars so every thread and asyncio task has its own stack. A
Watcher pushes itself before running its getter and pops on exit, which
restores the caller as the collection target (a computed evaluated inside a
render, for instance).
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from ripplex.watcher import Watcher

# The currently-evaluating watcher. When set, any reactive read registers it
# on the Dep being read.
_target: contextvars.ContextVar[Watcher | None] = contextvars.ContextVar(
    "ripplex_target", default=None
)


def current_target() -> Watcher | None:
    return _target.get()


def push_target(target: Watcher | None) -> contextvars.Token:
    """Make target the active collector. Returns the token for pop_target()."""
    return _target.set(target)


def pop_target(token: contextvars.Token) -> None:
    _target.reset(token)


@contextmanager
def untracked() -> Iterator[None]:
    """Run a block with dependency collection switched off.

    Usage:
        with untracked():
            snapshot = state["items"]  # read, but nobody subscribes
    """
    token = push_target(None)
    try:
        yield
    finally:
        pop_target(token)
