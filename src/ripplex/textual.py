"""Textual integration for ripplex. Opt-in — requires textual.

bind(app) makes the app's message loop the scheduler's tick source: a
burst of mutations is flushed once, via app.call_later, after the current
message is handled. Mutations made from a worker thread are marshaled
with app.call_from_thread.

watch() is a user watcher whose callback skips while the app is paused or
not running and tolerates widgets that are not mounted yet.
"""

import threading
from collections import Counter
from contextlib import contextmanager

from textual.css.query import NoMatches

from ripplex.reaction import watch as _watch
from ripplex.scheduler import scheduler

# Open pause() scopes per id(app). Kept here so apps carry no extra state.
_pause_depth: Counter = Counter()


def bind(app) -> None:
    """Flush reactive updates on app's message loop."""
    main = threading.get_ident()

    def _tick(callback):
        if threading.get_ident() != main:
            # Blocks until the UI thread has run the flush.
            app.call_from_thread(callback)
            return True
        # False when the app is not running; the scheduler retries later.
        return app.call_later(callback)

    scheduler.set_tick(_tick)


def unbind() -> None:
    """Restore the default asyncio tick source."""
    scheduler.set_tick(None)


@contextmanager
def pause(app):
    """Mute guarded callbacks on app while widgets are being swapped.

    Watchers keep flushing and tracking during the pause; only the
    callbacks passed to watch() are skipped. Pauses nest.
    """
    key = id(app)
    _pause_depth[key] += 1
    try:
        yield
    finally:
        _pause_depth[key] -= 1
        if not _pause_depth[key]:
            del _pause_depth[key]


def is_safe(app) -> bool:
    """True when app is running and no pause() is open on it."""
    return bool(app.is_running) and not _pause_depth[id(app)]


def watch(app, expr_or_fn, callback, *, owner=None, deep=False, immediate=False):
    """watch() that safely bridges to Textual widgets.

    The watched expression is always tracked; only the callback is skipped
    while unsafe, so no dependency is lost during a pause.
    """

    def _guarded(value, old_value):
        if not is_safe(app):
            return
        try:
            callback(value, old_value)
        except NoMatches:
            pass

    return _watch(expr_or_fn, _guarded, owner=owner, deep=deep, immediate=immediate)
