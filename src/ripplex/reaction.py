"""Reactions — side effects triggered by reactive state changes.

Two flavors:
- watch(expr_or_fn, callback): user watcher; callback(new, old) fires after
  the next flush when the watched value changed. Errors are reported, not
  raised.
- autorun(fn): render watcher; runs fn now, re-runs it after the next flush
  whenever anything it read changed. Errors propagate.

Both return the Watcher; call .teardown() to stop.
"""

from __future__ import annotations

from typing import Any, Callable

from ripplex import config
from ripplex._tracking import untracked
from ripplex.watcher import Watcher


def watch(
    expr_or_fn: str | Callable[[], Any],
    callback: Callable[[Any, Any], Any],
    *,
    owner: Any = None,
    deep: bool = False,
    immediate: bool = False,
    sync: bool = False,
) -> Watcher:
    """Call callback(new, old) when the watched expression changes.

    Usage:
        state = reactive({"first": "Ada", "last": "Lovelace"})
        log = []

        w = watch(lambda: f"{state['first']} {state['last']}",
                  lambda new, old: log.append((old, new)))
        state["first"] = "Augusta"
        flush()
        # log == [("Ada Lovelace", "Augusta Lovelace")]
        w.teardown()
    """
    watcher = Watcher(owner, expr_or_fn, callback, deep=deep, user=True, sync=sync)
    if immediate:
        try:
            with untracked():
                callback(watcher.value, None)
        except Exception as e:
            config.handle_error(
                e, owner, f'callback for immediate watcher "{watcher.expression}"'
            )
    return watcher


def autorun(
    fn: Callable[[], Any],
    *,
    owner: Any = None,
    before: Callable[[], Any] | None = None,
) -> Watcher:
    """Run fn immediately, then again after each flush where its reads changed.

    before() runs right before each re-run from the scheduler.

    Usage:
        state = reactive({"count": 0})
        log = []

        w = autorun(lambda: log.append(state["count"]))
        # log == [0] — ran immediately

        state["count"] = 1
        flush()
        # log == [0, 1]
    """
    return Watcher(owner, fn, before=before, is_render=True)
