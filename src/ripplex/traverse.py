"""Deep traversal — read everything reachable so a deep watcher sees it all."""

from __future__ import annotations

from ripplex.observable import ReactiveDict, ReactiveList


def traverse(value) -> None:
    """Recursively touch every nested key and element of value.

    Reads go through the tracked read operations, so the active watcher
    subscribes to every key, every key set and every list on the way down.
    """
    _traverse(value, set())


def _traverse(value, seen: set) -> None:
    is_list = isinstance(value, list)
    # Tuples, frozensets and other immutable values are never descended.
    if not (is_list or isinstance(value, dict)):
        return
    if isinstance(value, (ReactiveDict, ReactiveList)):
        if value._raw:
            return
        ob = value._ob
        # Observed containers are keyed by their structural Dep id; the
        # "d" prefix keeps them apart from the id() keys used otherwise.
        marker = ("d", ob.dep.id) if ob is not None else id(value)
    else:
        marker = id(value)
    if marker in seen:
        return
    seen.add(marker)
    if is_list:
        i = len(value)
        while i:
            i -= 1
            _traverse(value[i], seen)
    else:
        for key in list(value):
            _traverse(value[key], seen)
