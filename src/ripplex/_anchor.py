"""Identity anchor: monotonic id sources for Deps and Watchers.

Dep ids key the deep-traversal visited set. Watcher ids order the scheduler
queue, so creation order is flush order. Ids are never reused.
"""

import itertools

# itertools.count is thread-safe (C-level GIL atomic)
_dep_ids = itertools.count()
_watcher_ids = itertools.count(1)


def new_dep_id() -> int:
    return next(_dep_ids)


def new_watcher_id() -> int:
    return next(_watcher_ids)
