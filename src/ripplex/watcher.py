"""Watcher — a unit of reactive computation.

A Watcher evaluates a getter with itself as the active target, so every
reactive read during that evaluation subscribes it. After each evaluation
it drops the Deps it no longer read. When a Dep fires, update() decides
what happens next:

- computed, nobody depends on it: mark dirty, recompute on next read
- computed, with dependents: recompute now, notify dependents if changed
- sync: re-run inline
- otherwise: queue on the scheduler for the next flush

Three flavors share this class. Render watchers drive a render function,
computed watchers cache a derived value, user watchers call back with
(new, old). Only user watchers have their errors contained; the others
propagate.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Callable

from ripplex import _anchor, config
from ripplex._tracking import current_target, pop_target, push_target
from ripplex._util import has_changed, is_object
from ripplex.dep import Dep
from ripplex.scheduler import scheduler
from ripplex.traverse import traverse

logger = logging.getLogger("ripplex.watcher")

_BAIL_RE = re.compile(r"[^\w.$]")


def parse_path(path: str) -> Callable[[Any], Any] | None:
    """Compile a dotted path like "user.address.city" into a getter.

    Mappings are read with .get(), lists with numeric segments, anything
    else with getattr(). A None along the way ends the walk with None.
    Returns None when the path contains anything besides word characters,
    dots and dollars.
    """
    if not path or _BAIL_RE.search(path):
        return None
    segments = path.split(".")

    def getter(obj):
        for segment in segments:
            if obj is None:
                return None
            obj = _lookup(obj, segment)
        return obj

    return getter


def _lookup(obj, segment: str):
    if isinstance(obj, Mapping):
        return obj.get(segment)
    if isinstance(obj, list):
        if segment.isdigit():
            index = int(segment)
            if index < len(obj):
                return obj[index]
        return None
    return getattr(obj, segment, None)


def _noop(*args) -> None:
    pass


class Watcher:
    """Evaluates an expression, records its dependencies, reacts to changes.

    owner is the computation context the watcher belongs to. Dotted-path
    expressions resolve against it, error reports name it, and if it keeps
    a _watchers list the watcher registers there.
    """

    def __init__(
        self,
        owner: Any,
        expr_or_fn: str | Callable[[], Any],
        callback: Callable[[Any, Any], Any] | None = None,
        *,
        deep: bool = False,
        user: bool = False,
        computed: bool = False,
        sync: bool = False,
        before: Callable[[], Any] | None = None,
        is_render: bool = False,
    ) -> None:
        self.owner = owner
        self.is_render = is_render
        if owner is not None:
            if is_render:
                owner._watcher = self
            watchers = getattr(owner, "_watchers", None)
            if watchers is not None:
                watchers.append(self)
        self.deep = deep
        self.user = user
        self.computed = computed
        self.sync = sync
        self.before = before
        self.callback = callback or _noop
        self.id = _anchor.new_watcher_id()
        self.active = True
        self.dirty = computed
        # Previous cycle's dependencies and the ones being collected now.
        self.deps: list[Dep] = []
        self.new_deps: list[Dep] = []
        self.dep_ids: set[int] = set()
        self.new_dep_ids: set[int] = set()
        if callable(expr_or_fn):
            self.expression = getattr(expr_or_fn, "__qualname__", None) or repr(expr_or_fn)
            self.getter = expr_or_fn
        else:
            self.expression = str(expr_or_fn)
            path_getter = parse_path(self.expression)
            if path_getter is None:
                self.getter = _noop
                config.warn(
                    f'Failed watching path: "{self.expression}". Watcher only accepts '
                    "simple dot-delimited paths. For full control, use a function instead.",
                    owner,
                )
            else:
                self.getter = lambda: path_getter(self.owner)
        if computed:
            self.value = None
            self.dep: Dep | None = Dep()
        else:
            self.dep = None
            self.value = self.get()

    def get(self) -> Any:
        """Evaluate the getter and re-collect dependencies."""
        token = push_target(self)
        value = None
        try:
            value = self.getter()
        except Exception as e:
            if not self.user:
                raise
            config.handle_error(e, self.owner, f'getter for watcher "{self.expression}"')
        finally:
            # Touch every nested key so they are all tracked for deep watching.
            if self.deep:
                traverse(value)
            pop_target(token)
            self.cleanup_deps()
        return value

    def add_dep(self, dep: Dep) -> None:
        if not self.active:
            return
        dep_id = dep.id
        if dep_id not in self.new_dep_ids:
            self.new_dep_ids.add(dep_id)
            self.new_deps.append(dep)
            if dep_id not in self.dep_ids:
                dep.add_sub(self)

    def cleanup_deps(self) -> None:
        """Unsubscribe from Deps not read this cycle, then swap the sets."""
        for dep in self.deps:
            if dep.id not in self.new_dep_ids:
                dep.remove_sub(self)
        self.dep_ids, self.new_dep_ids = self.new_dep_ids, self.dep_ids
        self.new_dep_ids.clear()
        self.deps, self.new_deps = self.new_deps, self.deps
        self.new_deps.clear()

    def update(self) -> None:
        """Subscriber interface. Called when a dependency changes."""
        if self.computed:
            if not self.dep.subs:
                # Lazy: nobody depends on us, recompute on next evaluate().
                self.dirty = True
            else:
                self.get_and_invoke(lambda value, old_value: self.dep.notify())
        elif self.sync:
            self.run()
        else:
            scheduler.queue_watcher(self)

    def run(self) -> None:
        """Scheduler job interface."""
        if self.active:
            self.get_and_invoke(self.callback)

    def get_and_invoke(self, callback: Callable[[Any, Any], Any]) -> None:
        value = self.get()
        # Objects and deep watchers fire even when identical: they may
        # have been mutated in place.
        if has_changed(value, self.value) or is_object(value) or self.deep:
            old_value = self.value
            self.value = value
            self.dirty = False
            if self.user:
                try:
                    callback(value, old_value)
                except Exception as e:
                    config.handle_error(
                        e, self.owner, f'callback for watcher "{self.expression}"'
                    )
            else:
                callback(value, old_value)

    def evaluate(self) -> Any:
        """Return the value, recomputing first if dirty. For computed watchers."""
        if self.dirty:
            self.value = self.get()
            self.dirty = False
        return self.value

    def depend(self) -> None:
        """Make the active watcher depend on this computed watcher."""
        if self.dep is not None and current_target() is not None:
            self.dep.depend()

    def teardown(self) -> None:
        """Remove self from every Dep's subscriber list. Idempotent."""
        if not self.active:
            return
        owner = self.owner
        if owner is not None and not getattr(owner, "_is_being_destroyed", False):
            watchers = getattr(owner, "_watchers", None)
            if watchers is not None and self in watchers:
                watchers.remove(self)
        # new_deps is non-empty when torn down from inside its own get().
        for dep in self.deps + self.new_deps:
            dep.remove_sub(self)
        self.active = False
        logger.debug("Torn down watcher %d (%s)", self.id, self.expression)

    def __repr__(self) -> str:
        if self.computed:
            kind = "computed"
        elif self.is_render:
            kind = "render"
        elif self.user:
            kind = "user"
        else:
            kind = "watcher"
        state = "active" if self.active else "torn down"
        return f"Watcher({self.id}, {kind}, {self.expression!r}, {state})"
