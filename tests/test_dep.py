"""Tests for Dep and the evaluation context."""

from ripplex import Dep, untracked
from ripplex._tracking import current_target, pop_target, push_target


class _Recorder:
    """Minimal subscriber: collects deps like a Watcher, logs updates."""

    def __init__(self, name, log):
        self.name = name
        self.log = log

    def add_dep(self, dep):
        dep.add_sub(self)

    def update(self):
        self.log.append(self.name)


class TestDep:
    def test_ids_increase(self):
        a = Dep()
        b = Dep()
        assert b.id > a.id

    def test_add_sub_is_idempotent(self):
        dep = Dep()
        sub = _Recorder("a", [])
        dep.add_sub(sub)
        dep.add_sub(sub)
        assert dep.subs == [sub]

    def test_remove_sub_is_idempotent(self):
        dep = Dep()
        sub = _Recorder("a", [])
        dep.add_sub(sub)
        dep.remove_sub(sub)
        dep.remove_sub(sub)
        assert dep.subs == []

    def test_notify_in_subscription_order(self):
        log = []
        dep = Dep()
        for name in ("c", "a", "b"):
            dep.add_sub(_Recorder(name, log))
        dep.notify()
        assert log == ["c", "a", "b"]

    def test_unsubscribe_during_notify_is_safe(self):
        log = []
        dep = Dep()
        first = _Recorder("first", log)
        second = _Recorder("second", log)
        first.update = lambda: (log.append("first"), dep.remove_sub(second))
        dep.add_sub(first)
        dep.add_sub(second)
        dep.notify()
        # Snapshot semantics: second was a subscriber when notify started.
        assert log == ["first", "second"]
        assert dep.subs == [first]

    def test_depend_without_target_is_noop(self):
        dep = Dep()
        dep.depend()
        assert dep.subs == []

    def test_depend_registers_active_target(self):
        dep = Dep()
        sub = _Recorder("a", [])
        token = push_target(sub)
        try:
            dep.depend()
        finally:
            pop_target(token)
        assert dep.subs == [sub]


class TestEvaluationContext:
    def test_nested_targets_restore_caller(self):
        outer = _Recorder("outer", [])
        inner = _Recorder("inner", [])
        outer_token = push_target(outer)
        inner_token = push_target(inner)
        assert current_target() is inner
        pop_target(inner_token)
        assert current_target() is outer
        pop_target(outer_token)
        assert current_target() is None

    def test_untracked_suspends_collection(self):
        dep = Dep()
        sub = _Recorder("a", [])
        token = push_target(sub)
        try:
            with untracked():
                assert current_target() is None
                dep.depend()
            assert current_target() is sub
        finally:
            pop_target(token)
        assert dep.subs == []
