"""Tests for ripplex.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from ripplex import Watcher, flush, reactive
from ripplex import textual as rtx


class _MockApp:
    """Minimal mock matching the Textual App interface rtx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_later_log = []
        self._call_from_thread_log = []

    def call_later(self, fn, *args):
        # Textual refuses messages while the app is not running.
        if not self.is_running:
            return False
        self._call_later_log.append((fn, args))
        return True

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)

    def run_pending(self):
        pending, self._call_later_log = self._call_later_log, []
        for fn, args in pending:
            fn(*args)


class TestBind:
    def test_flushes_on_call_later(self):
        app = _MockApp()
        rtx.bind(app)
        state = reactive({"n": 1})
        effects = []
        Watcher(None, lambda: state["n"], lambda new, old: effects.append(new))
        state["n"] = 2
        state["n"] = 3
        assert effects == []
        assert len(app._call_later_log) == 1
        app.run_pending()
        assert effects == [3]

    def test_thread_marshal(self):
        """Writes from a background thread flush via call_from_thread."""
        app = _MockApp()
        rtx.bind(app)
        state = reactive({"n": 1})
        effects = []
        Watcher(None, lambda: state["n"], lambda new, old: effects.append(new))

        def _bg():
            state["n"] = 2

        t = threading.Thread(target=_bg)
        t.start()
        t.join()

        assert effects == [2]
        assert len(app._call_from_thread_log) == 1
        assert app._call_later_log == []

    def test_unbind_restores_default(self):
        app = _MockApp()
        rtx.bind(app)
        rtx.unbind()
        state = reactive({"n": 1})
        effects = []
        Watcher(None, lambda: state["n"], lambda new, old: effects.append(new))
        state["n"] = 2
        assert app._call_later_log == []
        flush()
        assert effects == [2]

    def test_write_before_app_starts_is_retried(self):
        app = _MockApp(is_running=False)
        rtx.bind(app)
        state = reactive({"n": 1})
        effects = []
        Watcher(None, lambda: state["n"], lambda new, old: effects.append(new))
        state["n"] = 2
        assert app._call_later_log == []
        app.is_running = True
        state["n"] = 3
        assert len(app._call_later_log) == 1
        app.run_pending()
        assert effects == [3]


class TestWatch:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        state = reactive({"n": 1})
        effects = []
        rtx.watch(app, lambda: state["n"], lambda new, old: effects.append(new))
        state["n"] = 2
        flush()
        assert effects == []

    def test_skips_during_pause(self):
        app = _MockApp()
        state = reactive({"n": 1})
        effects = []
        rtx.watch(app, lambda: state["n"], lambda new, old: effects.append(new))
        with rtx.pause(app):
            state["n"] = 2
            flush()
        assert effects == []

    def test_keeps_tracking_through_pause(self):
        app = _MockApp()
        state = reactive({"n": 1})
        effects = []
        rtx.watch(app, lambda: state["n"], lambda new, old: effects.append((new, old)))
        with rtx.pause(app):
            state["n"] = 2
            flush()
        state["n"] = 3
        flush()
        assert effects == [(3, 2)]

    def test_fires_when_safe(self):
        app = _MockApp()
        state = reactive({"n": 1})
        effects = []
        rtx.watch(app, lambda: state["n"], lambda new, old: effects.append(new))
        state["n"] = 2
        flush()
        assert effects == [2]

    def test_immediate(self):
        app = _MockApp()
        state = reactive({"n": 1})
        effects = []
        rtx.watch(app, lambda: state["n"], lambda new, old: effects.append(new), immediate=True)
        assert effects == [1]

    def test_catches_nomatch(self, errors):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        state = reactive({"n": 1})

        def _raise_nomatch(new, old):
            raise NoMatches("StatusFooter")

        w = rtx.watch(app, lambda: state["n"], _raise_nomatch)
        state["n"] = 2
        flush()
        assert errors == []
        w.teardown()

    def test_reports_real_errors(self, errors):
        """Other exceptions go to the error hook like any user watcher."""
        app = _MockApp()
        state = reactive({"n": 1})

        def _raise_value_error(new, old):
            raise ValueError("boom")

        rtx.watch(app, lambda: state["n"], _raise_value_error)
        state["n"] = 2
        flush()
        [(err, owner, info)] = errors
        assert isinstance(err, ValueError)

    def test_teardown_stops(self):
        app = _MockApp()
        state = reactive({"n": 1})
        effects = []
        w = rtx.watch(app, lambda: state["n"], lambda new, old: effects.append(new))
        state["n"] = 2
        flush()
        assert effects == [2]
        w.teardown()
        state["n"] = 3
        flush()
        assert effects == [2]


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert rtx.is_safe(app)

        with pytest.raises(RuntimeError):
            with rtx.pause(app):
                assert not rtx.is_safe(app)
                raise RuntimeError("oops")

        # Restored despite exception
        assert rtx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        """Pause state lives in the module, not on the app."""
        app = _MockApp()
        attrs_before = set(vars(app))
        with rtx.pause(app):
            attrs_during = set(vars(app))
        attrs_after = set(vars(app))
        assert attrs_before == attrs_during, (
            f"pause() added attributes to app: {attrs_during - attrs_before}"
        )
        assert attrs_before == attrs_after

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with rtx.pause(app_a):
            assert not rtx.is_safe(app_a)
            assert rtx.is_safe(app_b)

    def test_pauses_nest(self):
        app = _MockApp()
        with rtx.pause(app):
            with rtx.pause(app):
                assert not rtx.is_safe(app)
            assert not rtx.is_safe(app)
        assert rtx.is_safe(app)

    def test_nested_pause_keeps_callbacks_muted(self):
        app = _MockApp()
        state = reactive({"n": 1})
        effects = []
        rtx.watch(app, lambda: state["n"], lambda new, old: effects.append(new))
        with rtx.pause(app):
            with rtx.pause(app):
                pass
            state["n"] = 2
            flush()
        assert effects == []
