"""Tests for Store."""

from ripplex import Store, autorun, flush, get_observer, reactive


class TestStore:
    def test_creation_from_data(self):
        s = Store({"x": 10, "y": "hello"})
        assert s.get("x") == 10
        assert s["y"] == "hello"
        assert len(s) == 2
        assert set(s) == {"x", "y"}
        assert "x" in s

    def test_name_defaults_to_class_name(self):
        assert Store().name == "Store"
        assert Store(name="cart").name == "cart"

    def test_get_nonexistent(self):
        s = Store({"x": 1})
        assert s.get("nope") is None

    def test_set(self):
        s = Store({"x": 0})
        s.set("x", 42)
        assert s.get("x") == 42
        s["x"] = 43
        assert s["x"] == 43

    def test_set_nonexistent_warns_and_is_noop(self, warnings_log):
        s = Store({"x": 0})
        s.set("nope", 99)
        assert "nope" not in s
        assert len(warnings_log) == 1

    def test_nested_state_can_grow(self, warnings_log):
        s = Store({"todos": []})
        s["todos"].append({"done": False})
        s.set_in(s["todos"][0], "title", "write tests")
        assert s["todos"][0]["title"] == "write tests"
        s.delete_in(s["todos"][0], "title")
        assert "title" not in s["todos"][0]
        assert warnings_log == []

    def test_state_is_root(self):
        s = Store({"x": 1})
        assert get_observer(s.state).vm_count == 1

    def test_shares_reactive_data(self):
        data = reactive({"x": 1})
        a = Store(data)
        b = Store(data)
        assert a.state is b.state
        assert get_observer(data).vm_count == 2
        a.destroy()
        assert get_observer(data).vm_count == 1

    def test_update_batches(self):
        s = Store({"x": 0, "y": 0})
        log = []
        autorun(lambda: log.append((s.get("x"), s.get("y"))))
        assert log == [(0, 0)]
        s.update({"x": 1, "y": 2})
        assert log == [(0, 0), (1, 2)]  # single batch

    def test_reactive_tracking(self):
        s = Store({"count": 0})
        log = []
        autorun(lambda: log.append(s.get("count")))
        assert log == [0]
        s.set("count", 1)
        flush()
        assert log == [0, 1]


class TestStoreWatchers:
    def test_watch_path(self):
        s = Store({"user": {"name": "ada"}})
        log = []
        s.watch("user.name", lambda new, old: log.append((new, old)))
        s["user"]["name"] = "grace"
        flush()
        assert log == [("grace", "ada")]

    def test_watch_function(self):
        s = Store({"count": 0})
        log = []
        s.watch(lambda: s["count"] * 2, lambda new, old: log.append(new), immediate=True)
        s["count"] = 2
        flush()
        assert log == [0, 4]

    def test_watchers_are_owned(self):
        s = Store({"x": 0})
        w = s.watch("x", lambda new, old: None)
        c = s.computed(lambda: s["x"])
        assert s._watchers == [w, c.watcher]

    def test_errors_name_the_store(self, errors):
        s = Store({"x": 0}, name="cart")

        def boom(new, old):
            raise ValueError("bad")

        s.watch("x", boom)
        s["x"] = 1
        flush()
        [(err, owner, info)] = errors
        assert owner is s

    def test_computed(self):
        s = Store({"price": 2, "qty": 3})
        total = s.computed(lambda: s["price"] * s["qty"])
        assert total.get() == 6
        s["qty"] = 4
        assert total.get() == 8

    def test_render_replaces_previous(self):
        s = Store({"x": 0})
        first, second = [], []
        s.render(lambda: first.append(s["x"]))
        w = s.render(lambda: second.append(s["x"]))
        assert s._watcher is w
        s["x"] = 1
        flush()
        assert first == [0]
        assert second == [0, 1]

    def test_render_before_hook(self):
        s = Store({"x": 0})
        log = []
        s.render(lambda: log.append(s["x"]), before=lambda: log.append("before"))
        s["x"] = 1
        flush()
        assert log == [0, "before", 1]

    def test_next_tick_runs_after_flush(self):
        s = Store({"x": 0})
        log = []
        s.render(lambda: log.append(s["x"]))
        s["x"] = 1
        s.next_tick(lambda: log.append("tick"))
        flush()
        assert log == [0, 1, "tick"]

    def test_destroy(self):
        s = Store({"x": 0})
        log = []
        s.watch("x", lambda new, old: log.append(new))
        s.render(lambda: log.append(("render", s["x"])))
        s["x"] = 1
        flush()
        assert log == [("render", 0), 1, ("render", 1)]

        s.destroy()
        s.destroy()  # idempotent
        s["x"] = 2
        flush()
        assert log == [("render", 0), 1, ("render", 1)]
        assert s._watchers == []
        assert repr(s) == "Store(Store, destroyed)"

    def test_repr(self):
        s = Store({"x": 0}, name="cart")
        s.watch("x", lambda new, old: None)
        assert repr(s) == "Store(cart, 1 watchers)"
