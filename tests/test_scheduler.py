"""Tests for the scheduler queue: batching, ordering, and loop protection."""

from watchfx import (
    Scope,
    Watcher,
    config,
    flush_ticks,
    next_tick,
    pending_count,
    queue_activated_scope,
    reactive,
    set_tick_handler,
)
from watchfx.tick import has_pending


class TestBatching:
    def test_example_scenario(self):
        """{a: 1}; W1 = a * 2. Same-value write: no flush. a = 5: one run."""
        state = reactive({"a": 1})
        calls = []
        Watcher(None, lambda: state.a * 2, lambda new, old: calls.append((new, old)))

        state.a = 1
        assert not has_pending()
        assert pending_count() == 0

        state.a = 5
        assert has_pending()
        flush_ticks()
        assert calls == [(10, 2)]

    def test_no_duplicate_runs(self):
        """N writes across M cells dirtying K watchers cause exactly K runs."""
        state = reactive({"a": 0, "b": 0, "c": 0})
        runs = {"x": 0, "y": 0}

        def make(name, getter):
            def counted():
                runs[name] += 1
                return getter()

            return Watcher(None, counted)

        make("x", lambda: state.a + state.b)
        make("y", lambda: state.b + state.c)
        runs.update(x=0, y=0)

        for i in range(1, 10):
            state.a = i
            state.b = i
            state.c = i
        assert pending_count() == 2
        flush_ticks()
        assert runs == {"x": 1, "y": 1}

    def test_no_missed_update(self):
        state = reactive({"a": 1})
        calls = []
        Watcher(None, lambda: state.a, lambda new, old: calls.append(new))
        state.a = 2
        flush_ticks()
        state.a = 3
        flush_ticks()
        assert calls == [2, 3]

    def test_single_wakeup_per_turn(self):
        armed = []
        set_tick_handler(armed.append)
        state = reactive({"a": 1, "b": 1})
        Watcher(None, lambda: state.a)
        Watcher(None, lambda: state.b)
        state.a = 2
        state.b = 2
        next_tick(lambda: None)
        assert len(armed) == 1


class TestOrdering:
    def test_parent_before_child(self):
        state = reactive({"a": 1})
        order = []
        Watcher(None, lambda: state.a, lambda new, old: order.append("parent"))
        Watcher(None, lambda: state.a, lambda new, old: order.append("child"))
        state.a = 2
        flush_ticks()
        assert order == ["parent", "child"]

    def test_sorted_by_creation_not_queue_order(self):
        state = reactive({"a": 1, "b": 1})
        order = []
        Watcher(None, lambda: state.a, lambda new, old: order.append("first"))
        Watcher(None, lambda: state.b, lambda new, old: order.append("second"))
        state.b = 2
        state.a = 2
        flush_ticks()
        assert order == ["first", "second"]

    def test_watcher_queued_mid_flush_runs_same_flush(self):
        state = reactive({"a": 1, "b": 1})
        order = []
        Watcher(
            None,
            lambda: state.a,
            lambda new, old: (order.append("a"), state.__setitem__("b", new)),
        )
        Watcher(None, lambda: state.b, lambda new, old: order.append("b"))
        state.a = 2
        flush_ticks()
        assert order == ["a", "b"]
        assert not has_pending()

    def test_earlier_watcher_requeued_runs_after_current(self):
        """A watcher already run is re-inserted after the scan pointer, not before."""
        state = reactive({"a": 1, "b": 1})
        order = []
        Watcher(None, lambda: state.a, lambda new, old: order.append(("first", new)))
        Watcher(
            None,
            lambda: state.b,
            lambda new, old: (order.append(("second", new)), state.__setitem__("a", 10)),
        )
        state.a = 2
        state.b = 2
        flush_ticks()
        assert order == [("first", 2), ("second", 2), ("first", 10)]

    def test_before_hook_runs_first(self):
        state = reactive({"a": 1})
        log = []
        Watcher(
            None,
            lambda: state.a,
            lambda new, old: log.append("run"),
            before=lambda: log.append("before"),
        )
        state.a = 2
        flush_ticks()
        assert log == ["before", "run"]


class TestCircularGuard:
    def test_mutual_watchers_terminate(self, warnings_seen):
        state = reactive({"x": 0, "y": 0})
        runs = []

        def a_changed(new, old):
            runs.append("a")
            state.y = new + 1

        def b_changed(new, old):
            runs.append("b")
            state.x = new + 1

        Watcher(None, lambda: state.x, a_changed, user=True, expression="x")
        Watcher(None, lambda: state.y, b_changed, user=True, expression="y")
        state.x = 1
        flush_ticks()

        assert len(runs) <= 2 * (config.max_update_count + 1)
        assert any("infinite update loop" in msg for msg in warnings_seen)
        assert pending_count() == 0

    def test_self_triggering_watcher(self, warnings_seen):
        config.max_update_count = 5
        state = reactive({"n": 0})
        runs = []

        def bump(new, old):
            runs.append(new)
            state.n = new + 1

        Watcher(None, lambda: state.n, bump, user=True, expression="n")
        state.n = 1
        flush_ticks()

        assert runs == [1, 2, 3, 4, 5, 6]
        assert warnings_seen == [
            'You may have an infinite update loop in watcher with expression "n"'
        ]

    def test_counts_reset_between_flushes(self, warnings_seen):
        config.max_update_count = 2
        state = reactive({"a": 0})
        Watcher(None, lambda: state.a)
        for i in range(1, 6):
            state.a = i
            flush_ticks()
        assert warnings_seen == []


class TestSynchronousMode:
    def test_flushes_immediately(self):
        config.async_mode = False
        state = reactive({"a": 1})
        calls = []
        Watcher(None, lambda: state.a, lambda new, old: calls.append(new))
        state.a = 2
        assert calls == [2]
        assert not has_pending()


class TestPostFlushHooks:
    def test_updated_hook_for_primary_watcher(self):
        scope = Scope()
        state = reactive({"a": 1})
        log = []
        scope.on("updated", lambda: log.append("updated"))
        Watcher(scope, lambda: state.a, primary=True)
        Watcher(scope, lambda: state.a)
        scope.is_mounted = True
        state.a = 2
        flush_ticks()
        assert log == ["updated"]

    def test_no_updated_hook_when_unmounted(self):
        scope = Scope()
        state = reactive({"a": 1})
        log = []
        scope.on("updated", lambda: log.append("updated"))
        Watcher(scope, lambda: state.a, primary=True)
        state.a = 2
        flush_ticks()
        assert log == []

    def test_updated_hooks_children_first(self):
        state = reactive({"a": 1})
        parent = Scope("parent")
        child = Scope("child", parent=parent)
        log = []
        for scope in (parent, child):
            scope.on("updated", lambda scope=scope: log.append(scope.name))
            Watcher(scope, lambda: state.a, primary=True)
            scope.is_mounted = True
        state.a = 2
        flush_ticks()
        assert log == ["child", "parent"]

    def test_activated_before_updated(self):
        state = reactive({"a": 1})
        scope = Scope()
        log = []
        scope.on("activated", lambda: log.append("activated"))
        scope.on("updated", lambda: log.append("updated"))
        Watcher(
            scope,
            lambda: state.a,
            lambda new, old: queue_activated_scope(scope),
            primary=True,
        )
        scope.is_mounted = True
        scope.inactive = True
        state.a = 2
        flush_ticks()
        assert log == ["activated", "updated"]
        assert not scope.inactive
