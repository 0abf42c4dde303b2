"""Tests for Watcher: dependency collection, updates, and teardown."""

import pytest

from watchfx import Scope, Watcher, flush_ticks, reactive
from watchfx._tracking import stack_depth


class TestDependencyCollection:
    def test_evaluates_on_construction(self):
        state = reactive({"a": 2})
        w = Watcher(None, lambda: state.a * 2)
        assert w.value == 4
        assert len(w.deps) == 1

    def test_same_dep_read_twice_subscribes_once(self):
        state = reactive({"a": 1})
        w = Watcher(None, lambda: state.a + state.a + state["a"])
        cell = state.cell("a")
        assert cell.dep.subs.count(w) == 1
        assert w.dep_ids == {cell.dep.id}

    def test_subscription_invariant_after_reevaluation(self):
        state = reactive({"a": 1, "b": 2})
        w = Watcher(None, lambda: state.a + state.b)
        for dep in w.deps:
            assert w in dep.subs
        w.run()
        assert [dep.subs.count(w) for dep in w.deps] == [1, 1]

    def test_stale_dependency_pruned(self):
        state = reactive({"flag": True, "a": 1, "b": 2})
        runs = []

        def getter():
            runs.append(1)
            return state.a if state.flag else state.b

        w = Watcher(None, getter, sync=True)
        state.flag = False
        assert w.value == 2
        assert w not in state.cell("a").dep.subs
        count = len(runs)
        state.a = 100
        assert len(runs) == count
        state.b = 3
        assert w.value == 3

    def test_deep_tracks_nested(self):
        state = reactive({"user": {"address": {"city": "Paris"}}})
        calls = []
        Watcher(
            None,
            lambda: state.user,
            lambda new, old: calls.append(new),
            deep=True,
            sync=True,
        )
        state.user.address.city = "Rome"
        assert len(calls) == 1

    def test_shallow_does_not_track_nested(self):
        state = reactive({"user": {"address": {"city": "Paris"}}})
        calls = []
        Watcher(None, lambda: state.user, lambda new, old: calls.append(new), sync=True)
        state.user.address.city = "Rome"
        assert calls == []


class TestUpdate:
    def test_lazy_only_marks_dirty(self):
        state = reactive({"a": 1})
        runs = []
        w = Watcher(None, lambda: runs.append(state.a) or state.a, lazy=True)
        assert runs == []
        assert w.dirty
        w.evaluate()
        assert not w.dirty
        state.a = 2
        assert w.dirty
        assert runs == [1]

    def test_sync_runs_immediately(self):
        state = reactive({"a": 1})
        calls = []
        Watcher(None, lambda: state.a, lambda new, old: calls.append((new, old)), sync=True)
        state.a = 2
        assert calls == [(2, 1)]

    def test_default_waits_for_flush(self):
        state = reactive({"a": 1})
        calls = []
        Watcher(None, lambda: state.a, lambda new, old: calls.append((new, old)))
        state.a = 2
        assert calls == []
        flush_ticks()
        assert calls == [(2, 1)]

    def test_callback_skipped_when_value_unchanged(self):
        state = reactive({"a": 1})
        calls = []
        Watcher(None, lambda: state.a % 2, lambda new, old: calls.append(new), sync=True)
        state.a = 3
        assert calls == []
        state.a = 4
        assert calls == [0]

    def test_container_value_always_calls_back(self):
        state = reactive({"items": [1]})
        calls = []
        Watcher(None, lambda: state["items"], lambda new, old: calls.append(new), sync=True)
        state["items"].append(2)
        assert len(calls) == 1
        assert calls[0] is state["items"]


class TestErrors:
    def test_internal_getter_error_raises(self):
        with pytest.raises(ZeroDivisionError):
            Watcher(None, lambda: 1 / 0)

    def test_stack_unwound_after_error(self):
        with pytest.raises(ZeroDivisionError):
            Watcher(None, lambda: 1 / 0)
        assert stack_depth() == 0

    def test_deps_reconciled_after_error(self):
        state = reactive({"a": 1, "fail": False})

        def getter():
            if state.fail:
                raise RuntimeError("boom")
            return state.a

        w = Watcher(None, getter, user=True)
        state.fail = True
        w.run()
        assert w not in state.cell("a").dep.subs

    def test_user_getter_error_routed(self, errors_seen):
        scope = Scope("Widget")
        Watcher(scope, lambda: 1 / 0, user=True, expression="broken")
        assert len(errors_seen) == 1
        err, owner, info = errors_seen[0]
        assert isinstance(err, ZeroDivisionError)
        assert owner is scope
        assert info == 'getter for watcher "broken"'

    def test_user_callback_error_routed(self, errors_seen):
        state = reactive({"a": 1})

        def callback(new, old):
            raise ValueError("bad")

        Watcher(None, lambda: state.a, callback, user=True, sync=True, expression="a")
        state.a = 2
        assert [info for _, _, info in errors_seen] == ['callback for watcher "a"']

    def test_internal_callback_error_propagates(self):
        state = reactive({"a": 1})

        def callback(new, old):
            raise ValueError("bad")

        Watcher(None, lambda: state.a, callback, sync=True)
        with pytest.raises(ValueError):
            state.a = 2


class TestTeardown:
    def test_teardown_unsubscribes(self):
        state = reactive({"a": 1})
        calls = []
        w = Watcher(None, lambda: state.a, lambda new, old: calls.append(new), sync=True)
        w.teardown()
        state.a = 2
        assert calls == []
        assert state.cell("a").dep.subs == []
        assert not w.active

    def test_teardown_idempotent(self):
        scope = Scope()
        state = reactive({"a": 1})
        w = Watcher(scope, lambda: state.a)
        w.teardown()
        w.teardown()
        assert scope.watchers == []

    def test_torn_down_watcher_does_not_run(self):
        state = reactive({"a": 1})
        calls = []
        w = Watcher(None, lambda: state.a, lambda new, old: calls.append(new))
        state.a = 2
        w.teardown()
        flush_ticks()
        assert calls == []

    def test_registers_with_owner(self):
        scope = Scope()
        w = Watcher(scope, lambda: None, primary=True)
        assert scope.watchers == [w]
        assert scope.primary is w
