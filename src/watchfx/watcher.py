"""Watchers — tracked computations that re-run when what they read changes.

A Watcher evaluates its getter with itself on the context stack, so every
reactive read made by the getter subscribes it. When one of those reads
changes, the watcher updates in one of three ways:

- lazy (computed values): only marks itself dirty; the next reader
  re-evaluates it.
- sync: re-runs on the spot.
- default: queues itself on the scheduler, which runs it once on the next
  tick no matter how many of its dependencies changed.

After every evaluation the watcher drops subscriptions it no longer needs,
so a branch not taken this time no longer triggers it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from watchfx import _anchor
from watchfx._tracking import pop_target, push_target
from watchfx._util import is_primitive, same_value
from watchfx.errors import handle_error
from watchfx.scheduler import queue_watcher
from watchfx.traverse import traverse

if TYPE_CHECKING:
    from watchfx.dep import Dep
    from watchfx.scope import Scope

Callback = Callable[[Any, Any], None]


class Watcher:
    """A getter, the Deps it read last time, and what to do when they change.

    Args:
        owner: Scope the watcher belongs to. Registered in ``owner.watchers``
            and torn down with it.
        getter: Zero-argument function evaluated with dependency tracking.
        callback: Called as ``callback(new_value, old_value)`` after a re-run
            produced a different value.
        lazy: Don't evaluate until asked; changes only set ``dirty``.
        sync: Re-run immediately on change instead of queueing.
        deep: Also depend on everything nested in the returned value.
        user: Created by user code. Errors in the getter and callback are
            routed to ``handle_error`` instead of raised.
        before: Called by the scheduler right before each queued run.
        primary: Make this the owner's primary (render) watcher.
        expression: Description used in error messages and warnings.

    """

    def __init__(
        self,
        owner: Scope | None,
        getter: Callable[[], Any],
        callback: Callback | None = None,
        *,
        lazy: bool = False,
        sync: bool = False,
        deep: bool = False,
        user: bool = False,
        before: Callable[[], None] | None = None,
        primary: bool = False,
        expression: str | None = None,
    ) -> None:
        self.owner = owner
        if owner is not None:
            if primary:
                owner.primary = self
            owner.watchers.append(self)
        self.getter = getter
        self.callback = callback
        self.lazy = lazy
        self.sync = sync
        self.deep = deep
        self.user = user
        self.before = before
        self.id = _anchor.new_watcher_id()
        self.active = True
        self.dirty = lazy
        self.deps: list[Dep] = []
        self.new_deps: list[Dep] = []
        self.dep_ids: set[int] = set()
        self.new_dep_ids: set[int] = set()
        self.expression = expression or getattr(getter, "__qualname__", repr(getter))
        self.value: Any = None if lazy else self.get()

    def get(self) -> Any:
        """Evaluate the getter, collecting dependencies."""
        push_target(self)
        value = None
        try:
            value = self.getter()
        except Exception as e:
            if not self.user:
                raise
            handle_error(e, self.owner, f'getter for watcher "{self.expression}"')
        finally:
            if self.deep:
                traverse(value)
            pop_target()
            self.cleanup_deps()
        return value

    def add_dep(self, dep: Dep) -> None:
        dep_id = dep.id
        if dep_id not in self.new_dep_ids:
            self.new_dep_ids.add(dep_id)
            self.new_deps.append(dep)
            if dep_id not in self.dep_ids and self.active:
                dep.add_sub(self)

    def cleanup_deps(self) -> None:
        """Unsubscribe from Deps the last evaluation didn't read, then swap sets."""
        for dep in self.deps:
            if dep.id not in self.new_dep_ids:
                dep.remove_sub(self)
        self.dep_ids, self.new_dep_ids = self.new_dep_ids, self.dep_ids
        self.new_dep_ids.clear()
        self.deps, self.new_deps = self.new_deps, self.deps
        self.new_deps.clear()

    def update(self) -> None:
        """Called by a Dep when something this watcher read has changed."""
        if self.lazy:
            self.dirty = True
        elif self.sync:
            self.run()
        else:
            queue_watcher(self)

    def run(self) -> None:
        if not self.active:
            return
        value = self.get()
        # Mutable values may have changed in place, so they always count.
        if not same_value(value, self.value) or not is_primitive(value) or self.deep:
            old_value = self.value
            self.value = value
            if self.callback is None:
                return
            if self.user:
                try:
                    self.callback(value, old_value)
                except Exception as e:
                    handle_error(e, self.owner, f'callback for watcher "{self.expression}"')
            else:
                self.callback(value, old_value)

    def evaluate(self) -> None:
        """Re-evaluate now and clear the dirty bit. Used by lazy watchers."""
        self.value = self.get()
        self.dirty = False

    def depend(self) -> None:
        """Make the watcher being evaluated depend on everything this one read."""
        for dep in self.deps:
            dep.depend()

    def teardown(self) -> None:
        """Unsubscribe from every Dep and stop reacting. Safe to call twice."""
        if not self.active:
            return
        owner = self.owner
        if owner is not None and not owner.is_being_destroyed:
            try:
                owner.watchers.remove(self)
            except ValueError:
                pass
        for dep in self.deps:
            dep.remove_sub(self)
        self.active = False

    def __repr__(self) -> str:
        flags = [name for name in ("lazy", "sync", "deep", "user") if getattr(self, name)]
        state = "active" if self.active else "torn down"
        return f"Watcher(#{self.id} {self.expression!r}, {state}{''.join(', ' + f for f in flags)})"
