"""Scopes — the owners watchers belong to.

A Scope stands in for a component: it keeps a registry of its watchers, at
most one primary (render) watcher, lifecycle hooks, and a parent link used
when routing errors. Destroying a scope tears down everything it owns.

Hook names used by watchfx itself: ``before_mount``, ``mounted``,
``before_update``, ``updated``, ``activated``, ``error_captured``,
``before_destroy`` and ``destroyed``. Any other name can be used with
``on``/``call_hook``.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any, Callable

from watchfx import tick
from watchfx._tracking import untracked
from watchfx.computed import Computed
from watchfx.errors import handle_error
from watchfx.watch import WatchHandle, watch

if TYPE_CHECKING:
    from watchfx.watcher import Watcher

_names = itertools.count(1)


class Scope:
    """Owner of watchers and lifecycle hooks."""

    def __init__(self, name: str | None = None, parent: Scope | None = None) -> None:
        self.name = name or f"Scope{next(_names)}"
        self.parent = parent
        self.children: list[Scope] = []
        if parent is not None:
            parent.children.append(self)
        self.watchers: list[Watcher] = []
        self.primary: Watcher | None = None
        self.is_mounted = False
        self.is_destroyed = False
        self.is_being_destroyed = False
        self.inactive = False
        self.rendered: Any = None
        self._hooks: dict[str, list[Callable[..., Any]]] = {}

    def on(self, hook: str, fn: Callable[..., Any]) -> Callable[..., Any]:
        """Register ``fn`` for ``hook``. Returns ``fn`` so it works as a decorator."""
        self._hooks.setdefault(hook, []).append(fn)
        return fn

    def hooks(self, hook: str) -> list[Callable[..., Any]]:
        return list(self._hooks.get(hook, ()))

    def call_hook(self, hook: str) -> None:
        """Call every handler of ``hook`` without tracking what they read."""
        with untracked():
            for fn in self.hooks(hook):
                try:
                    fn()
                except Exception as e:
                    handle_error(e, self, f"{hook} hook")

    def watch(self, source: Any, callback: Callable[[Any, Any], None], **options: Any) -> WatchHandle:
        return watch(source, callback, owner=self, **options)

    def computed(self, getter: Callable[[], Any], setter: Callable[[Any], None] | None = None) -> Computed:
        return Computed(getter, setter, owner=self)

    def next_tick(self, callback: Callable[[], Any] | None = None) -> Any:
        return tick.next_tick(callback, self)

    def activate(self) -> None:
        """Leave the inactive state, children first, firing ``activated``."""
        if not self.inactive:
            return
        self.inactive = False
        for child in self.children:
            child.activate()
        self.call_hook("activated")

    def destroy(self) -> None:
        """Tear down every watcher and detach from the parent. Safe to call twice."""
        if self.is_being_destroyed:
            return
        self.call_hook("before_destroy")
        self.is_being_destroyed = True
        if self.parent is not None and not self.parent.is_being_destroyed:
            try:
                self.parent.children.remove(self)
            except ValueError:
                pass
        for child in list(self.children):
            child.destroy()
        if self.primary is not None:
            self.primary.teardown()
        for watcher in list(self.watchers):
            watcher.teardown()
        self.watchers.clear()
        self.is_destroyed = True
        self.call_hook("destroyed")

    def __repr__(self) -> str:
        state = "destroyed" if self.is_destroyed else "mounted" if self.is_mounted else "idle"
        return f"Scope({self.name!r}, {state}, watchers={len(self.watchers)})"
