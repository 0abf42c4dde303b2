"""Deep traversal for ``deep`` watchers.

Walks a value purely to touch every nested reactive cell, so the watcher
evaluating it subscribes to all of them. The result is discarded.
"""

from __future__ import annotations

from typing import Any

from watchfx.observer import ReactiveDict, ReactiveList


def traverse(value: Any) -> None:
    _traverse(value, set())


def _traverse(value: Any, seen: set[tuple[str, int]]) -> None:
    if not isinstance(value, (ReactiveDict, ReactiveList, dict, list)):
        return
    ob = getattr(value, "__ob__", None)
    # Shared or cyclic structures are walked once.
    marker = ("dep", ob.dep.id) if ob is not None else ("obj", id(value))
    if marker in seen:
        return
    seen.add(marker)
    if isinstance(value, (ReactiveList, list)):
        for item in value:
            _traverse(item, seen)
    else:
        for key in value:
            _traverse(value[key], seen)
