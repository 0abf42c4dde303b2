"""Scheduler queue — runs each dirty watcher once per tick, in creation order.

Watchers queue themselves when something they read changes. The first queue
of a tick arms a flush through ``next_tick``; later ones only join the queue,
so any number of writes in one synchronous turn lead to a single flush.

The flush sorts by watcher id. Watchers are created parent-first, so parents
re-render before their children, and a user watcher runs before the render
watcher of its scope. Watchers queued by a run inside the flush are inserted
at their sorted position after the scan pointer and still run in this flush.

A watcher queued more than ``config.max_update_count`` times within one flush
is reported as an infinite update loop and is not queued again until the
flush ends, which guarantees the flush terminates.
"""

from __future__ import annotations

import logging
from operator import attrgetter
from typing import TYPE_CHECKING

from watchfx import _anchor
from watchfx._tracking import fresh_stack
from watchfx.config import config
from watchfx.errors import warn
from watchfx.tick import ensure_armed, next_tick

if TYPE_CHECKING:
    from watchfx.scope import Scope
    from watchfx.watcher import Watcher

logger = logging.getLogger("watchfx.scheduler")


def queue_watcher(watcher: Watcher) -> None:
    """Add ``watcher`` to the queue unless it is already waiting there."""
    watcher_id = watcher.id
    if _anchor.waiting and not _anchor.flushing:
        # The flush may have been queued before any loop was running.
        ensure_armed()
    if watcher_id in _anchor.has:
        return
    if _anchor.flushing:
        if watcher_id in _anchor.runaway:
            return
        count = _anchor.circular.get(watcher_id, 0) + 1
        _anchor.circular[watcher_id] = count
        if count > config.max_update_count:
            _anchor.runaway.add(watcher_id)
            warn(
                "You may have an infinite update loop "
                f'in watcher with expression "{watcher.expression}"',
                watcher.owner,
            )
            return

    _anchor.has.add(watcher_id)
    queue = _anchor.queue
    if not _anchor.flushing:
        queue.append(watcher)
    else:
        # Never insert at or before the watcher currently running.
        i = len(queue) - 1
        while i > _anchor.index and queue[i].id > watcher_id:
            i -= 1
        queue.insert(i + 1, watcher)

    if not _anchor.waiting:
        _anchor.waiting = True
        if not config.async_mode:
            with fresh_stack():
                flush_scheduler_queue()
            return
        next_tick(flush_scheduler_queue)


def queue_activated_scope(scope: Scope) -> None:
    """Fire ``activated`` hooks for ``scope`` once the current flush finishes."""
    scope.inactive = False
    _anchor.activated.append(scope)


def flush_scheduler_queue() -> None:
    """Run every queued watcher, then the post-flush hooks."""
    _anchor.flushing = True
    queue = _anchor.queue
    queue.sort(key=attrgetter("id"))
    logger.debug("Flushing %d watcher(s)", len(queue))

    try:
        _anchor.index = 0
        while _anchor.index < len(queue):
            watcher = queue[_anchor.index]
            _anchor.has.discard(watcher.id)
            if watcher.before is not None:
                watcher.before()
            watcher.run()
            _anchor.index += 1
        activated_queue = list(_anchor.activated)
        updated_queue = list(queue)
    finally:
        _anchor.reset_scheduler()

    _call_activated_hooks(activated_queue)
    _call_updated_hooks(updated_queue)


def _call_activated_hooks(scopes: list[Scope]) -> None:
    for scope in scopes:
        scope.inactive = True
        scope.activate()


def _call_updated_hooks(watchers: list[Watcher]) -> None:
    # Reverse order: children finish updating before their parents.
    for watcher in reversed(watchers):
        scope = watcher.owner
        if (
            scope is not None
            and scope.primary is watcher
            and scope.is_mounted
            and not scope.is_destroyed
        ):
            scope.call_hook("updated")


def pending_count() -> int:
    """Number of watchers waiting for the next flush. Useful for testing."""
    return len(_anchor.queue)
