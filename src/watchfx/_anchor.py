"""Data anchor — plain Python structures that hold process-wide reactive state.

The scheduler queue and the pending tick callbacks live here rather than in
the behavior modules, so every module sees the same singletons and tests can
reset them in one place.
"""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from watchfx.scope import Scope
    from watchfx.watcher import Watcher

# Scheduler state
queue: list[Watcher] = []
activated: list[Scope] = []
has: set[int] = set()  # ids of watchers waiting in queue
circular: dict[int, int] = {}  # watcher id -> times queued during this flush
runaway: set[int] = set()  # ids excluded from re-queueing until the flush ends
waiting: bool = False  # a flush has been scheduled
flushing: bool = False
index: int = 0  # scan pointer of the running flush

# Tick state
callbacks: list[Callable[[], None]] = []
armed: object = None  # handler or loop holding the wake-up; None if nothing is armed
tick_handler: Callable[[Callable[[], None]], object] | None = None

# ID generation
_dep_ids = itertools.count(0)
_watcher_ids = itertools.count(1)


def new_dep_id() -> int:
    return next(_dep_ids)


def new_watcher_id() -> int:
    return next(_watcher_ids)


def reset_scheduler() -> None:
    global waiting, flushing, index
    queue.clear()
    activated.clear()
    has.clear()
    circular.clear()
    runaway.clear()
    waiting = flushing = False
    index = 0


def reset_tick() -> None:
    global armed
    callbacks.clear()
    armed = None
