"""watchfx: reactive dependency tracking and update scheduling for Python."""

from importlib.metadata import version as _version

__version__ = _version("watchfx")

from watchfx._tracking import untracked
from watchfx.config import MAX_UPDATE_COUNT, Config, config
from watchfx.errors import ReactivityError, WatchfxError, handle_error, warn
from watchfx.dep import Dep
from watchfx.observer import (
    Observer,
    ReactiveCell,
    ReactiveDict,
    ReactiveList,
    define_reactive,
    is_reactive,
    observe,
    reactive,
    to_raw,
    toggle_observing,
)
from watchfx.traverse import traverse
from watchfx.tick import flush_ticks, next_tick, set_tick_handler
from watchfx.scheduler import pending_count, queue_activated_scope, queue_watcher
from watchfx.watcher import Watcher
from watchfx.computed import Computed, computed
from watchfx.watch import WatchHandle, watch
from watchfx.scope import Scope
from watchfx.render import mount
# textual NOT auto-imported — opt-in only

__all__ = [
    "MAX_UPDATE_COUNT",
    "Computed",
    "Config",
    "Dep",
    "Observer",
    "ReactiveCell",
    "ReactiveDict",
    "ReactiveList",
    "ReactivityError",
    "Scope",
    "WatchHandle",
    "WatchfxError",
    "Watcher",
    "computed",
    "config",
    "define_reactive",
    "flush_ticks",
    "handle_error",
    "is_reactive",
    "mount",
    "next_tick",
    "observe",
    "pending_count",
    "queue_activated_scope",
    "queue_watcher",
    "reactive",
    "set_tick_handler",
    "to_raw",
    "toggle_observing",
    "traverse",
    "untracked",
    "warn",
    "watch",
]
