"""watchfx configuration.

``config`` is a single process-wide object. Unlike most settings objects it
is mutable: applications and tests flip ``async_mode`` or install handlers at
runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from watchfx.scope import Scope

MAX_UPDATE_COUNT = 100

ErrorHandler = Callable[[BaseException, "Scope | None", str], None]
WarnHandler = Callable[[str, "Scope | None", str], None]


@dataclass(slots=True)
class Config:
    """Runtime configuration for the reactivity engine.

    Attributes:
        async_mode: Batch watcher runs into one flush per tick. When False,
            every queued watcher flushes immediately and ``Dep.notify``
            visits subscribers in creation order. Meant for debugging.
        max_update_count: How many times one watcher may be queued within a
            single flush before it is reported as an infinite update loop
            and excluded for the rest of that flush.
        silent: Suppress warnings that have no ``warn_handler``.
        error_handler: Called as ``handler(err, owner, info)`` for errors
            routed through ``handle_error``. Unset means log them.
        warn_handler: Called as ``handler(msg, owner, trace)`` for warnings.
            Unset means log them.

    """

    async_mode: bool = True
    max_update_count: int = MAX_UPDATE_COUNT
    silent: bool = False
    error_handler: ErrorHandler | None = None
    warn_handler: WarnHandler | None = None

    def reset(self) -> None:
        """Restore every attribute to its default."""
        defaults = Config()
        for f in fields(self):
            setattr(self, f.name, getattr(defaults, f.name))


config = Config()
