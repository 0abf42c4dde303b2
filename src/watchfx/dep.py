"""Dependencies — the fan-out point between reactive state and watchers.

Every reactive cell and every observed container owns one Dep. Watchers that
read the cell while evaluating subscribe to its Dep; writing the cell calls
``notify()``, which asks each subscriber to update.
"""

from __future__ import annotations

from operator import attrgetter
from typing import TYPE_CHECKING

from watchfx import _anchor
from watchfx._tracking import current_target
from watchfx.config import config

if TYPE_CHECKING:
    from watchfx.watcher import Watcher


class Dep:
    """A registry of watchers interested in one piece of reactive state."""

    __slots__ = ("id", "subs")

    def __init__(self) -> None:
        self.id = _anchor.new_dep_id()
        self.subs: list[Watcher] = []

    def add_sub(self, sub: Watcher) -> None:
        self.subs.append(sub)

    def remove_sub(self, sub: Watcher) -> None:
        try:
            self.subs.remove(sub)
        except ValueError:
            pass  # already removed

    def depend(self) -> None:
        """Subscribe the watcher currently evaluating, if any."""
        target = current_target()
        if target is not None:
            target.add_dep(self)

    def notify(self) -> None:
        # Snapshot: subscribers may unsubscribe while we iterate.
        subs = list(self.subs)
        if not config.async_mode:
            # No scheduler to sort for us; keep creation order.
            subs.sort(key=attrgetter("id"))
        for sub in subs:
            sub.update()

    def __repr__(self) -> str:
        return f"Dep(id={self.id}, subs={len(self.subs)})"
