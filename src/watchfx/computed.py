"""Computed values — derived state with automatic dependency tracking.

A Computed wraps a getter in a lazy Watcher. The getter runs on first read
and its result is cached. When any dependency changes the watcher is only
marked dirty; the next read re-evaluates it.

Reading a Computed inside another watcher makes that watcher depend on
everything the Computed read, so changes propagate through chains of
computed values without the Computed having subscribers of its own.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, TypeVar

from watchfx._tracking import current_target
from watchfx.errors import warn
from watchfx.watcher import Watcher

if TYPE_CHECKING:
    from watchfx.scope import Scope

T = TypeVar("T")


class Computed(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_watcher", "_setter")

    def __init__(
        self,
        getter: Callable[[], T],
        setter: Callable[[T], None] | None = None,
        *,
        owner: Scope | None = None,
    ) -> None:
        self._watcher = Watcher(owner, getter, lazy=True)
        self._setter = setter

    @property
    def watcher(self) -> Watcher:
        return self._watcher

    @property
    def dirty(self) -> bool:
        return self._watcher.dirty

    def get(self) -> T:
        """Read the computed value. Recomputes if dirty."""
        watcher = self._watcher
        if watcher.dirty:
            watcher.evaluate()
        if current_target() is not None:
            watcher.depend()
        return watcher.value

    def set(self, value: T) -> None:
        if self._setter is None:
            warn(
                f'Computed property "{self._watcher.expression}" was assigned to '
                "but it has no setter.",
                self._watcher.owner,
            )
            return
        self._setter(value)

    def dispose(self) -> None:
        """Disconnect from all dependencies. The computed stops updating."""
        self._watcher.teardown()

    def __repr__(self) -> str:
        watcher = self._watcher
        state = "dirty" if watcher.dirty else f"cached={watcher.value!r}"
        return f"Computed({watcher.expression}, {state})"


def computed(getter: Callable[[], T]) -> Computed[T]:
    """Decorator/factory to create a Computed from a function.

    Usage:
        state = reactive({"count": 0})

        @computed
        def doubled():
            return state.count * 2

        doubled.get()  # 0
        state.count = 5
        doubled.get()  # 10
    """
    return Computed(getter)
