"""watch() — call a function when a reactive expression changes.

The source is either a zero-argument function or a dotted path looked up on
``target``. It is evaluated with dependency tracking; when it produces a new
value the callback receives ``(new_value, old_value)``. Errors raised by the
source or the callback are routed to ``handle_error`` rather than raised.

Returns a WatchHandle for cleanup via .dispose().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from watchfx._util import parse_path
from watchfx.errors import handle_error, warn
from watchfx.watcher import Callback, Watcher

if TYPE_CHECKING:
    from watchfx.scope import Scope


class WatchHandle:
    """Disposable handle for a user watcher."""

    __slots__ = ("_watcher",)

    def __init__(self, watcher: Watcher) -> None:
        self._watcher = watcher

    @property
    def watcher(self) -> Watcher:
        return self._watcher

    @property
    def value(self) -> Any:
        """The source's value as of the last evaluation."""
        return self._watcher.value

    @property
    def disposed(self) -> bool:
        return not self._watcher.active

    def dispose(self) -> None:
        """Stop watching. Calling it again does nothing."""
        self._watcher.teardown()

    def __call__(self) -> None:
        self.dispose()

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else "active"
        return f"WatchHandle({self._watcher.expression!r}, {state})"


def _noop() -> None:
    return None


def watch(
    source: Callable[[], Any] | str,
    callback: Callback,
    *,
    target: Any = None,
    deep: bool = False,
    sync: bool = False,
    immediate: bool = False,
    owner: Scope | None = None,
) -> WatchHandle:
    """Watch ``source`` and call ``callback(new, old)`` when it changes.

    Args:
        source: Function to evaluate, or a dotted path read from ``target``.
        callback: Receives the new and the previous value.
        target: Object a path source is read from.
        deep: Also react to changes anywhere inside the returned value.
        sync: Call back immediately on change instead of on the next tick.
        immediate: Call back once right away with ``(value, None)``.
        owner: Scope that owns the watcher; destroying it stops the watch.

    Usage:
        state = reactive({"user": {"name": "Ada"}})
        handle = watch("user.name", on_rename, target=state)
        handle = watch(lambda: state.user, on_user, deep=True)
    """
    if isinstance(source, str):
        expression = source
        path_getter = parse_path(source)
        if path_getter is None:
            warn(
                f'Failed watching path: "{source}" Watcher only accepts simple '
                "dot-delimited paths. For full control, use a function instead.",
                owner,
            )
            getter = _noop
        else:

            def getter() -> Any:
                return path_getter(target)

    else:
        expression = None
        getter = source

    watcher = Watcher(
        owner,
        getter,
        callback,
        deep=deep,
        sync=sync,
        user=True,
        expression=expression,
    )
    if immediate:
        try:
            callback(watcher.value, None)
        except Exception as e:
            handle_error(e, owner, f'callback for immediate watcher "{watcher.expression}"')
    return WatchHandle(watcher)
