"""Render watchers — the bridge to whatever draws a scope's output.

``mount`` creates the scope's primary watcher around ``render``. Every time
state read by ``render`` changes, the scheduler re-runs it (parents before
children, since parent scopes mount first), hands the result to ``patch``
together with the previous one, and keeps what ``patch`` returns.

An error raised by ``render`` is routed to ``handle_error`` with the scope as
owner, and the previous output is kept. Errors raised by ``patch`` propagate.
"""

from __future__ import annotations

from typing import Any, Callable

from watchfx.errors import handle_error
from watchfx.scope import Scope
from watchfx.watcher import Watcher


def _replace(previous: Any, rendered: Any) -> Any:
    return rendered


def mount(
    scope: Scope,
    render: Callable[[], Any],
    patch: Callable[[Any, Any], Any] = _replace,
) -> Watcher:
    """Render ``scope`` now and re-render it whenever its state changes.

    The latest patched output is available as ``scope.rendered``.
    """
    scope.call_hook("before_mount")

    def update() -> None:
        try:
            output = render()
        except Exception as e:
            handle_error(e, scope, "render")
            return
        scope.rendered = patch(scope.rendered, output)

    def before() -> None:
        if scope.is_mounted and not scope.is_destroyed:
            scope.call_hook("before_update")

    watcher = Watcher(
        scope,
        update,
        before=before,
        primary=True,
        expression=f"render of {scope.name}",
    )
    scope.is_mounted = True
    scope.call_hook("mounted")
    return watcher
