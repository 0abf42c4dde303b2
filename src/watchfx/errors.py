"""watchfx error hierarchy and error/warning routing.

Errors raised by user code inside watchers, hooks and tick callbacks never
propagate out of the scheduler. They are routed through ``handle_error``,
which gives each owning scope a chance to capture them before falling back
to ``config.error_handler`` or the log.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from watchfx.config import config

if TYPE_CHECKING:
    from watchfx.scope import Scope

logger = logging.getLogger("watchfx.errors")


class WatchfxError(Exception):
    """Base error for all watchfx operations."""


class ReactivityError(WatchfxError):
    """Invalid use of the reactive primitives."""


def handle_error(err: BaseException, owner: Scope | None, info: str) -> None:
    """Route an error raised by user code.

    Walks from ``owner`` up through its parents calling ``error_captured``
    hooks. A hook that returns False stops the error there.
    """
    cur = owner
    while cur is not None:
        for hook in cur.hooks("error_captured"):
            try:
                captured = hook(err, owner, info) is False
            except Exception as hook_err:
                _global_handle_error(hook_err, cur, "error_captured hook")
                continue
            if captured:
                return
        cur = cur.parent
    _global_handle_error(err, owner, info)


def _global_handle_error(err: BaseException, owner: Scope | None, info: str) -> None:
    if config.error_handler is not None:
        try:
            config.error_handler(err, owner, info)
            return
        except Exception as handler_err:
            if handler_err is not err:
                _log_error(handler_err, None, "config.error_handler")
    _log_error(err, owner, info)


def _log_error(err: BaseException, owner: Scope | None, info: str) -> None:
    logger.error("Error in %s%s", info, _format_trace(owner), exc_info=err)


def warn(msg: str, owner: Scope | None = None) -> None:
    trace = _format_trace(owner)
    if config.warn_handler is not None:
        config.warn_handler(msg, owner, trace)
    elif not config.silent:
        logger.warning("%s%s", msg, trace)


def _format_trace(owner: Scope | None) -> str:
    if owner is None:
        return ""
    names = []
    cur = owner
    while cur is not None:
        names.append(cur.name)
        cur = cur.parent
    return "\n\nfound in\n\n---> " + "\n       ".join(f"<{name}>" for name in names)
