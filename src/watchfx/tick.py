"""Tick batching — run callbacks once the current synchronous turn is over.

``next_tick`` collects callbacks in a shared list and arms a single wake-up
for all of them, however many times it is called before the wake-up fires.
The wake-up is armed with the finest facility available, in order:

1. A handler installed with ``set_tick_handler`` (for example a UI
   framework's "call after this message" hook).
2. ``call_soon`` on the running asyncio loop.
3. Nothing: callbacks wait until ``flush_ticks()`` is called. This is what
   plain synchronous programs and tests use. The next ``next_tick`` or
   watcher update that finds a handler or a running loop arms it then.

Callbacks always run with an empty watcher stack.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from typing import Any, Callable

from watchfx import _anchor
from watchfx._tracking import fresh_stack
from watchfx.errors import handle_error

logger = logging.getLogger("watchfx.tick")

TickHandler = Callable[[Callable[[], None]], object]


def set_tick_handler(handler: TickHandler | None) -> None:
    """Install the function used to arm wake-ups, or None for the defaults.

    The handler receives a zero-argument callable and must arrange for it to
    be called soon, on the same thread, after the current turn.

    Usage:
        watchfx.set_tick_handler(app.call_next)
    """
    _anchor.tick_handler = handler


def _arm() -> object:
    """Schedule a flush. Returns what will run it, or None if nothing can."""
    handler = _anchor.tick_handler
    if handler is not None:
        handler(flush_ticks)
        return handler
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No running event loop; waiting for flush_ticks()")
        return None
    loop.call_soon(flush_ticks)
    return loop


def ensure_armed() -> None:
    """Arm a wake-up for the waiting callbacks if none is armed yet.

    Callbacks queued while nothing could run them (no handler, no running
    loop) get one as soon as a later call finds a loop or a handler.
    """
    if not _anchor.callbacks:
        return
    armed = _anchor.armed
    if armed is None or (isinstance(armed, asyncio.AbstractEventLoop) and armed.is_closed()):
        _anchor.armed = _arm()


def flush_ticks() -> None:
    """Run every pending callback now, in the order they were scheduled."""
    _anchor.armed = None
    copies = list(_anchor.callbacks)
    _anchor.callbacks.clear()
    with fresh_stack():
        for callback in copies:
            callback()


def has_pending() -> bool:
    return bool(_anchor.callbacks)


def next_tick(callback: Callable[[], Any] | None = None, ctx: Any = None) -> Any:
    """Call ``callback`` after the next flush; without one, return a future.

    The future resolves to ``ctx`` once the pending callbacks, including any
    scheduler flush queued before it, have run. It is an asyncio future when
    called with a running loop, a ``concurrent.futures.Future`` otherwise.

    Usage:
        state.count += 1
        next_tick(lambda: print("watchers have run"))
        await next_tick()
    """
    future: Any = None
    if callback is None:
        try:
            future = asyncio.get_running_loop().create_future()
        except RuntimeError:
            future = concurrent.futures.Future()

    def _run() -> None:
        if callback is not None:
            try:
                callback()
            except Exception as e:
                owner = ctx if hasattr(ctx, "hooks") else None
                handle_error(e, owner, "next_tick")
        elif not future.done():
            future.set_result(ctx)

    _anchor.callbacks.append(_run)
    ensure_armed()
    return future
