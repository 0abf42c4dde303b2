"""Textual integration for watchfx. Opt-in — requires textual.

``install(app)`` makes watchers flush right after the message Textual is
currently processing, via ``app.call_next``. ``watch`` and ``mount`` are the
core functions with a guard around the widget-touching half: they skip it
while the app is paused or not running, and ignore ``NoMatches`` from widget
queries. Dependency tracking itself is never skipped, so a watcher that was
paused still reacts to the next change.
"""

from contextlib import contextmanager

from textual.css.query import NoMatches

from watchfx import mount as _mount, watch as _watch
from watchfx.tick import set_tick_handler

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


def install(app):
    """Flush watchers on the app's message loop."""
    set_tick_handler(app.call_next)


@contextmanager
def pause(app):
    """Suspend guarded callbacks during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def watch(app, source, callback, **options):
    """watch() whose callback only touches widgets when it is safe to."""

    def _guarded(value, old_value):
        if not is_safe(app):
            return
        try:
            callback(value, old_value)
        except NoMatches:
            pass

    return _watch(source, _guarded, **options)


def mount(app, scope, render, patch):
    """mount() whose patch step only touches widgets when it is safe to.

    ``render`` still runs on every change so its reads stay tracked; a
    skipped patch keeps the previous output.
    """

    def _guarded(previous, rendered):
        if not is_safe(app):
            return previous
        try:
            return patch(previous, rendered)
        except NoMatches:
            return previous

    return _mount(scope, render, _guarded)
