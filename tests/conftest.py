"""Shared test fixtures for watchfx."""

from __future__ import annotations

import pytest

from watchfx import _anchor, config
from watchfx.observer import toggle_observing


@pytest.fixture(autouse=True)
def _reset_reactivity():
    """Give every test a clean scheduler, tick list and config."""
    _anchor.reset_scheduler()
    _anchor.reset_tick()
    _anchor.tick_handler = None
    yield
    _anchor.reset_scheduler()
    _anchor.reset_tick()
    _anchor.tick_handler = None
    config.reset()
    toggle_observing(True)


@pytest.fixture
def warnings_seen():
    """Collect warnings through ``config.warn_handler``."""
    seen: list[str] = []
    config.warn_handler = lambda msg, owner, trace: seen.append(msg)
    return seen


@pytest.fixture
def errors_seen():
    """Collect routed errors through ``config.error_handler``."""
    seen: list[tuple[BaseException, object, str]] = []
    config.error_handler = lambda err, owner, info: seen.append((err, owner, info))
    return seen
