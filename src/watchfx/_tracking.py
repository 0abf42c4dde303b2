"""Evaluation context stack — which watcher is collecting dependencies right now.

Uses contextvars so the stack is local to the current task, while still
behaving as a stack for nested evaluation (a computed read inside a render,
a computed read inside another computed).

A ``None`` entry on the stack pauses collection: reads made while it is on
top register nothing.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from watchfx.watcher import Watcher

_target_stack: contextvars.ContextVar[tuple[Watcher | None, ...]] = contextvars.ContextVar(
    "target_stack", default=()
)


def current_target() -> Watcher | None:
    """The watcher being evaluated, or None when nothing is collecting."""
    stack = _target_stack.get()
    return stack[-1] if stack else None


def push_target(target: Watcher | None) -> None:
    _target_stack.set(_target_stack.get() + (target,))


def pop_target() -> None:
    _target_stack.set(_target_stack.get()[:-1])


def stack_depth() -> int:
    return len(_target_stack.get())


@contextmanager
def fresh_stack() -> Iterator[None]:
    """Run a block with an empty stack, whatever context it was scheduled from.

    Loop callbacks inherit a copy of the context that armed them, which may
    still have a watcher on top.
    """
    token = _target_stack.set(())
    try:
        yield
    finally:
        _target_stack.reset(token)


@contextmanager
def untracked() -> Iterator[None]:
    """Run a block without recording dependencies.

    Usage:
        with untracked():
            state.count  # read, but the enclosing watcher won't depend on it
    """
    push_target(None)
    try:
        yield
    finally:
        pop_target()
