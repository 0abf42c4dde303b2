"""Small helpers shared by the observer and watcher modules."""

from __future__ import annotations

import re
from typing import Any, Callable

_PRIMITIVES = (type(None), bool, int, float, complex, str, bytes, tuple, frozenset)


def is_primitive(value: object) -> bool:
    """Immutable scalar-like values; anything else may be mutated in place."""
    return isinstance(value, _PRIMITIVES)


def _is_immutable(value: object) -> bool:
    if isinstance(value, (tuple, frozenset)):
        return all(_is_immutable(item) for item in value)
    return is_primitive(value)


def same_value(a: object, b: object) -> bool:
    """Would writing ``b`` over ``a`` be a no-op?

    Mutable objects compare by identity. Immutable scalars compare by
    type-strict equality, since equal ints or strings are not guaranteed to
    be the same object. NaN is the same as NaN. Tuples and frozensets compare
    by equality only when everything inside them is immutable too.
    """
    if a is b:
        return True
    if type(a) is not type(b) or not _is_immutable(a) or not _is_immutable(b):
        return False
    try:
        return bool(a == b) or (a != a and b != b)
    except Exception:
        return False


_BAIL_RE = re.compile(r"[^\w.$]")


def parse_path(path: str) -> Callable[[Any], Any] | None:
    """Build a getter for a dotted path such as ``"user.address.city"``.

    Each segment is looked up as a key on mappings and as an attribute on
    anything else. Returns None for paths that are not simple dotted names.
    """
    if not path or _BAIL_RE.search(path):
        return None
    segments = [int(s) if s.isdigit() else s for s in path.split(".")]

    def getter(obj: Any) -> Any:
        for segment in segments:
            if obj is None:
                return None
            if hasattr(obj, "__getitem__") and not isinstance(obj, (str, bytes)):
                try:
                    obj = obj[segment]
                    continue
                except (KeyError, IndexError, TypeError):
                    pass
            if isinstance(segment, int):
                return None
            obj = getattr(obj, segment, None)
        return obj

    return getter
