"""Reactive state — cells, observers, and the observable dict and list types.

``reactive()`` converts plain dicts and lists into ReactiveDict and
ReactiveList, recursively. Every key of a ReactiveDict is stored in a
ReactiveCell with its own Dep: reading the key inside a watcher subscribes
the watcher, writing a different value notifies it.

Each reactive container also carries an Observer (as ``__ob__``) whose Dep
tracks the container's structure: adding or removing keys, and any mutation
of a list. A cell holding a container makes its readers depend on that
Observer too, so ``state.items.append(x)`` reaches whoever read
``state.items``.

Usage:
    state = reactive({"user": {"name": "Ada"}, "tags": []})
    state.user.name      # tracked read
    state.tags.append("x")  # notifies readers of state.tags
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping, MutableSequence
from typing import Any

from watchfx._tracking import current_target
from watchfx._util import same_value
from watchfx.dep import Dep
from watchfx.errors import ReactivityError

MISSING: Any = object()

_should_observe = True


def toggle_observing(value: bool) -> None:
    """Globally enable or disable conversion of new values into reactive ones."""
    global _should_observe
    _should_observe = value


class Observer:
    """Attached to every reactive container as its ``__ob__`` marker."""

    __slots__ = ("value", "dep")

    def __init__(self, value: ReactiveDict | ReactiveList) -> None:
        self.value = value
        self.dep = Dep()

    def __repr__(self) -> str:
        return f"Observer({type(self.value).__name__}, dep={self.dep.id})"


def observe(value: object) -> Observer | None:
    """The Observer of a reactive container, or None for anything else."""
    if isinstance(value, (ReactiveDict, ReactiveList)):
        return value.__ob__
    return None


def is_reactive(value: object) -> bool:
    return isinstance(value, (ReactiveDict, ReactiveList))


def reactive(value: Any, *, shallow: bool = False) -> Any:
    """Return a reactive version of ``value``.

    Plain dicts and lists (exact types, not subclasses) become ReactiveDict
    and ReactiveList; nested ones are converted too unless ``shallow``.
    Reactive containers are returned unchanged, so conversion happens at
    most once. Every other value is returned as is.
    """
    if isinstance(value, (ReactiveDict, ReactiveList)) or not _should_observe:
        return value
    if type(value) is dict:
        return ReactiveDict(value, shallow=shallow)
    if type(value) is list:
        return ReactiveList(value, shallow=shallow)
    return value


def to_raw(value: Any) -> Any:
    """Deep copy reactive containers back into plain dicts and lists, untracked."""
    if isinstance(value, ReactiveDict):
        return {key: to_raw(value._raw_get(key)) for key in value._cells}
    if isinstance(value, ReactiveList):
        return [to_raw(item) for item in value._items]
    return value


def depend_array(items: ReactiveList) -> None:
    """Depend on the Observer of every container nested in ``items``."""
    for item in items._items:
        ob = observe(item)
        if ob is not None:
            ob.dep.depend()
        if isinstance(item, ReactiveList):
            depend_array(item)


class ReactiveCell:
    """One observable slot: a value plus the Dep of everyone who read it."""

    __slots__ = ("key", "value", "dep", "child_ob", "shallow")

    def __init__(self, key: Any, value: Any, *, shallow: bool = False) -> None:
        self.key = key
        self.shallow = shallow
        self.dep = Dep()
        self.value = value if shallow else reactive(value)
        self.child_ob = None if shallow else observe(self.value)

    def get(self) -> Any:
        value = self.value
        if current_target() is not None:
            self.dep.depend()
            if self.child_ob is not None:
                self.child_ob.dep.depend()
                if isinstance(value, ReactiveList):
                    depend_array(value)
        return value

    def set(self, new_value: Any) -> bool:
        """Store ``new_value``. Returns False, notifying no one, when nothing changed."""
        if same_value(self.value, new_value):
            return False
        self.value = new_value if self.shallow else reactive(new_value)
        self.child_ob = None if self.shallow else observe(self.value)
        self.dep.notify()
        return True

    def __repr__(self) -> str:
        return f"ReactiveCell({self.key!r}, {self.value!r})"


def define_reactive(
    target: ReactiveDict, key: Any, value: Any = MISSING, *, shallow: bool = False
) -> ReactiveCell | None:
    """Install a reactive cell for ``key`` on ``target``.

    Idempotent: an existing cell is returned untouched. Frozen keys cannot
    be made reactive; for them this silently returns None.
    """
    if not isinstance(target, ReactiveDict):
        raise ReactivityError(
            f"Cannot define a reactive key on {type(target).__name__}; "
            "convert it with reactive() first"
        )
    if key in target._frozen:
        return None
    cell = target._cells.get(key)
    if cell is not None:
        return cell
    cell = ReactiveCell(key, None if value is MISSING else value, shallow=shallow)
    target._cells[key] = cell
    return cell


class ReactiveDict(MutableMapping):
    """A dict whose keys are reactive cells.

    Keys can also be read and written as attributes (``state.count``) when
    they are valid identifiers that don't start with an underscore. Keys
    that shadow a mapping method (``items``, ``get``...) need item syntax.

    Args:
        data: Initial contents.
        frozen: Keys stored as plain values. Reads of them are not tracked
            and writes to them notify no one.
        shallow: Don't convert nested dicts and lists.

    """

    __slots__ = ("__ob__", "_cells", "_frozen", "_shallow", "__weakref__")

    def __init__(
        self,
        data: Mapping | Iterable | None = None,
        *,
        frozen: Iterable[Any] = (),
        shallow: bool = False,
    ) -> None:
        # key -> ReactiveCell, or None for frozen keys; keeps insertion order
        object.__setattr__(self, "_cells", {})
        object.__setattr__(self, "_frozen", {})
        object.__setattr__(self, "_shallow", shallow)
        object.__setattr__(self, "__ob__", Observer(self))
        frozen = set(frozen)
        for key, value in dict(data or ()).items():
            if key in frozen:
                self._cells[key] = None
                self._frozen[key] = value
            else:
                define_reactive(self, key, value, shallow=shallow)

    def _raw_get(self, key: Any) -> Any:
        cell = self._cells[key]
        return self._frozen[key] if cell is None else cell.value

    def cell(self, key: Any) -> ReactiveCell | None:
        """The cell backing ``key``; None for frozen or missing keys."""
        return self._cells.get(key)

    # --- Read operations (track) ---

    def __getitem__(self, key: Any) -> Any:
        try:
            cell = self._cells[key]
        except KeyError:
            # Subscribe to key additions so a later insert re-runs the reader.
            self.__ob__.dep.depend()
            raise
        if cell is None:
            return self._frozen[key]
        return cell.get()

    def __iter__(self) -> Iterator[Any]:
        self.__ob__.dep.depend()
        return iter(list(self._cells))

    def __len__(self) -> int:
        self.__ob__.dep.depend()
        return len(self._cells)

    def __contains__(self, key: object) -> bool:
        self.__ob__.dep.depend()
        return key in self._cells

    # --- Write operations (notify) ---

    def __setitem__(self, key: Any, value: Any) -> None:
        if key in self._cells:
            cell = self._cells[key]
            if cell is None:
                self._frozen[key] = value
            else:
                cell.set(value)
            return
        define_reactive(self, key, value, shallow=self._shallow)
        self.__ob__.dep.notify()

    def __delitem__(self, key: Any) -> None:
        cell = self._cells.pop(key)
        if cell is None:
            del self._frozen[key]
            return
        self.__ob__.dep.notify()
        cell.dep.notify()

    def update(self, other: Any = (), /, **kwargs: Any) -> None:
        items = dict(other)
        items.update(kwargs)
        added = False
        for key, value in items.items():
            if key in self._cells:
                self[key] = value
            else:
                define_reactive(self, key, value, shallow=self._shallow)
                added = True
        if added:
            self.__ob__.dep.notify()

    def clear(self) -> None:
        removed = [cell for cell in self._cells.values() if cell is not None]
        had_keys = bool(self._cells)
        self._cells.clear()
        self._frozen.clear()
        if had_keys:
            self.__ob__.dep.notify()
        for cell in removed:
            cell.dep.notify()

    # --- Attribute access ---

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            raise AttributeError(f"Cannot set private attribute {name!r} on ReactiveDict")
        self[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __repr__(self) -> str:
        return f"ReactiveDict({to_raw(self)!r})"


class ReactiveList(MutableSequence):
    """A list that tracks reads and notifies on mutation.

    Reads (indexing, iteration, len, ``in``) depend on the list's Observer.
    Every mutation notifies it exactly once, however many items it touches.
    Inserted items are converted with ``reactive()``.
    """

    __slots__ = ("__ob__", "_items", "_shallow", "__weakref__")

    def __init__(self, items: Iterable[Any] | None = None, *, shallow: bool = False) -> None:
        self._shallow = shallow
        self.__ob__ = Observer(self)
        self._items = [self._wrap(item) for item in items] if items else []

    def _wrap(self, value: Any) -> Any:
        return value if self._shallow else reactive(value)

    def _track(self) -> None:
        self.__ob__.dep.depend()

    def _notify(self) -> None:
        self.__ob__.dep.notify()

    # --- Read operations (track) ---

    def __getitem__(self, index: int | slice) -> Any:
        self._track()
        return self._items[index]

    def __len__(self) -> int:
        self._track()
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        self._track()
        return iter(list(self._items))

    def __contains__(self, item: object) -> bool:
        self._track()
        return item in self._items

    def index(self, item: Any, start: int = 0, stop: int | None = None) -> int:
        self._track()
        if stop is None:
            return self._items.index(item, start)
        return self._items.index(item, start, stop)

    def count(self, item: Any) -> int:
        self._track()
        return self._items.count(item)

    def __eq__(self, other: object) -> bool:
        self._track()
        if isinstance(other, ReactiveList):
            return self._items == other._items
        if isinstance(other, list):
            return self._items == other
        return NotImplemented

    # --- Write operations (notify) ---

    def __setitem__(self, index: int | slice, value: Any) -> None:
        if isinstance(index, slice):
            self._items[index] = [self._wrap(v) for v in value]
        else:
            if same_value(self._items[index], value):
                return
            self._items[index] = self._wrap(value)
        self._notify()

    def __delitem__(self, index: int | slice) -> None:
        del self._items[index]
        self._notify()

    def insert(self, index: int, item: Any) -> None:
        self._items.insert(index, self._wrap(item))
        self._notify()

    def append(self, item: Any) -> None:
        self._items.append(self._wrap(item))
        self._notify()

    def extend(self, items: Iterable[Any]) -> None:
        self._items.extend(self._wrap(item) for item in items)
        self._notify()

    def __iadd__(self, items: Iterable[Any]) -> ReactiveList:
        self.extend(items)
        return self

    def pop(self, index: int = -1) -> Any:
        result = self._items.pop(index)
        self._notify()
        return result

    def remove(self, item: Any) -> None:
        self._items.remove(item)
        self._notify()

    def clear(self) -> None:
        self._items.clear()
        self._notify()

    def sort(self, *, key: Any = None, reverse: bool = False) -> None:
        self._items.sort(key=key, reverse=reverse)
        self._notify()

    def reverse(self) -> None:
        self._items.reverse()
        self._notify()

    def __repr__(self) -> str:
        return f"ReactiveList({to_raw(self)!r})"
