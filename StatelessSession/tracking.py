"""
SESSION MUTATION TRACKING
=========================
Write-observing containers and the per-request session handle.

FLOW:
- track() wraps dicts and lists (recursively) so writes mark a shared DirtyFlag.
- Session owns the tracked data, exposes `data` and `clear()`, and nothing else.
- The middleware reads the flag after the handler to decide on a reseal.

HOW:
- TrackedDict/TrackedList subclass dict/list and override every mutating method.
- Reads are plain dict/list reads; writes still happen, they just mark the flag.
"""

from __future__ import annotations

from typing import Any, Iterable


class DirtyFlag:
    """Per-request flag. Once marked it stays marked."""

    __slots__ = ("_set",)

    def __init__(self) -> None:
        self._set = False

    def mark(self) -> None:
        self._set = True

    @property
    def is_set(self) -> bool:
        return self._set

    def __bool__(self) -> bool:
        return self._set

    def __repr__(self) -> str:
        return f"DirtyFlag({self._set})"


def track(value: Any, flag: DirtyFlag) -> Any:
    """Wrap dicts and lists so in-place writes mark ``flag``. Other values pass through."""
    if isinstance(value, (TrackedDict, TrackedList)) and value._flag is flag:
        return value
    if isinstance(value, dict):
        return TrackedDict(flag, value)
    if isinstance(value, list):
        return TrackedList(flag, value)
    return value


class TrackedDict(dict):
    __slots__ = ("_flag",)

    def __init__(self, flag: DirtyFlag, initial: Any = ()) -> None:
        super().__init__()
        self._flag = flag
        for key, value in dict(initial).items():
            dict.__setitem__(self, key, track(value, flag))

    def __setitem__(self, key, value) -> None:
        dict.__setitem__(self, key, track(value, self._flag))
        self._flag.mark()

    def __delitem__(self, key) -> None:
        dict.__delitem__(self, key)
        self._flag.mark()

    def __ior__(self, other):
        self.update(other)
        return self

    def update(self, *args, **kwargs) -> None:
        items = dict(*args, **kwargs)
        if not items:
            return
        for key, value in items.items():
            dict.__setitem__(self, key, track(value, self._flag))
        self._flag.mark()

    def setdefault(self, key, default=None):
        if key in self:
            return dict.__getitem__(self, key)
        value = track(default, self._flag)
        dict.__setitem__(self, key, value)
        self._flag.mark()
        return value

    def pop(self, key, *default):
        if key not in self:
            return dict.pop(self, key, *default)
        value = dict.pop(self, key)
        self._flag.mark()
        return value

    def popitem(self):
        item = dict.popitem(self)
        self._flag.mark()
        return item

    def clear(self) -> None:
        dict.clear(self)
        self._flag.mark()

    def __reduce__(self):
        return (dict, (dict(self),))


class TrackedList(list):
    __slots__ = ("_flag",)

    def __init__(self, flag: DirtyFlag, initial: Iterable[Any] = ()) -> None:
        super().__init__(track(value, flag) for value in initial)
        self._flag = flag

    def _wrap_all(self, values: Iterable[Any]) -> list:
        return [track(value, self._flag) for value in values]

    def __setitem__(self, index, value) -> None:
        if isinstance(index, slice):
            list.__setitem__(self, index, self._wrap_all(value))
        else:
            list.__setitem__(self, index, track(value, self._flag))
        self._flag.mark()

    def __delitem__(self, index) -> None:
        list.__delitem__(self, index)
        self._flag.mark()

    def __iadd__(self, other):
        self.extend(other)
        return self

    def __imul__(self, count):
        list.__imul__(self, count)
        self._flag.mark()
        return self

    def append(self, value) -> None:
        list.append(self, track(value, self._flag))
        self._flag.mark()

    def extend(self, values) -> None:
        list.extend(self, self._wrap_all(values))
        self._flag.mark()

    def insert(self, index, value) -> None:
        list.insert(self, index, track(value, self._flag))
        self._flag.mark()

    def pop(self, index=-1):
        value = list.pop(self, index)
        self._flag.mark()
        return value

    def remove(self, value) -> None:
        list.remove(self, value)
        self._flag.mark()

    def clear(self) -> None:
        list.clear(self)
        self._flag.mark()

    def sort(self, *args, **kwargs) -> None:
        list.sort(self, *args, **kwargs)
        self._flag.mark()

    def reverse(self) -> None:
        list.reverse(self)
        self._flag.mark()

    def __reduce__(self):
        return (list, (list(self),))


class Session:
    """
    Request-scoped session handle.

    Handlers read and write ``session.data`` (in place or wholesale) and may
    call ``session.clear()``. Any other attribute write raises AttributeError.
    """

    __slots__ = ("_data", "_flag")

    def __init__(self, data: Any = None, flag: DirtyFlag | None = None) -> None:
        flag = flag if flag is not None else DirtyFlag()
        object.__setattr__(self, "_flag", flag)
        object.__setattr__(self, "_data", track({} if data is None else data, flag))

    @property
    def data(self) -> Any:
        return self._data

    @data.setter
    def data(self, value: Any) -> None:
        object.__setattr__(self, "_data", track(value, self._flag))
        self._flag.mark()

    @property
    def dirty(self) -> bool:
        return self._flag.is_set

    def clear(self) -> bool:
        """Replace the data with an empty dict. Returns True once done."""
        object.__setattr__(self, "_data", TrackedDict(self._flag))
        self._flag.mark()
        return True

    def __setattr__(self, name: str, value: Any) -> None:
        if name != "data":
            raise AttributeError(f"Session attribute {name!r} is read-only; assign to 'data' instead")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Session attribute {name!r} cannot be deleted")

    def __repr__(self) -> str:
        return f"Session(data={self._data!r}, dirty={self.dirty})"
