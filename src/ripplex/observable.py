"""Observable containers — the two shapes the engine knows how to observe.

ReactiveDict is the keyed container, ReactiveList the ordered sequence.
Both are real dict/list subclasses. Until an Observer is attached (see
ripplex.observer.observe) they behave exactly like their base type; once
attached, reads register the active watcher and writes notify subscribers.

All per-key and structural bookkeeping lives on the Observer stored in the
_ob slot. These classes only route reads and writes to it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, Iterable, Iterator, TypeVar

from ripplex._tracking import current_target
from ripplex._util import has_changed

if TYPE_CHECKING:
    from ripplex.observer import Observer

T = TypeVar("T")
KT = TypeVar("KT")
VT = TypeVar("VT")


class ReactiveDict(dict, Generic[KT, VT]):
    """A dict whose key reads are tracked and whose writes notify.

    Reading d[key] subscribes to that key. Iteration, len() and `in`
    subscribe to the key set, which changes when keys are added or removed.

    Root state refuses removals with a warning and keeps the key: pop()
    then falls back to its default or raises KeyError, as does popitem().
    """

    __slots__ = ("_ob", "_raw")

    def __init__(self, *args, **kwargs) -> None:
        self._ob: Observer | None = None
        self._raw = False
        super().__init__(*args, **kwargs)

    def _track(self) -> None:
        """Subscribe the active watcher to the key set."""
        ob = self._ob
        if ob is not None and current_target() is not None:
            ob.dep.depend()

    def _track_all(self) -> None:
        ob = self._ob
        if ob is not None and current_target() is not None:
            ob.depend_all()

    # --- Read operations (track) ---

    def __getitem__(self, key: KT) -> VT:
        ob = self._ob
        if ob is None or current_target() is None:
            return dict.__getitem__(self, key)
        if not dict.__contains__(self, key):
            # A later insertion of this key must re-run the reader.
            ob.dep.depend()
            raise KeyError(key)
        value = dict.__getitem__(self, key)
        ob.depend_key(key, value)
        return value

    def get(self, key: KT, default: VT | None = None) -> VT | None:
        ob = self._ob
        if ob is None or current_target() is None:
            return dict.get(self, key, default)
        if not dict.__contains__(self, key):
            ob.dep.depend()
            return default
        value = dict.__getitem__(self, key)
        ob.depend_key(key, value)
        return value

    def __contains__(self, key: object) -> bool:
        self._track()
        return dict.__contains__(self, key)

    def __len__(self) -> int:
        self._track()
        return dict.__len__(self)

    def __iter__(self) -> Iterator[KT]:
        self._track()
        return dict.__iter__(self)

    def __reversed__(self) -> Iterator[KT]:
        self._track()
        return dict.__reversed__(self)

    def keys(self):
        self._track()
        return dict.keys(self)

    def values(self):
        self._track_all()
        return dict.values(self)

    def items(self):
        self._track_all()
        return dict.items(self)

    def copy(self) -> dict[KT, VT]:
        """Shallow plain-dict copy. Subscribes to every key."""
        self._track_all()
        return dict(dict.items(self))

    # --- Write operations (notify) ---

    def __setitem__(self, key: KT, value: VT) -> None:
        ob = self._ob
        if ob is None:
            dict.__setitem__(self, key, value)
        else:
            ob.assign(key, value)

    def __delitem__(self, key: KT) -> None:
        ob = self._ob
        if ob is None:
            dict.__delitem__(self, key)
            return
        if not dict.__contains__(self, key):
            raise KeyError(key)
        ob.remove(key)

    def pop(self, key: KT, *default: VT) -> VT:
        ob = self._ob
        if ob is None:
            return dict.pop(self, key, *default)
        if dict.__contains__(self, key):
            value = dict.__getitem__(self, key)
            if ob.remove(key):
                return value
        # Missing, or a root key whose removal was refused.
        if default:
            return default[0]
        raise KeyError(key)

    def popitem(self) -> tuple[KT, VT]:
        ob = self._ob
        if ob is None:
            return dict.popitem(self)
        if not dict.__len__(self):
            raise KeyError("popitem(): dictionary is empty")
        key = next(reversed(dict.keys(self)))
        value = dict.__getitem__(self, key)
        if not ob.remove(key):
            raise KeyError(f"popitem(): {key!r} cannot be removed from root state")
        return key, value

    def setdefault(self, key: KT, default: VT | None = None) -> VT | None:
        if self._ob is None:
            return dict.setdefault(self, key, default)
        if not dict.__contains__(self, key):
            self[key] = default
        return self.get(key, default)

    def update(self, other=(), /, **kwargs: VT) -> None:
        if self._ob is None:
            dict.update(self, other, **kwargs)
            return
        if hasattr(other, "keys"):
            for key in other.keys():
                self[key] = other[key]
        else:
            for key, value in other:
                self[key] = value
        for key, value in kwargs.items():
            self[key] = value

    def clear(self) -> None:
        ob = self._ob
        if ob is None:
            dict.clear(self)
            return
        for key in list(dict.keys(self)):
            if not ob.remove(key):
                # Root state: one refusal covers every key.
                return

    def __ior__(self, other):
        self.update(other)
        return self

    def __reduce__(self):
        # Copies start unobserved; items are restored through __setitem__.
        return type(self), (), None, None, iter(dict.items(self))

    def __repr__(self) -> str:
        return f"ReactiveDict({dict.__repr__(self)})"


class ReactiveList(list, Generic[T]):
    """A list whose reads are tracked and whose mutations notify.

    Reads subscribe to the list as a whole. The mutating methods below are
    the only sanctioned way to change the contents: each one performs the
    mutation, observes inserted elements, and notifies subscribers.
    """

    __slots__ = ("_ob", "_raw")

    def __init__(self, items: Iterable[T] = (), /) -> None:
        self._ob: Observer | None = None
        self._raw = False
        super().__init__(items)

    def _track(self) -> None:
        ob = self._ob
        if ob is not None and current_target() is not None:
            ob.dep.depend()

    def _notify(self) -> None:
        self._ob.dep.notify()

    # --- Read operations (track) ---

    def __getitem__(self, index):
        self._track()
        return list.__getitem__(self, index)

    def __len__(self) -> int:
        self._track()
        return list.__len__(self)

    def __iter__(self) -> Iterator[T]:
        self._track()
        return list.__iter__(self)

    def __reversed__(self) -> Iterator[T]:
        self._track()
        return list.__reversed__(self)

    def __contains__(self, item: object) -> bool:
        self._track()
        return list.__contains__(self, item)

    def index(self, item: T, *args) -> int:
        self._track()
        return list.index(self, item, *args)

    def count(self, item: T) -> int:
        self._track()
        return list.count(self, item)

    def copy(self) -> list[T]:
        self._track()
        return list(list.__iter__(self))

    # --- Write operations (notify) ---

    def append(self, item: T) -> None:
        ob = self._ob
        if ob is None:
            list.append(self, item)
            return
        list.append(self, ob.prepare(item))
        self._notify()

    def extend(self, items: Iterable[T]) -> None:
        ob = self._ob
        if ob is None:
            list.extend(self, items)
            return
        list.extend(self, ob.prepare_items(items))
        self._notify()

    def insert(self, index: int, item: T) -> None:
        ob = self._ob
        if ob is None:
            list.insert(self, index, item)
            return
        list.insert(self, index, ob.prepare(item))
        self._notify()

    def pop(self, index: int = -1) -> T:
        result = list.pop(self, index)
        if self._ob is not None:
            self._notify()
        return result

    def remove(self, item: T) -> None:
        list.remove(self, item)
        if self._ob is not None:
            self._notify()

    def clear(self) -> None:
        list.clear(self)
        if self._ob is not None:
            self._notify()

    def sort(self, *, key=None, reverse: bool = False) -> None:
        list.sort(self, key=key, reverse=reverse)
        if self._ob is not None:
            self._notify()

    def reverse(self) -> None:
        list.reverse(self)
        if self._ob is not None:
            self._notify()

    def splice(self, start: int, delete_count: int | None = None, *items: T) -> list[T]:
        """Remove delete_count items at start, insert items there.

        Returns the removed items. start is clamped to the list bounds and
        may be negative; delete_count defaults to everything after start.
        """
        length = list.__len__(self)
        if start < 0:
            start = max(length + start, 0)
        else:
            start = min(start, length)
        if delete_count is None:
            delete_count = length - start
        end = start + max(0, min(delete_count, length - start))
        removed = list.__getitem__(self, slice(start, end))
        ob = self._ob
        if ob is None:
            list.__setitem__(self, slice(start, end), items)
            return removed
        list.__setitem__(self, slice(start, end), ob.prepare_items(items))
        self._notify()
        return removed

    def __setitem__(self, index, value) -> None:
        ob = self._ob
        if ob is None:
            list.__setitem__(self, index, value)
            return
        if isinstance(index, slice):
            list.__setitem__(self, index, ob.prepare_items(value))
            self._notify()
            return
        if not has_changed(value, list.__getitem__(self, index)):
            return
        list.__setitem__(self, index, ob.prepare(value))
        self._notify()

    def __delitem__(self, index) -> None:
        list.__delitem__(self, index)
        if self._ob is not None:
            self._notify()

    def __iadd__(self, items: Iterable[T]):
        self.extend(items)
        return self

    def __imul__(self, n: int):
        list.__imul__(self, n)
        if self._ob is not None:
            self._notify()
        return self

    def __reduce__(self):
        return type(self), (), None, iter(list.__iter__(self))

    def __repr__(self) -> str:
        return f"ReactiveList({list.__repr__(self)})"
