"""Observer — instruments a container so reads collect and writes notify.

observe() attaches one Observer per ReactiveDict/ReactiveList instance. For
a dict it creates a ReactiveField (with its own Dep) for every key; for a
list it observes every element. Either way the Observer carries a
structural Dep that fires when keys are added or removed, or when the list
is mutated in place.

Plain dict and list values are converted to the reactive types on their
way into observed state. Conversion is done in one pass per value with an
identity memo, so shared and cyclic references survive it.

setitem() and delitem() are the explicit structural mutation entry points.
Misuse (a non-container target, new keys on root state) warns through
ripplex.config.warn and leaves the target untouched.
"""

from __future__ import annotations

from typing import Callable

from ripplex import config
from ripplex.dep import Dep
from ripplex._util import has_changed
from ripplex.observable import ReactiveDict, ReactiveList

_MISSING = object()

# Global switch: when False, observe() attaches no new Observers.
_should_observe: bool = True


def toggle_observing(value: bool) -> None:
    """Enable or disable attaching new Observers.

    Usage:
        toggle_observing(False)
        try:
            props = reactive(snapshot)  # converted, but left unobserved
        finally:
            toggle_observing(True)
    """
    global _should_observe
    _should_observe = value


class ReactiveField:
    """Per-key record of an observed dict: its Dep and write policy."""

    __slots__ = ("dep", "shallow", "custom_setter", "child")

    def __init__(self, shallow: bool = False, custom_setter: Callable | None = None) -> None:
        self.dep = Dep()
        self.shallow = shallow
        self.custom_setter = custom_setter
        # Observer of the current value, when it is an observed container.
        self.child: Observer | None = None

    def write(self, container: ReactiveDict, key, value) -> None:
        if not has_changed(value, dict.get(container, key)):
            return
        if self.custom_setter is not None:
            self.custom_setter(value)
        value, self.child = _prepare(value, self.shallow)
        dict.__setitem__(container, key, value)
        self.dep.notify()


class Observer:
    """Attached to each observed container via its _ob slot."""

    __slots__ = ("value", "dep", "vm_count", "fields")

    def __init__(self, value: ReactiveDict | ReactiveList) -> None:
        self.value = value
        self.dep = Dep()
        # Number of owners using this container as their root state.
        self.vm_count = 0
        self.fields: dict[object, ReactiveField] = {}
        # Attach before walking so cycles find this observer.
        value._ob = self
        if isinstance(value, ReactiveList):
            self.observe_array(value)
        else:
            self.walk(value)

    def walk(self, obj: ReactiveDict) -> None:
        """Make every existing key of obj reactive."""
        memo: dict[int, object] = {}
        for key in list(dict.keys(obj)):
            define_reactive(obj, key, _convert(dict.__getitem__(obj, key), memo))

    def observe_array(self, items: ReactiveList) -> None:
        memo: dict[int, object] = {}
        for i in range(list.__len__(items)):
            item = list.__getitem__(items, i)
            converted = _convert(item, memo)
            if converted is not item:
                list.__setitem__(items, i, converted)
            observe(converted)

    # --- Read side ---

    def depend_key(self, key, value) -> None:
        """Subscribe the active watcher to key, and to value's own structure."""
        field = self.fields.get(key)
        if field is None:
            self.dep.depend()
            return
        field.dep.depend()
        child = field.child
        if child is not None:
            child.dep.depend()
            if isinstance(value, ReactiveList):
                depend_array(value)

    def depend_all(self) -> None:
        self.dep.depend()
        for key, value in dict.items(self.value):
            self.depend_key(key, value)

    # --- Write side ---

    def prepare(self, value):
        return _prepare(value)[0]

    def prepare_items(self, items) -> list:
        memo: dict[int, object] = {}
        prepared = []
        for item in items:
            if _should_observe:
                item = _convert(item, memo)
            observe(item)
            prepared.append(item)
        return prepared

    def assign(self, key, value) -> None:
        """Write key on the observed dict, adding it reactively if new."""
        field = self.fields.get(key)
        if field is not None:
            field.write(self.value, key, value)
            return
        if self.vm_count:
            config.warn(
                f"Avoid adding reactive property {key!r} to root state at runtime "
                "- declare it upfront."
            )
            return
        define_reactive(self.value, key, value)
        self.dep.notify()

    def remove(self, key) -> bool:
        """Delete key from the observed dict. Returns False when refused."""
        if self.vm_count:
            config.warn(f"Avoid deleting property {key!r} from root state - set it to None.")
            return False
        container = self.value
        if not dict.__contains__(container, key):
            return False
        dict.__delitem__(container, key)
        field = self.fields.pop(key, None)
        self.dep.notify()
        # Readers of exactly this key subscribed only to its field Dep.
        if field is not None:
            field.dep.notify()
        return True

    def __repr__(self) -> str:
        kind = "list" if isinstance(self.value, ReactiveList) else "dict"
        return f"Observer({kind}, dep={self.dep.id}, vm_count={self.vm_count})"


# helpers


def _convert(value, memo: dict[int, object]):
    """Turn plain dict/list graphs into ReactiveDict/ReactiveList graphs.

    Only exact dict and list are converted; subclasses (OrderedDict,
    defaultdict, user types) are not plain and pass through untouched.
    """
    if type(value) is dict:
        converted = memo.get(id(value))
        if converted is None:
            converted = memo[id(value)] = ReactiveDict()
            for key, item in value.items():
                dict.__setitem__(converted, key, _convert(item, memo))
        return converted
    if type(value) is list:
        converted = memo.get(id(value))
        if converted is None:
            converted = memo[id(value)] = ReactiveList()
            for item in value:
                list.append(converted, _convert(item, memo))
        return converted
    return value


def _prepare(value, shallow: bool = False):
    """Convert and observe a value about to be stored. Returns (value, observer)."""
    if shallow:
        return value, None
    if _should_observe:
        value = _convert(value, {})
    return value, observe(value)


def _is_valid_index(key) -> bool:
    return isinstance(key, int) and not isinstance(key, bool) and key >= 0


def get_observer(value) -> Observer | None:
    """The Observer attached to value, if any."""
    if isinstance(value, (ReactiveDict, ReactiveList)):
        return value._ob
    return None


def mark_raw(value):
    """Exclude a container from observation. Returns the container to store.

    Plain dicts and lists would be converted on their way into reactive
    state, so they are wrapped in the reactive type here and that copy is
    marked instead.
    """
    if type(value) is dict:
        value = ReactiveDict(value)
    elif type(value) is list:
        value = ReactiveList(value)
    if isinstance(value, (ReactiveDict, ReactiveList)):
        value._raw = True
    return value


def observe(value, as_root: bool = False) -> Observer | None:
    """Attach an Observer to value, or return the one already attached.

    Returns None for anything that is not a ReactiveDict/ReactiveList, for
    raw-marked containers, and, while observing is toggled off, for
    containers that have no Observer yet.
    """
    if not isinstance(value, (ReactiveDict, ReactiveList)) or value._raw:
        return None
    ob = value._ob
    if ob is None and _should_observe:
        ob = Observer(value)
    if as_root and ob is not None:
        ob.vm_count += 1
    return ob


def reactive(value):
    """Convert plain containers in value to reactive ones and observe them.

    Usage:
        state = reactive({"todos": [{"done": False}]})
        state["todos"][0]["done"] = True  # notifies readers of "done"
    """
    value = _convert(value, {})
    observe(value)
    return value


def define_reactive(
    container: ReactiveDict,
    key,
    value=_MISSING,
    custom_setter: Callable | None = None,
    shallow: bool = False,
) -> None:
    """Instrument one key of container.

    custom_setter(new_value) runs on every effective write. shallow leaves
    the value unconverted and unobserved.
    """
    if not isinstance(container, ReactiveDict):
        raise TypeError(
            f"define_reactive() needs a ReactiveDict, got {type(container).__name__}"
        )
    ob = container._ob
    if ob is None:
        ob = Observer(container)
    if value is _MISSING:
        value = dict.get(container, key)
    field = ReactiveField(shallow, custom_setter)
    value, field.child = _prepare(value, shallow)
    dict.__setitem__(container, key, value)
    ob.fields[key] = field


def depend_array(items: ReactiveList, seen: set[int] | None = None) -> None:
    """Subscribe to the structure of every container element of items.

    Element reads through a parent key do not pass through the element's
    own read path, so the parent read subscribes on its behalf.
    """
    if seen is None:
        seen = set()
    seen.add(id(items))
    for item in list.__iter__(items):
        ob = get_observer(item)
        if ob is not None:
            ob.dep.depend()
        if isinstance(item, list) and id(item) not in seen:
            depend_array(item, seen)


def setitem(target, key, value):
    """Set key on target, adding it reactively when it is new.

    For lists, an index past the end pads with None and inserts there.
    Returns value.
    """
    if isinstance(target, list):
        if not _is_valid_index(key):
            config.warn(f"Cannot set reactive item at invalid list index: {key!r}")
            return value
        length = list.__len__(target)
        if key > length:
            list.extend(target, [None] * (key - length))
        if isinstance(target, ReactiveList):
            target.splice(key, 1, value)
        else:
            target[key:key + 1] = [value]
        return value
    if not isinstance(target, dict):
        config.warn(
            f"Cannot set reactive property on None or primitive value: {target!r}"
        )
        return value
    ob = get_observer(target)
    if ob is None:
        target[key] = value
        return value
    ob.assign(key, value)
    return value


def delitem(target, key) -> None:
    """Delete key from target and notify readers of its key set."""
    if isinstance(target, list):
        if _is_valid_index(key) and key < list.__len__(target):
            if isinstance(target, ReactiveList):
                target.splice(key, 1)
            else:
                del target[key]
        return
    if not isinstance(target, dict):
        config.warn(
            f"Cannot delete reactive property on None or primitive value: {target!r}"
        )
        return
    ob = get_observer(target)
    if ob is None:
        if key in target:
            del target[key]
        return
    ob.remove(key)
