"""Value classification shared by the observer and the watcher.

Primitives compare by value: 1, 1.0 and an IntEnum member of value 1 are all
the same value. Booleans are the exception; True is not a write of 1.
Everything else compares by identity.
"""

from __future__ import annotations

_PRIMITIVES = (str, bytes, int, float, complex, bool, type(None))


def is_object(value: object) -> bool:
    """True for anything compared by reference rather than by value."""
    return not isinstance(value, _PRIMITIVES)


def has_changed(new: object, old: object) -> bool:
    """Identity for objects, equality for primitives, NaN equals NaN."""
    if new is old:
        return False
    if not (isinstance(new, _PRIMITIVES) and isinstance(old, _PRIMITIVES)):
        return True
    if isinstance(new, bool) is not isinstance(old, bool):
        return True
    if new == old:
        return False
    # NaN never equals itself; two NaNs count as unchanged.
    return not (new != new and old != old)
