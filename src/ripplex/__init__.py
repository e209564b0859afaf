"""ripplex: implicit dependency tracking and batched update scheduling."""

from importlib.metadata import version as _version

__version__ = _version("ripplex")

from ripplex import config
from ripplex._tracking import untracked
from ripplex.dep import Dep
from ripplex.observable import ReactiveDict, ReactiveList
from ripplex.observer import (
    Observer,
    define_reactive,
    delitem,
    get_observer,
    mark_raw,
    observe,
    reactive,
    setitem,
    toggle_observing,
)
from ripplex.traverse import traverse
from ripplex.watcher import Watcher, parse_path
from ripplex.scheduler import (
    Scheduler,
    flush,
    get_pending_count,
    next_tick,
    scheduler,
    set_tick,
)
from ripplex.computed import Computed, computed
from ripplex.reaction import autorun, watch
from ripplex.action import action, transaction
from ripplex.store import Store
from ripplex.errors import InfiniteUpdateLoopError
# textual NOT auto-imported — opt-in only

__all__ = [
    "config",
    "untracked",
    "Dep",
    "ReactiveDict",
    "ReactiveList",
    "Observer",
    "define_reactive",
    "delitem",
    "get_observer",
    "mark_raw",
    "observe",
    "reactive",
    "setitem",
    "toggle_observing",
    "traverse",
    "Watcher",
    "parse_path",
    "Scheduler",
    "flush",
    "get_pending_count",
    "next_tick",
    "scheduler",
    "set_tick",
    "Computed",
    "computed",
    "autorun",
    "watch",
    "action",
    "transaction",
    "Store",
    "InfiniteUpdateLoopError",
]
