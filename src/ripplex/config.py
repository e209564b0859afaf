"""Global configuration and the reporting hooks.

Settings are module-level and changed through the setter functions, once,
at application start:

    ripplex.config.set_error_handler(lambda err, owner, info: sentry.capture(err))

handle_error() is where recovered errors from user watchers end up.
warn() is where misuse of the structural mutation API ends up.
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger("ripplex")

ErrorHandler = Callable[[BaseException, object, str], None]
WarnHandler = Callable[[str, object], None]

error_handler: ErrorHandler | None = None
warn_handler: WarnHandler | None = None

# Suppress warnings that have no warn_handler to go to.
silent: bool = False

# False flushes the scheduler synchronously on the first enqueue of a burst.
async_updates: bool = True

# How many times one watcher may re-queue itself within a single flush.
max_update_count: int = 100


def set_error_handler(handler: ErrorHandler | None) -> None:
    """Install the hook called as handler(error, owner, info)."""
    global error_handler
    error_handler = handler


def set_warn_handler(handler: WarnHandler | None) -> None:
    """Install the hook called as handler(message, owner)."""
    global warn_handler
    warn_handler = handler


def set_async_updates(enabled: bool) -> None:
    global async_updates
    async_updates = enabled


def reset() -> None:
    """Restore defaults. Meant for test teardown."""
    global error_handler, warn_handler, silent, async_updates, max_update_count
    error_handler = None
    warn_handler = None
    silent = False
    async_updates = True
    max_update_count = 100


def _describe(owner: object) -> str:
    if owner is None:
        return ""
    name = getattr(owner, "name", None) or type(owner).__name__
    return f" (in {name})"


def handle_error(err: BaseException, owner: object, info: str) -> None:
    """Report a recovered error. Never raises."""
    if error_handler is not None:
        try:
            error_handler(err, owner, info)
            return
        except Exception as handler_err:
            if handler_err is not err:
                _log_error(handler_err, None, "config.error_handler")
    _log_error(err, owner, info)


def _log_error(err: BaseException, owner: object, info: str) -> None:
    logger.error("Error in %s%s: %r", info, _describe(owner), err, exc_info=err)


def warn(message: str, owner: object = None) -> None:
    if warn_handler is not None:
        warn_handler(message, owner)
    elif not silent:
        logger.warning("%s%s", message, _describe(owner))
