"""Pytest configuration and shared fixtures."""

import pytest

from ripplex import config
from ripplex import observer as observer_module
from ripplex.scheduler import scheduler


@pytest.fixture(autouse=True)
def reset_engine():
    """Give every test a fresh scheduler, default config and observing on."""
    scheduler.reset()
    config.reset()
    observer_module._should_observe = True

    yield

    scheduler.reset()
    config.reset()
    observer_module._should_observe = True


@pytest.fixture
def errors():
    """Capture (error, owner, info) triples sent to the error hook."""
    captured = []
    config.set_error_handler(lambda err, owner, info: captured.append((err, owner, info)))
    return captured


@pytest.fixture
def warnings_log():
    """Capture messages sent to the warn hook."""
    captured = []
    config.set_warn_handler(lambda message, owner: captured.append(message))
    return captured
