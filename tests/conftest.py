"""Shared pytest fixtures."""

import logging
from collections.abc import Iterator

import pytest

from moodify.config import get_settings


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """Undo configure_logging() calls so handlers don't leak between tests."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    """get_settings() is lru_cached; env changes in one test must not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
