"""Shared fixtures for hookseal tests."""

from __future__ import annotations

import pytest
import structlog

from hookseal.core.config import clear_config


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Undo structlog configuration and cached settings between tests."""
    yield
    structlog.reset_defaults()
    clear_config()
