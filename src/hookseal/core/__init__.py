"""Core building blocks: clocks and configuration."""

from hookseal.core.clock import Clock, FrozenClock, SystemClock, ensure_utc
from hookseal.core.config import (
    ValidatorSettings,
    clear_config,
    get_config,
    load_config_from_file,
)

__all__ = [
    "Clock",
    "FrozenClock",
    "SystemClock",
    "ensure_utc",
    "ValidatorSettings",
    "clear_config",
    "get_config",
    "load_config_from_file",
]
