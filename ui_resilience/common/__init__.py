"""
================================================================================
UI Resilience Common Utilities
================================================================================

Shared configuration management and logging setup.

Exports:
    - get_config: Convenience function to get configuration values
    - set_config: Runtime configuration override
    - init_logger: Function to initialize loguru logger with standard settings

Usage:
    from ui_resilience.common import get_config, init_logger

    init_logger()
    short_timeout = get_config("timeouts.short", 10)

================================================================================
"""

from .global_config import (
    get_config,
    init_logger,
    reload_config,
    reset_config,
    set_config,
)

__all__ = [
    "get_config",
    "init_logger",
    "reload_config",
    "reset_config",
    "set_config",
]
