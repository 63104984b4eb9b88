"""
================================================================================
Timeouts Configuration
================================================================================

Plain timeout values consumed by the framework, built from the global
configuration (see config/config.yaml).

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ui_resilience.common import get_config


@dataclass(frozen=True)
class Timeouts:
    """
    Timeout and polling settings.

    Attributes:
        default: Default timeout used all over the framework (seconds)
        short: Short timeout used while searching elements (seconds)
        open_page: Timeout to wait for a page to be opened (seconds)
        close_dialog: Timeout to wait for a dialog to vanish (seconds)
        delay_before_link_click: Pause before clicking a link (milliseconds)
        delay_after_link_click: Pause after clicking a link (milliseconds)
        poll_interval: Fixed pause between two condition checks (seconds)
        max_recovery_attempts: Retry cap for transient driver failures
        recovery_pause: Pause before retrying after a transient failure (seconds)
        max_alerts: Number of successive alerts tolerated while purging
    """
    default: float = 60
    short: float = 10
    open_page: float = 30
    close_dialog: float = 30
    delay_before_link_click: int = 500
    delay_after_link_click: int = 500
    poll_interval: float = 0.25
    max_recovery_attempts: int = 5
    recovery_pause: float = 1.0
    max_alerts: int = 10

    @classmethod
    def from_config(cls) -> "Timeouts":
        """Build timeouts from the global configuration."""
        open_page = float(get_config("timeouts.open_page", cls.open_page))
        return cls(
            default=float(get_config("timeouts.default", cls.default)),
            short=float(get_config("timeouts.short", cls.short)),
            open_page=open_page,
            close_dialog=float(get_config("timeouts.close_dialog", open_page)),
            delay_before_link_click=int(
                get_config("timeouts.delay_before_link_click", cls.delay_before_link_click)
            ),
            delay_after_link_click=int(
                get_config("timeouts.delay_after_link_click", cls.delay_after_link_click)
            ),
            poll_interval=float(get_config("wait.poll_interval", cls.poll_interval)),
            max_recovery_attempts=int(
                get_config("recovery.max_attempts", cls.max_recovery_attempts)
            ),
            recovery_pause=float(get_config("recovery.pause", cls.recovery_pause)),
            max_alerts=int(get_config("alerts.max_purge", cls.max_alerts)),
        )

    def with_overrides(self, **overrides) -> "Timeouts":
        return replace(self, **overrides)


__all__ = ["Timeouts"]
