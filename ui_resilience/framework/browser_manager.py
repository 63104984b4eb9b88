"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management producing resilient browser sessions.

Features:
    - Single browser instance, isolated context per session
    - Browser configuration presets
    - Sessions wired with the Playwright driver adapter

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.sync_api import (
    Browser,
    BrowserContext,
    Playwright,
    sync_playwright,
)

from ui_resilience.common import get_config, init_logger

from .errors import StructuralError
from .playwright_driver import PlaywrightDriver
from .session import BrowserSession
from .timeouts import Timeouts
from .topology import Topology


class BrowserManager:
    """
    Manages the browser and the sessions opened on it.

    Usage:
        with BrowserManager() as manager:
            session = manager.new_session()
            page = session.page_cache.open_page(url, user, "home")
    """

    # Default browser launch options
    DEFAULT_LAUNCH_OPTIONS: Dict[str, Any] = {
        "headless": True,
        "args": [
            "--ignore-certificate-errors",
        ],
    }

    # Default context options
    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "viewport": {"width": 1920, "height": 1080},
        "ignore_https_errors": True,
    }

    def __init__(
        self,
        headless: Optional[bool] = None,
        browser_type: Optional[str] = None,
    ):
        """
        Initialize browser manager.

        Args:
            headless: Run browser in headless mode (config `browser.headless`)
            browser_type: 'chromium', 'firefox' or 'webkit' (config `browser.type`)
        """
        if headless is None:
            headless = get_config("browser.headless", True)
            if isinstance(headless, str):
                headless = headless.lower() in ("1", "true", "yes")
        self.headless = headless
        self.browser_type = browser_type or get_config("browser.type", "chromium")

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: List[BrowserContext] = []

    def __enter__(self) -> "BrowserManager":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def start(self) -> None:
        """Start Playwright and launch browser."""
        if self.browser_type not in ("chromium", "firefox", "webkit"):
            raise StructuralError(f"Unknown browser type '{self.browser_type}'")

        init_logger()
        self._playwright = sync_playwright().start()

        launchers = {
            "chromium": self._playwright.chromium,
            "firefox": self._playwright.firefox,
            "webkit": self._playwright.webkit,
        }

        launch_options = {**self.DEFAULT_LAUNCH_OPTIONS, "headless": self.headless}
        self._browser = launchers[self.browser_type].launch(**launch_options)
        logger.debug(f"Browser started: {self.browser_type} (headless={self.headless})")

    def close(self) -> None:
        """Close all contexts and browser."""
        for context in self._contexts:
            context.close()
        self._contexts.clear()

        if self._browser:
            self._browser.close()
            self._browser = None

        if self._playwright:
            self._playwright.stop()
            self._playwright = None

        logger.debug("Browser closed")

    def new_session(
        self,
        timeouts: Optional[Timeouts] = None,
        topology: Optional[Topology] = None,
        **context_options: Any,
    ) -> BrowserSession:
        """
        Open a new page in an isolated context and wrap it in a session.

        Args:
            timeouts: Session timeouts (from configuration by default)
            topology: Applications topology
            **context_options: Additional Playwright context options
        """
        if not self._browser:
            raise StructuralError("Browser not started. Call start() first.")

        context = self._browser.new_context(**{**self.DEFAULT_CONTEXT_OPTIONS, **context_options})
        self._contexts.append(context)
        timeouts = timeouts or Timeouts.from_config()
        driver = PlaywrightDriver(context.new_page(), action_timeout=timeouts.short)
        return BrowserSession(driver, timeouts=timeouts, topology=topology)

    @property
    def browser(self) -> Optional[Browser]:
        return self._browser


__all__ = ["BrowserManager"]
