"""
================================================================================
Base Page Object
================================================================================

Foundation class for page objects managed by the page cache.

Provides:
    - Identity (location + user) and window handle
    - Per-page timeouts and a page-scoped timeout budget
    - Login transitions through the topology
    - Element helpers delegating to the session finder
    - Link clicks honouring the configured delays

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Hashable, List, Optional, Union

import allure
from loguru import logger

from .element import ElementHandle
from .locators import Locator

if TYPE_CHECKING:
    from .session import BrowserSession
    from .topology import LoginOperation


class BasePage:
    """
    Base class for all page objects.

    Pages are created by the page cache (see `PageCache.get_or_create`) and
    keyed by (location, identity). The same instance is reused as long as it
    stays in the cache; changing its identity goes through `login()`.

    Usage:
        @registry.register("login")
        class LoginPage(BasePage):
            READY_LOCATOR = Locator.by_test_id("login-form")
    """

    # Element whose display tells the page has finished loading
    READY_LOCATOR: Optional[Locator] = None

    # Tag the page was created with, set by the page registry
    page_type: Any = None

    def __init__(
        self,
        location: str,
        identity: Optional[Hashable],
        session: "BrowserSession",
        data: Optional[Dict[str, Any]] = None,
    ):
        self.location = location
        self.identity = identity
        self.session = session
        self.data: Dict[str, Any] = dict(data or {})
        self.handle: Optional[str] = None
        self.login_operation: Optional["LoginOperation"] = None
        # Set while the identity still has to be logged in on the page
        self.pending_login = False

        timeouts = session.timeouts
        self.timeout = timeouts.default
        self.open_timeout = timeouts.open_page
        self.short_timeout = timeouts.short
        self.delay_before_link_click = timeouts.delay_before_link_click
        self.delay_after_link_click = timeouts.delay_after_link_click

        self._budget = session.new_budget()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.location} as {self.identity}>"

    @property
    def finder(self):
        return self.session.finder

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Display the page, performing the pending login operation if any."""
        with allure.step(f"Open page {self.location}"):
            self.session.navigate(self.location)
            self.handle = self.session.window_handle()
            self.perform_pending_login()
            self.wait_for_loading_end()

    def refresh(self) -> None:
        """Refresh the page content, logging in again if the page asks for it."""
        self.session.refresh()
        if self.identity is not None and not self.pending_login:
            self.login_operation = self.session.topology.resolve_login_operation(
                self, self.identity
            )
            self.pending_login = self.login_operation is not None
        self.perform_pending_login()
        self.wait_for_loading_end()

    def perform_pending_login(self) -> bool:
        """
        Run the pending login operation.

        A pending login without operation is only recorded in the topology.
        """
        if not self.pending_login:
            return False
        operation = self.login_operation
        self.pending_login = False
        self.login_operation = None
        if operation is None:
            logger.debug(f"No login operation for {self.identity} on {self.location}")
            self.session.topology.login(self.location, self.identity)
            return False
        return operation.perform()

    def wait_for_loading_end(self) -> None:
        if self.READY_LOCATOR is not None:
            self.wait_for_element(self.READY_LOCATOR, timeout=self.open_timeout)

    def login(self, identity: Hashable, force: bool = False) -> bool:
        """
        Switch the page to the given identity.

        Nothing happens if the identity is already logged in, unless the
        login is forced. Otherwise the current identity is logged out first.

        Returns:
            True if a login transition occurred
        """
        topology = self.session.topology
        if not force and not topology.needs_login(self.location, identity):
            self.identity = identity
            return False

        logger.info(f"Login transition on {self.location}: {self.identity} -> {identity}")
        if self.identity is not None:
            topology.logout(self)
        self.identity = identity
        self.login_operation = topology.resolve_login_operation(self, identity)
        self.pending_login = True
        self.load()
        return True

    def logout_action(self) -> None:
        """Page-specific logout actions (e.g. user menu); nothing by default."""

    # ------------------------------------------------------------------
    # Timeout budget
    # ------------------------------------------------------------------

    def start_timeout(self, seconds: Optional[float] = None, message: str = "") -> None:
        seconds = self.timeout if seconds is None else seconds
        self._budget.start_timeout(seconds, message or f"Timeout of {seconds}s reached on {self}")

    def test_timeout(self) -> None:
        self._budget.test_timeout()

    def reset_timeout(self) -> None:
        self._budget.reset()

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def find_elements(self, locator: Locator, **kwargs: Any) -> List[ElementHandle]:
        return self.finder.find_elements(locator, **kwargs)

    def find_element(self, locator: Locator, **kwargs: Any) -> Optional[ElementHandle]:
        return self.finder.find_element(locator, **kwargs)

    def wait_for_elements(
        self,
        locator: Locator,
        fail: bool = True,
        timeout: Optional[float] = None,
        displayed: bool = True,
        parent: Optional[ElementHandle] = None,
    ) -> List[ElementHandle]:
        return self.finder.wait_for_elements(
            locator,
            parent=parent,
            fail=fail,
            timeout=self.timeout if timeout is None else timeout,
            displayed=displayed,
        )

    def wait_for_element(
        self,
        locator: Locator,
        fail: bool = True,
        timeout: Optional[float] = None,
        displayed: bool = True,
        single: bool = True,
        parent: Optional[ElementHandle] = None,
    ) -> Optional[ElementHandle]:
        return self.finder.wait_for_element(
            locator,
            parent=parent,
            fail=fail,
            timeout=self.timeout if timeout is None else timeout,
            displayed=displayed,
            single=single,
        )

    def click(self, locator: Locator) -> ElementHandle:
        element = self.wait_for_element(locator)
        element.click()
        return element

    def click_link(self, link: Union[Locator, ElementHandle]) -> ElementHandle:
        """Click a link, pausing before and after as configured."""
        element = link if isinstance(link, ElementHandle) else self.wait_for_element(link)
        with allure.step(f"Click link {element.locator}"):
            self.session.waiter.pause(self.delay_before_link_click / 1000)
            element.click()
            self.session.waiter.pause(self.delay_after_link_click / 1000)
        return element

    def type_text(self, locator: Locator, text: str) -> ElementHandle:
        element = self.wait_for_element(locator)
        element.type_text(text)
        return element


__all__ = ["BasePage"]
