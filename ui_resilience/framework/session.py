"""
================================================================================
Browser Session
================================================================================

One browser session: the driver adapter plus the state the framework shares
across elements, pages and dialogs.

    - current frame (the only mutable frame selection of the session)
    - waiter and timeouts
    - element finder
    - page type registry and page cache
    - topology (login / logout knowledge)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Optional, Set

import allure
from loguru import logger

from .driver import DriverAdapter
from .errors import DriverError, ResilienceError
from .finder import ElementFinder
from .frames import FrameContext, same_frame
from .timeouts import Timeouts
from .wait_engine import TimeoutBudget, Waiter

if TYPE_CHECKING:
    from .page_registry import PageCache, PageTypeRegistry
    from .topology import Topology


_KEEP = object()


class BrowserSession:
    """
    Shared state of a browser automation session.

    Example:
        session = BrowserSession(driver)
        with session.frame_scope(IndexedFrame(0)):
            session.finder.wait_for_element(Locator.css("#save"))
    """

    def __init__(
        self,
        driver: DriverAdapter,
        timeouts: Optional[Timeouts] = None,
        waiter: Optional[Waiter] = None,
        topology: Optional["Topology"] = None,
        registry: Optional["PageTypeRegistry"] = None,
    ):
        from .page_registry import PageCache, default_registry
        from .topology import StaticTopology

        self.driver = driver
        self.timeouts = timeouts or Timeouts.from_config()
        self.waiter = waiter or Waiter.from_timeouts(self.timeouts)
        self.topology: "Topology" = topology or StaticTopology()
        self.registry: "PageTypeRegistry" = registry or default_registry
        self.current_frame: Optional[FrameContext] = None
        self.workaround_locations: Set[str] = set()
        self.finder = ElementFinder(self)
        self.page_cache: "PageCache" = PageCache(self)

    @property
    def max_recovery_attempts(self) -> int:
        return self.timeouts.max_recovery_attempts

    def new_budget(self) -> TimeoutBudget:
        return TimeoutBudget(clock=self.waiter.now)

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def select_frame(self, frame: Optional[FrameContext], force: bool = False) -> None:
        """
        Select the given frame, None meaning the top-level document.

        Nothing is sent to the driver when the frame is already the current
        one, unless force is set.
        """
        if not force and same_frame(self.current_frame, frame):
            return
        if frame is None:
            self.driver.switch_to_default_content()
        else:
            frame.switch_to(self.driver)
        self.current_frame = frame

    def reset_frame(self) -> None:
        """Go back to the top-level document."""
        self.driver.switch_to_default_content()
        self.current_frame = None

    def restore_frame(self, frame: Optional[FrameContext]) -> None:
        """Restore a previously stored frame, or the top-level document if it has vanished."""
        if frame is not None and not frame.is_displayed():
            logger.debug(f"Stored frame {frame} is no longer displayed, reset frame")
            self.reset_frame()
            return
        try:
            self.select_frame(frame)
        except DriverError as ex:
            logger.warning(f"Cannot restore {frame} ({ex}), reset frame instead")
            self.reset_frame()

    @contextmanager
    def frame_scope(self, frame=_KEEP) -> Iterator[Optional[FrameContext]]:
        """
        Run a block with the given frame selected.

        The frame current when entering is restored on every exit path.
        """
        stored = self.current_frame
        if frame is not _KEEP:
            self.select_frame(frame)
        try:
            yield self.current_frame
        finally:
            if not same_frame(self.current_frame, stored):
                self.restore_frame(stored)

    # ------------------------------------------------------------------
    # Alerts and driver failures
    # ------------------------------------------------------------------

    def purge_alerts(self, action: str) -> int:
        """
        Accept all pending alerts.

        Returns:
            Number of purged alerts

        Raises:
            ResilienceError: If more alerts than allowed keep popping up
        """
        purged = 0
        while True:
            text = self.driver.alert_text()
            if text is None:
                return purged
            purged += 1
            if purged > self.timeouts.max_alerts:
                raise ResilienceError("Too many unexpected alerts, give up!")
            logger.warning(f"Unexpected alert '{text}' purged while {action}")
            self.driver.accept_alert()
            self.waiter.pause(1)

    def handle_driver_error(self, error: DriverError, title: str, count: int) -> None:
        """
        Decide whether an operation interrupted by a driver error may be retried.

        Returns normally when the caller should retry, re-raises the error
        otherwise.

        Args:
            error: The caught driver error
            title: Description of the interrupted operation
            count: Number of attempts already made
        """
        if self.purge_alerts(title) > 0:
            return

        if not error.retryable:
            logger.error(f"Fatal driver error when {title}: {error}... give up")
            raise error

        if count > self.max_recovery_attempts:
            logger.error(
                f"More than {self.max_recovery_attempts} driver errors occurred when "
                f"{title}... give up"
            )
            raise error

        logger.warning(
            f"Driver error ({error.kind.value}) when {title}, retry #{count} in "
            f"{self.timeouts.recovery_pause}s"
        )
        self.waiter.pause(self.timeouts.recovery_pause)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def navigate(self, url: str) -> None:
        logger.info(f"Navigate to {url}")
        self.driver.navigate(url)
        self.current_frame = None
        self.purge_alerts(f"navigating to {url}")

    def refresh(self) -> None:
        logger.info(f"Refresh {self.driver.current_url()}")
        self.driver.refresh()
        self.current_frame = None
        self.purge_alerts("refreshing page")

    def window_handle(self) -> Optional[str]:
        return self.driver.window_handle()

    def attach_screenshot(self, name: str = "screenshot") -> None:
        """Attach a screenshot of the current page to the Allure report."""
        try:
            allure.attach(
                self.driver.screenshot(),
                name=name,
                attachment_type=allure.attachment_type.PNG,
            )
        except DriverError as ex:
            logger.warning(f"Failed to capture screenshot: {ex}")


__all__ = ["BrowserSession"]
