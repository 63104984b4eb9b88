"""
================================================================================
Element Finder
================================================================================

Element lookups of a browser session.

Key Features:
    - One-shot queries with transparent recovery from transient driver errors
    - Fail-safe visibility filtering (a failing visibility check means hidden)
    - Waits delegated to the Wait Engine, with fail / no-fail contract
    - Uniqueness check for single element waits
    - Race waits on several locators
    - Search through every frame of the page

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import allure
from loguru import logger

from .driver import NativeElement
from .errors import (
    DriverError,
    ElementNotFoundError,
    MultipleFoundError,
    WaitTimeoutError,
)
from .locators import Locator

if TYPE_CHECKING:
    from .element import ElementHandle
    from .session import BrowserSession


# Marker meaning "the session current frame"
CURRENT_FRAME = object()


class ElementFinder:
    """
    Find elements of the page displayed by a browser session.

    Example:
        finder = session.finder
        button = finder.wait_for_element(Locator.by_test_id("save"), timeout=10)
        rows = finder.wait_for_elements(Locator.css("tr"), parent=table, fail=False)
    """

    def __init__(self, session: "BrowserSession"):
        self.session = session

    @property
    def driver(self):
        return self.session.driver

    # ------------------------------------------------------------------
    # One-shot queries
    # ------------------------------------------------------------------

    def is_visible(self, native: NativeElement) -> bool:
        """Visibility check where any non-fatal driver error means hidden."""
        try:
            return bool(self.driver.is_displayed(native))
        except DriverError as ex:
            if not ex.retryable:
                raise
            logger.debug(f"Visibility check failed ({ex}), consider element as hidden")
            return False

    def find_elements(
        self,
        locator: Locator,
        parent: Optional["ElementHandle"] = None,
        frame=CURRENT_FRAME,
        displayed: bool = True,
        recovery: bool = True,
    ) -> List["ElementHandle"]:
        """
        Query the elements matching the locator.

        Args:
            locator: Element locator
            parent: Element to search under (its frame is then used)
            frame: Frame to search in, the session current frame by default
            displayed: Drop elements which are not displayed
            recovery: Retry on transient driver errors, otherwise return an
                empty list on any non-fatal driver error

        Returns:
            Handles of the matching elements, possibly empty

        Raises:
            FatalDriverError: If the session is no longer reachable
            DriverError: If transient errors persist beyond the retry cap
        """
        from .element import ElementHandle

        if parent is not None:
            frame = parent.frame
        elif frame is CURRENT_FRAME:
            frame = self.session.current_frame

        count = 1
        while True:
            try:
                if parent is not None and count > 1:
                    parent.recover()
                self.session.select_frame(frame)
                root = parent.native if parent is not None else None
                natives = self.driver.find_matches(locator, root)
                size = len(natives)
                handles = []
                for ordinal, native in enumerate(natives):
                    if displayed and not self.is_visible(native):
                        continue
                    handles.append(
                        ElementHandle(
                            self.session,
                            locator,
                            frame=frame,
                            native=native,
                            parent=parent,
                            ordinal=ordinal,
                            list_size=size,
                        )
                    )
                return handles
            except DriverError as ex:
                if not recovery:
                    if not ex.retryable:
                        raise
                    logger.debug(f"Finding elements '{locator}' failed without recovery: {ex}")
                    return []
                self.session.handle_driver_error(ex, f"finding elements '{locator}'", count)
                count += 1

    def find_element(
        self,
        locator: Locator,
        parent: Optional["ElementHandle"] = None,
        frame=CURRENT_FRAME,
        displayed: bool = True,
        recovery: bool = True,
    ) -> Optional["ElementHandle"]:
        """Query the first element matching the locator, None if there is none."""
        elements = self.find_elements(locator, parent, frame, displayed, recovery)
        return elements[0] if elements else None

    # ------------------------------------------------------------------
    # Waits
    # ------------------------------------------------------------------

    def _timeout(self, timeout: Optional[float]) -> float:
        return self.session.timeouts.default if timeout is None else timeout

    def wait_for_elements(
        self,
        locator: Locator,
        parent: Optional["ElementHandle"] = None,
        fail: bool = True,
        timeout: Optional[float] = None,
        displayed: bool = True,
        frame=CURRENT_FRAME,
    ) -> List["ElementHandle"]:
        """
        Wait until at least one element matches the locator.

        Returns:
            Displayed matches (or all matches when displayed is False), an
            empty list on a no-fail timeout

        Raises:
            ElementNotFoundError: If nothing matched in time and fail is True
        """
        timeout = self._timeout(timeout)
        description = f"elements '{locator}' found"
        if parent is not None:
            description += f" under {parent}"
        try:
            found = self.session.waiter.wait(
                lambda: self.find_elements(locator, parent, frame, displayed),
                timeout,
                fail=fail,
                description=description,
            )
        except WaitTimeoutError as ex:
            raise ElementNotFoundError(str(ex)) from ex
        return found or []

    def wait_for_element(
        self,
        locator: Locator,
        parent: Optional["ElementHandle"] = None,
        fail: bool = True,
        timeout: Optional[float] = None,
        displayed: bool = True,
        single: bool = True,
        frame=CURRENT_FRAME,
    ) -> Optional["ElementHandle"]:
        """
        Wait until an element matches the locator.

        Args:
            single: Several matching elements is an error when True, the
                first one is returned with a warning otherwise

        Returns:
            The found element, or None on a no-fail timeout

        Raises:
            ElementNotFoundError: If nothing matched in time and fail is True
            MultipleFoundError: If several elements matched and single is True
        """
        elements = self.wait_for_elements(locator, parent, fail, timeout, displayed, frame)
        if not elements:
            return None
        if len(elements) > 1:
            if single:
                raise MultipleFoundError(
                    f"Found {len(elements)} elements for '{locator}' while only one was expected",
                    elements,
                )
            logger.warning(
                f"Found more than one element ({len(elements)}) for '{locator}', "
                "return the first one!"
            )
        return elements[0]

    def wait_for_any(
        self,
        locators: Sequence[Locator],
        parent: Optional["ElementHandle"] = None,
        fail: bool = True,
        timeout: Optional[float] = None,
        displayed: bool = True,
    ) -> Optional[Tuple[int, "ElementHandle"]]:
        """
        Wait until one of several locators matches an element.

        Returns:
            Tuple (locator index, first element found), or None on a no-fail
            timeout

        Raises:
            ElementNotFoundError: If no locator matched in time and fail is True
        """
        candidates = [
            (locator, lambda loc: self.find_elements(loc, parent, displayed=displayed))
            for locator in locators
        ]
        try:
            result = self.session.waiter.race(
                candidates,
                self._timeout(timeout),
                fail=fail,
                description="any of " + ", ".join(f"'{loc}'" for loc in locators),
            )
        except WaitTimeoutError as ex:
            raise ElementNotFoundError("Cannot find any of the researched elements.") from ex
        if result is None:
            return None
        index, _, elements = result
        return index, elements[0]

    def wait_while_displayed(
        self,
        element: "ElementHandle",
        timeout: Optional[float] = None,
        fail: bool = True,
    ) -> bool:
        """Wait until the element vanishes (hidden, detached or unreachable)."""
        return self.session.waiter.wait_while(
            lambda: element.is_displayed(recovery=False),
            self._timeout(timeout),
            fail=fail,
            description=f"{element} displayed",
        )

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    @allure.step("Find elements '{locator}' in all frames")
    def find_in_frames(self, locator: Locator) -> Optional[List["ElementHandle"]]:
        """
        Find displayed elements in the current frame or in any frame of the page.

        On success the frame holding the elements becomes the current frame;
        otherwise the top-level document is selected and None is returned.
        """
        from .frame_scanner import FrameScanner

        return FrameScanner(self.session).find(locator)


__all__ = ["CURRENT_FRAME", "ElementFinder"]
