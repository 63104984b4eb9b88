"""
================================================================================
Element Handle
================================================================================

Handle on a page element which recovers itself when its native reference
becomes stale.

Each handle remembers how it was found: its locator, its frame, its parent
handle, and its ordinal within the match list together with the list size.
When an operation fails on a transient driver error, the handle queries its
locator again (recovering its parent first) and prefers the match found at
the same ordinal when the sibling count is unchanged. The operation is then
retried, up to the configured number of recovery attempts.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, Optional, TypeVar

import allure
from loguru import logger

from .driver import NativeElement
from .errors import DriverError, TransientDriverError
from .frames import FrameContext
from .locators import Locator

if TYPE_CHECKING:
    from .session import BrowserSession


T = TypeVar("T")


class ElementHandle:
    """
    Self-recovering element handle.

    Attributes:
        locator: Locator the element was found with
        frame: Frame holding the element (None for the top-level document)
        parent: Handle the element was searched under, if any
        ordinal: Position of the element in the match list
        list_size: Size of the match list when the element was found
        stale: Whether the native reference is known to be stale
    """

    def __init__(
        self,
        session: "BrowserSession",
        locator: Locator,
        frame: Optional[FrameContext] = None,
        native: Optional[NativeElement] = None,
        parent: Optional["ElementHandle"] = None,
        ordinal: int = 0,
        list_size: int = 1,
    ):
        self.session = session
        self.locator = locator
        self.frame = frame
        self.parent = parent
        self.ordinal = ordinal
        self.list_size = list_size
        self.stale = native is None
        self._native = native

    def __repr__(self) -> str:
        where = f" in {self.frame}" if self.frame is not None else ""
        under = f" under {self.parent.locator}" if self.parent is not None else ""
        position = f" #{self.ordinal}/{self.list_size}" if self.list_size > 1 else ""
        return f"<Element '{self.locator}'{position}{under}{where}>"

    __str__ = __repr__

    @property
    def driver(self):
        return self.session.driver

    @property
    def max_attempts(self) -> int:
        return self.session.max_recovery_attempts

    @property
    def native(self) -> NativeElement:
        """Native reference, found again if it has been released."""
        if self._native is None:
            self._recover_loop()
            if self._native is None:
                raise TransientDriverError(f"Cannot find {self} again")
        return self._native

    def release(self) -> None:
        """Drop the native reference; it is found again on next use."""
        self._native = None
        self.stale = True

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def _query(self) -> List[NativeElement]:
        self.session.select_frame(self.frame)
        root = self.parent.native if self.parent is not None else None
        return self.driver.find_matches(self.locator, root)

    def recover(self, attempt: int = 0) -> bool:
        """
        Find the element again.

        Args:
            attempt: Recovery attempt number; the last allowed attempt
                accepts approximate matches

        Returns:
            True if a native reference has been found again

        Raises:
            DriverError: If the driver fails while searching
        """
        last = attempt >= self.max_attempts
        logger.debug(f"Recover {self} (attempt {attempt})")

        if self.parent is not None and not self.parent.recover(attempt):
            return False

        natives = self._query()
        recovered = None

        if self.list_size <= 1:
            if natives:
                recovered = natives[0]
            elif last:
                logger.warning(
                    f"Recovery cannot find {self} again, try with any possible frame"
                )
                found = self.session.finder.find_in_frames(self.locator)
                if found:
                    recovered = found[0].native
                    self.frame = self.session.current_frame
        else:
            if not natives:
                logger.debug(f"No element found for {self.locator}, cannot recover")
                return False
            same_size = len(natives) == self.list_size
            candidate = None
            ambiguous = False
            for index, native in enumerate(natives):
                same_place = same_size and index == self.ordinal
                if self.session.finder.is_visible(native):
                    if same_place:
                        recovered = native
                        break
                    if candidate is None:
                        candidate = native
                    else:
                        ambiguous = True
                elif same_place:
                    candidate = native
            if recovered is None and candidate is not None:
                if last:
                    logger.warning(f"Last recovery attempt for {self}, use closest match")
                    recovered = candidate
                elif ambiguous:
                    logger.debug(f"Several elements visible for {self.locator} but not at the same index")

        if recovered is None:
            return False

        self._native = recovered
        self.stale = False
        return True

    def _recover_loop(self, error: Optional[DriverError] = None) -> None:
        attempt = 0
        while True:
            try:
                if self.recover(attempt):
                    return
                if attempt >= self.max_attempts:
                    logger.warning(
                        f"Cannot recover {self} even after {self.max_attempts} retries... give up"
                    )
                    return
            except DriverError as ex:
                if not ex.retryable:
                    raise
                if attempt >= self.max_attempts:
                    logger.error(
                        f"More than {self.max_attempts} errors occurred when trying to find "
                        f"{self} again... give up"
                    )
                    raise (error or ex)
                logger.debug(f"Error when trying to find {self} again: {ex}")
            self.session.waiter.pause(self.session.waiter.interval)
            attempt += 1

    def _run(self, title: str, operation: Callable[[NativeElement], T], recovery: bool = True) -> T:
        count = 1
        while True:
            try:
                self.session.select_frame(self.frame)
                return operation(self.native)
            except DriverError as ex:
                if not recovery:
                    raise
                self.session.handle_driver_error(ex, f"{title} {self}", count)
                self.stale = True
                self._recover_loop(ex)
                count += 1

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def click(self, recovery: bool = True) -> None:
        with allure.step(f"Click {self.locator}"):
            self._run("clicking", self.driver.click, recovery)

    def type_text(self, text: str, recovery: bool = True) -> None:
        self._run("typing text in", lambda native: self.driver.type_text(native, text), recovery)

    @property
    def text(self) -> str:
        return self._run("getting text of", self.driver.get_text)

    def get_text(self, recovery: bool = True) -> str:
        return self._run("getting text of", self.driver.get_text, recovery)

    def get_attribute(self, name: str, recovery: bool = True) -> Optional[str]:
        return self._run(
            f"getting attribute '{name}' of",
            lambda native: self.driver.get_attribute(native, name),
            recovery,
        )

    def is_displayed(self, recovery: bool = True) -> bool:
        """
        Tell whether the element is displayed.

        Without recovery, any non-fatal driver error means not displayed.
        """
        if recovery:
            return bool(self._run("checking display of", self.driver.is_displayed))
        try:
            self.session.select_frame(self.frame)
            return bool(self.driver.is_displayed(self.native))
        except DriverError as ex:
            if not ex.retryable:
                raise
            return False

    def is_enabled(self, recovery: bool = True) -> bool:
        return bool(self._run("checking enablement of", self.driver.is_enabled, recovery))

    def scroll_into_view(self, recovery: bool = True) -> None:
        self._run("scrolling to", self.driver.scroll_into_view, recovery)

    def is_in_frame(self) -> bool:
        return self.frame is not None

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------

    def find_elements(
        self, locator: Locator, displayed: bool = True, recovery: bool = True
    ) -> List["ElementHandle"]:
        return self.session.finder.find_elements(
            locator, parent=self, displayed=displayed, recovery=recovery
        )

    def find_element(
        self, locator: Locator, displayed: bool = True, recovery: bool = True
    ) -> Optional["ElementHandle"]:
        return self.session.finder.find_element(
            locator, parent=self, displayed=displayed, recovery=recovery
        )

    def wait_for_elements(self, locator: Locator, **kwargs: Any) -> List["ElementHandle"]:
        return self.session.finder.wait_for_elements(locator, parent=self, **kwargs)

    def wait_for_element(self, locator: Locator, **kwargs: Any) -> Optional["ElementHandle"]:
        return self.session.finder.wait_for_element(locator, parent=self, **kwargs)

    def wait_while_displayed(self, timeout: Optional[float] = None, fail: bool = True) -> bool:
        return self.session.finder.wait_while_displayed(self, timeout, fail)


__all__ = ["ElementHandle"]
