"""
================================================================================
Dialogs
================================================================================

Lifecycle of transient dialog windows opened from a page.

    CLOSED --open()--> OPENING --dialog root found--> OPEN
    OPEN --close()/cancel()--> CLOSING --dialog root vanished--> CLOSED

Opening a dialog records the dialogs already displayed, so that only a newly
displayed dialog root is adopted. Several new roots (e.g. the trigger click
was registered twice) are resolved by closing all of them but the last one.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Optional, Tuple, Union

import allure
from loguru import logger

from .element import ElementHandle
from .finder import CURRENT_FRAME
from .errors import DriverError, ResilienceError, StructuralError, WaitTimeoutError
from .frames import FrameContext
from .locators import Locator

if TYPE_CHECKING:
    from .page_base import BasePage


# id attribute (None when missing) and native reference of a dialog root
RootIdentity = Tuple[Optional[str], Any]


class DialogState(Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    CLOSING = "closing"


class AbstractDialog(ABC):
    """
    Dialog window displayed over a page.

    Subclasses provide the close button locator; they may also override the
    hooks `handle_confirmation_popup()` and `wait_for_loading_end()`.

    Usage:
        class RenameDialog(AbstractDialog):
            def close_button_locator(self, validate):
                return Locator.css("button.ok" if validate else "button.cancel")

        dialog = RenameDialog(page, Locator.css("div[role='dialog']"))
        dialog.open(Locator.by_test_id("rename"))
        dialog.close()
    """

    # Attribute telling dialog roots apart
    IDENTITY_ATTRIBUTE = "id"

    # Time to look for dialog roots after a click on the opening element (seconds)
    OPEN_POLL_TIMEOUT = 1

    # Pause after having closed duplicated dialogs (seconds)
    DUPLICATES_PAUSE = 2

    def __init__(
        self,
        page: "BasePage",
        locator: Locator,
        frame: Optional[FrameContext] = None,
        parent: Optional[ElementHandle] = None,
    ):
        self.page = page
        self.session = page.session
        self.locator = locator
        self.frame = frame
        self.parent = parent
        self.element: Optional[ElementHandle] = None
        self.opening_element: Optional[ElementHandle] = None
        self.open_frame: Optional[FrameContext] = None
        self.state = DialogState.CLOSED
        self.max_attempts = self.session.max_recovery_attempts
        self.close_timeout = self.session.timeouts.close_dialog
        self.short_timeout = self.session.timeouts.short

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self.locator}' {self.state.value}>"

    @abstractmethod
    def close_button_locator(self, validate: bool) -> Optional[Locator]:
        """Locator of the button closing the dialog, validating or cancelling it."""

    def handle_confirmation_popup(self) -> None:
        pass

    def wait_for_loading_end(self) -> None:
        pass

    # ------------------------------------------------------------------
    # Dialog roots
    # ------------------------------------------------------------------

    @property
    def _search_frame(self):
        return CURRENT_FRAME if self.frame is None else self.frame

    def _find_roots(self) -> List[ElementHandle]:
        return self.session.finder.find_elements(
            self.locator,
            parent=self.parent,
            frame=self._search_frame,
            displayed=True,
        )

    def _wait_roots(self, timeout: float) -> List[ElementHandle]:
        return self.session.finder.wait_for_elements(
            self.locator,
            parent=self.parent,
            fail=False,
            timeout=timeout,
            frame=self._search_frame,
        )

    def _cancel_root(self, root: ElementHandle) -> None:
        locator = self.close_button_locator(False)
        if locator is None:
            raise StructuralError(f"Dialog {self.locator} cannot be cancelled, it has no cancel button")
        root.wait_for_element(locator, timeout=self.short_timeout).click()

    def _identity(self, element: ElementHandle) -> RootIdentity:
        """Identity of a dialog root: its id attribute and its native reference."""
        try:
            value = element.get_attribute(self.IDENTITY_ATTRIBUTE, recovery=False)
        except DriverError as ex:
            if not ex.retryable:
                raise
            value = None
        return value or None, element.native

    def _same_root(self, first: RootIdentity, second: RootIdentity) -> bool:
        if first[0] or second[0]:
            return first[0] == second[0]
        try:
            return self.session.driver.same_element(first[1], second[1])
        except DriverError as ex:
            if not ex.retryable:
                raise
            return False

    def _is_known(self, root: ElementHandle, known: List[RootIdentity]) -> bool:
        identity = self._identity(root)
        return any(self._same_root(identity, other) for other in known)

    def _select_new_root(self, known: List[RootIdentity]) -> Optional[ElementHandle]:
        roots = [r for r in self._wait_roots(self.OPEN_POLL_TIMEOUT) if not self._is_known(r, known)]
        if not roots:
            return None
        if len(roots) > 1:
            logger.warning(
                f"{len(roots)} dialogs '{self.locator}' opened, close all but the last one"
            )
            for extra in roots[:-1]:
                self._cancel_root(extra)
            self.session.waiter.pause(self.DUPLICATES_PAUSE)
        return roots[-1]

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------

    def _click_on_open_element(self, trigger: ElementHandle, attempt: int) -> None:
        with self.session.frame_scope(trigger.frame):
            if attempt == 0:
                self.session.waiter.wait(
                    lambda: trigger.is_enabled(),
                    self.short_timeout,
                    description=f"{trigger} enabled",
                )
            if attempt > 0 and not trigger.is_displayed(recovery=False):
                return
            if not trigger.is_in_frame():
                trigger.scroll_into_view()
            if attempt > 0 and not trigger.is_displayed(recovery=False):
                return
            trigger.click()
            self.handle_confirmation_popup()

    def open(self, trigger: Union[ElementHandle, Locator], _reopened: bool = False) -> ElementHandle:
        """
        Open the dialog by clicking on the trigger element.

        Returns:
            The dialog root element

        Raises:
            WaitTimeoutError: If no new dialog shows up after all retries
            StructuralError: If several dialogs opened and none can be cancelled
        """
        if isinstance(trigger, Locator):
            trigger = self.page.wait_for_element(trigger)

        with allure.step(f"Open dialog {self.locator}"):
            self.opening_element = trigger
            self.open_frame = self.session.current_frame
            self.state = DialogState.OPENING
            try:
                known = [self._identity(root) for root in self._find_roots()]
                self._click_on_open_element(trigger, 0)
                element = self._wait_new_root(trigger, known)
            except Exception:
                self.state = DialogState.CLOSED
                self.session.restore_frame(self.open_frame)
                raise

            self.element = element
            self.state = DialogState.OPEN
            self.wait_for_loading_end()

            if self.session.purge_alerts(f"opening dialog {self.locator}") > 0:
                if not self.element.is_displayed(recovery=False):
                    if _reopened:
                        raise ResilienceError(f"Dialog {self.locator} keeps being closed by alerts")
                    logger.warning(f"Dialog {self.locator} closed by an alert, open it again")
                    self.element = None
                    self.state = DialogState.CLOSED
                    self.session.restore_frame(self.open_frame)
                    return self.open(trigger, _reopened=True)

            return self.element

    def _wait_new_root(self, trigger: ElementHandle, known: List[RootIdentity]) -> ElementHandle:
        element = self._select_new_root(known)
        count = 0
        while element is None:
            count += 1
            if count > self.max_attempts:
                raise WaitTimeoutError(f"Failing to open the dialog {self.locator}")
            logger.warning(f"Dialog '{self.locator}' not opened yet, click again (#{count})")
            try:
                self._click_on_open_element(trigger, count)
            except DriverError as ex:
                if not ex.retryable:
                    raise
                logger.debug(f"Click on opening element failed: {ex}")
            element = self._select_new_root(known)
        return element

    def opened(self) -> ElementHandle:
        """
        Adopt an already opened dialog.

        Raises:
            WaitTimeoutError: If no dialog is displayed
        """
        element = self._select_new_root([])
        if element is None:
            raise WaitTimeoutError(f"Cannot find any dialog with locator: {self.locator}")
        self.element = element
        self.open_frame = self.session.current_frame
        self.state = DialogState.OPEN
        return element

    def is_opened(self, seconds: float = 1) -> bool:
        return bool(self._wait_roots(seconds))

    # ------------------------------------------------------------------
    # Closing
    # ------------------------------------------------------------------

    def close_action(self, validate: bool) -> None:
        locator = self.close_button_locator(validate)
        if locator is None:
            raise StructuralError(f"{type(self).__name__} has no close button")
        self.element.wait_for_element(locator, timeout=self.short_timeout).click()

    def _still_displayed(self) -> bool:
        return self.element.is_displayed(recovery=False)

    def close(self, validate: bool = True) -> None:
        """
        Close the dialog by clicking on its validate (or cancel) button.

        Raises:
            WaitTimeoutError: If the dialog is still displayed after the
                close timeout
        """
        if self.element is None:
            self.opened()

        with allure.step(f"Close dialog {self.locator}"):
            self.state = DialogState.CLOSING
            closed = False
            try:
                self.close_action(validate)
                closed = self.session.waiter.wait_while(
                    self._still_displayed,
                    self.close_timeout,
                    fail=not self.session.driver.ignores_first_close_click,
                    description=f"dialog {self.locator} displayed",
                )
                if not closed:
                    logger.warning(f"Dialog {self.locator} still displayed, close it again")
                    self.close_action(validate)
                    closed = self.session.waiter.wait_while(
                        self._still_displayed,
                        self.close_timeout,
                        description=f"dialog {self.locator} displayed",
                    )
            finally:
                if closed or not self._still_displayed():
                    self.state = DialogState.CLOSED
                    self.element = None
                else:
                    self.state = DialogState.OPEN
                self.session.restore_frame(self.open_frame)

    def cancel(self) -> None:
        self.close(validate=False)

    def cancel_all(self) -> int:
        """
        Cancel every opened dialog matching the locator.

        Returns:
            Number of dialogs successfully cancelled
        """
        cancelled = 0
        for root in self._wait_roots(self.short_timeout):
            try:
                self._cancel_root(root)
                cancelled += 1
            except ResilienceError as ex:
                if isinstance(ex, DriverError) and not ex.retryable:
                    raise
                logger.warning(f"Cannot cancel dialog {root}: {ex}")
        self.element = None
        self.state = DialogState.CLOSED
        return cancelled

    def closed_before_timeout(self, seconds: float) -> None:
        """Wait for the dialog to close, if it shows up at all."""
        if self.is_opened(self.short_timeout):
            if self.element is None:
                self.opened()
            self.element.wait_while_displayed(seconds)
            self.element = None
            self.state = DialogState.CLOSED

    def close_if_opened_before_timeout(self, seconds: float) -> bool:
        """Close the dialog if it opens within the given time."""
        if not self.is_opened(seconds):
            return False
        self.opened()
        self.close()
        return True


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip().lower()


class ConfirmationDialog(AbstractDialog):
    """Dialog closed by buttons identified by their label."""

    BUTTON_LOCATOR = Locator.tag("button")

    def __init__(
        self,
        page: "BasePage",
        locator: Locator,
        ok_text: str = "OK",
        cancel_text: str = "Cancel",
        frame: Optional[FrameContext] = None,
    ):
        super().__init__(page, locator, frame=frame)
        self.ok_text = ok_text
        self.cancel_text = cancel_text

    def close_button_locator(self, validate: bool) -> Optional[Locator]:
        return None

    def _button(self, root: ElementHandle, label: str) -> ElementHandle:
        expected = _normalize(label)
        for button in root.wait_for_elements(self.BUTTON_LOCATOR, timeout=self.short_timeout):
            if _normalize(button.get_text()) == expected:
                return button
        raise StructuralError(f"No button '{label}' in dialog {self.locator}")

    def close_action(self, validate: bool) -> None:
        self._button(self.element, self.ok_text if validate else self.cancel_text).click()

    def _cancel_root(self, root: ElementHandle) -> None:
        self._button(root, self.cancel_text).click()


__all__ = [
    "DialogState",
    "AbstractDialog",
    "ConfirmationDialog",
]
