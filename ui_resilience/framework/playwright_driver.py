"""
================================================================================
Playwright Driver Adapter
================================================================================

`DriverAdapter` implementation over a synchronous Playwright page.

Frame selection is emulated on top of Playwright frames: the adapter keeps
the currently selected frame and resolves element queries against it.
JavaScript dialogs (alerts, confirms, prompts) are accepted as soon as they pop
up, since a pending dialog blocks every Playwright action. Their messages are
queued and exposed through `alert_text()` / `accept_alert()`.

Playwright errors are classified by message into an `ErrorKind`:

    detached element / destroyed context   -> STALE_REFERENCE
    closed page, context or browser        -> FATAL
    pending dialog                         -> UNHANDLED_ALERT
    timeouts and anything else             -> TRANSPORT

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Iterator, List, Optional

from loguru import logger
from playwright.sync_api import (
    Dialog,
    ElementHandle as PlaywrightElement,
    Error as PlaywrightError,
    Frame,
    Page,
    TimeoutError as PlaywrightTimeoutError,
)

from .driver import DriverAdapter, FrameTarget, NativeElement
from .errors import DriverError, ErrorKind, TransientDriverError
from .locators import Locator


STALE_MARKERS = (
    "not attached",
    "detached",
    "execution context was destroyed",
    "cannot find context",
    "node is detached",
)

FATAL_MARKERS = (
    "target closed",
    "target page, context or browser has been closed",
    "browser has been closed",
    "browser has disconnected",
    "connection closed",
)

ALERT_MARKERS = ("dialog",)


def classify_error(message: str) -> ErrorKind:
    """Map a Playwright error message to an ErrorKind."""
    text = message.lower()
    if any(marker in text for marker in FATAL_MARKERS):
        return ErrorKind.FATAL
    if any(marker in text for marker in STALE_MARKERS):
        return ErrorKind.STALE_REFERENCE
    if any(marker in text for marker in ALERT_MARKERS):
        return ErrorKind.UNHANDLED_ALERT
    return ErrorKind.TRANSPORT


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Translate Playwright errors raised in the block into DriverError."""
    try:
        yield
    except PlaywrightTimeoutError as ex:
        raise DriverError.from_kind(ErrorKind.TRANSPORT, f"{action}: {ex.message}") from ex
    except PlaywrightError as ex:
        raise DriverError.from_kind(classify_error(ex.message), f"{action}: {ex.message}") from ex


class PlaywrightDriver(DriverAdapter):
    """
    Driver adapter over `playwright.sync_api.Page`.

    Usage:
        with sync_playwright() as p:
            page = p.chromium.launch().new_page()
            session = BrowserSession(PlaywrightDriver(page))
    """

    def __init__(self, page: Page, action_timeout: float = 10):
        """
        Initialize adapter.

        Args:
            page: Playwright page
            action_timeout: Timeout of single Playwright actions (seconds)
        """
        self.page = page
        self.action_timeout_ms = action_timeout * 1000
        self._frame: Frame = page.main_frame
        self._alerts: List[str] = []
        self._handle = uuid.uuid4().hex
        page.on("dialog", self._on_dialog)

        browser = page.context.browser
        self.browser_name = browser.browser_type.name if browser is not None else ""
        # WebKit may ignore the first click on dialog close buttons
        self.ignores_first_close_click = self.browser_name == "webkit"

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def find_matches(
        self,
        locator: Locator,
        parent: Optional[NativeElement] = None,
    ) -> List[NativeElement]:
        with translate_errors(f"Find '{locator}'"):
            root = parent if parent is not None else self._frame
            return root.query_selector_all(locator.selector)

    def click(self, element: PlaywrightElement) -> None:
        with translate_errors("Click"):
            element.click(timeout=self.action_timeout_ms)

    def type_text(self, element: PlaywrightElement, text: str) -> None:
        with translate_errors("Type text"):
            element.fill(text, timeout=self.action_timeout_ms)

    def get_text(self, element: PlaywrightElement) -> str:
        with translate_errors("Get text"):
            return element.inner_text(timeout=self.action_timeout_ms)

    def get_attribute(self, element: PlaywrightElement, name: str) -> Optional[str]:
        with translate_errors(f"Get attribute '{name}'"):
            return element.get_attribute(name)

    def same_element(self, first: PlaywrightElement, second: PlaywrightElement) -> bool:
        # Every query returns new handles, compare the nodes in the page
        if first is second:
            return True
        with translate_errors("Compare elements"):
            return bool(first.evaluate("(node, other) => node === other", second))

    def is_displayed(self, element: PlaywrightElement) -> bool:
        with translate_errors("Check visibility"):
            return element.is_visible()

    def is_enabled(self, element: PlaywrightElement) -> bool:
        with translate_errors("Check enablement"):
            return element.is_enabled()

    def scroll_into_view(self, element: PlaywrightElement) -> None:
        with translate_errors("Scroll into view"):
            element.scroll_into_view_if_needed(timeout=self.action_timeout_ms)

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def switch_to_default_content(self) -> None:
        self._frame = self.page.main_frame

    def switch_to_frame(self, target: FrameTarget) -> None:
        with translate_errors(f"Switch to frame {target}"):
            if isinstance(target, int):
                frames = self._frame.query_selector_all("iframe")
                if target >= len(frames):
                    raise TransientDriverError(f"No frame at index {target}")
                child = frames[target].content_frame()
            elif isinstance(target, str):
                child = next(
                    (f for f in self._frame.child_frames if f.name == target),
                    None,
                )
                if child is None:
                    element = self._frame.query_selector(
                        f"iframe[name='{target}'], iframe[id='{target}']"
                    )
                    child = element.content_frame() if element is not None else None
            else:
                child = target.content_frame()
        if child is None:
            raise TransientDriverError(f"Frame {target} is not available")
        self._frame = child

    # ------------------------------------------------------------------
    # Page
    # ------------------------------------------------------------------

    def navigate(self, url: str) -> None:
        with translate_errors(f"Navigate to {url}"):
            self.page.goto(url)
        self._frame = self.page.main_frame

    def current_url(self) -> str:
        return self.page.url

    def refresh(self) -> None:
        with translate_errors("Refresh"):
            self.page.reload()
        self._frame = self.page.main_frame

    def window_handle(self) -> Optional[str]:
        return self._handle

    def _on_dialog(self, dialog: Dialog) -> None:
        self._alerts.append(dialog.message)
        try:
            dialog.accept()
        except PlaywrightError as ex:
            logger.warning(f"Cannot accept {dialog.type} '{dialog.message}': {ex.message}")
            return
        logger.debug(f"Accepted {dialog.type} '{dialog.message}'")

    def alert_text(self) -> Optional[str]:
        return self._alerts[0] if self._alerts else None

    def accept_alert(self) -> None:
        if self._alerts:
            self._alerts.pop(0)

    def screenshot(self) -> bytes:
        with translate_errors("Screenshot"):
            return self.page.screenshot(full_page=True)


__all__ = [
    "classify_error",
    "translate_errors",
    "PlaywrightDriver",
]
