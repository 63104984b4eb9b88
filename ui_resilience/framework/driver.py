"""
================================================================================
Driver Adapter
================================================================================

Boundary between the resilience core and a concrete browser automation
library. Implementations translate every library exception into a
`DriverError` carrying an `ErrorKind`, so the core never depends on
library-specific exception types.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Union

from .locators import Locator


# Native element reference, opaque to the core
NativeElement = Any

FrameTarget = Union[int, str, NativeElement]


class DriverAdapter(ABC):
    """
    Minimal driver contract consumed by the framework.

    Frame selection is a property of the driver session: `switch_to_frame()`
    moves relatively from the currently selected frame, like WebDriver's
    `switchTo().frame()`.
    """

    # Some drivers ignore the first click on a dialog close button
    ignores_first_close_click: bool = False

    @abstractmethod
    def find_matches(
        self,
        locator: Locator,
        parent: Optional[NativeElement] = None,
    ) -> List[NativeElement]:
        """Return matches of the locator under parent (or the selected document)."""

    @abstractmethod
    def click(self, element: NativeElement) -> None:
        ...

    @abstractmethod
    def type_text(self, element: NativeElement, text: str) -> None:
        """Replace the content of an editable element with the given text."""

    @abstractmethod
    def get_text(self, element: NativeElement) -> str:
        ...

    @abstractmethod
    def get_attribute(self, element: NativeElement, name: str) -> Optional[str]:
        ...

    def same_element(self, first: NativeElement, second: NativeElement) -> bool:
        """Tell whether two native references point to the same page element."""
        return first is second

    @abstractmethod
    def is_displayed(self, element: NativeElement) -> bool:
        ...

    @abstractmethod
    def is_enabled(self, element: NativeElement) -> bool:
        ...

    @abstractmethod
    def scroll_into_view(self, element: NativeElement) -> None:
        ...

    @abstractmethod
    def switch_to_default_content(self) -> None:
        ...

    @abstractmethod
    def switch_to_frame(self, target: FrameTarget) -> None:
        """Select a child frame of the current frame by index, name or element."""

    @abstractmethod
    def navigate(self, url: str) -> None:
        ...

    @abstractmethod
    def current_url(self) -> str:
        ...

    @abstractmethod
    def refresh(self) -> None:
        ...

    @abstractmethod
    def window_handle(self) -> Optional[str]:
        ...

    @abstractmethod
    def alert_text(self) -> Optional[str]:
        """Return the text of the pending alert, or None if there is none."""

    @abstractmethod
    def accept_alert(self) -> None:
        ...

    @abstractmethod
    def screenshot(self) -> bytes:
        ...


__all__ = [
    "NativeElement",
    "FrameTarget",
    "DriverAdapter",
]
