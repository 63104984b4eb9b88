"""
================================================================================
UI Resilience Framework
================================================================================

Resilience layer between scenario code and a browser automation driver.

Components:
    - wait_engine: Deadline-bounded polling and timeout budgets
    - element / finder: Self-recovering element handles and lookups
    - frame_scanner: Search of elements through nested frames
    - page_base / page_registry: Page objects and their identity cache
    - dialog: Dialog windows lifecycle
    - workaround: Recovery workarounds for known flaky symptoms
    - playwright_driver / browser_manager: Playwright bindings

Author: Automation Team
License: MIT
================================================================================
"""

from .errors import (
    DriverError,
    ElementNotFoundError,
    ErrorKind,
    FatalDriverError,
    MultipleFoundError,
    ResilienceError,
    StructuralError,
    TransientDriverError,
    WaitTimeoutError,
    WorkaroundFailedError,
)
from .timeouts import Timeouts
from .wait_engine import TimeoutBudget, Waiter
from .locators import FRAME_LOCATOR, Locator
from .driver import DriverAdapter
from .frames import ElementFrame, EmbeddedFrame, FrameContext, IndexedFrame, NamedFrame
from .element import ElementHandle
from .finder import ElementFinder
from .frame_scanner import FrameScanner
from .session import BrowserSession
from .topology import FormLoginOperation, LoginOperation, StaticTopology, Topology, User
from .page_base import BasePage
from .page_registry import PageCache, PageTypeRegistry, default_registry
from .dialog import AbstractDialog, ConfirmationDialog, DialogState
from .conditions import Comparison
from .workaround import PageRefreshWorkaround, Workaround, run_with_workaround

__all__ = [
    "DriverError",
    "ElementNotFoundError",
    "ErrorKind",
    "FatalDriverError",
    "MultipleFoundError",
    "ResilienceError",
    "StructuralError",
    "TransientDriverError",
    "WaitTimeoutError",
    "WorkaroundFailedError",
    "Timeouts",
    "TimeoutBudget",
    "Waiter",
    "FRAME_LOCATOR",
    "Locator",
    "DriverAdapter",
    "ElementFrame",
    "EmbeddedFrame",
    "FrameContext",
    "IndexedFrame",
    "NamedFrame",
    "ElementHandle",
    "ElementFinder",
    "FrameScanner",
    "BrowserSession",
    "FormLoginOperation",
    "LoginOperation",
    "StaticTopology",
    "Topology",
    "User",
    "BasePage",
    "PageCache",
    "PageTypeRegistry",
    "default_registry",
    "AbstractDialog",
    "ConfirmationDialog",
    "DialogState",
    "Comparison",
    "PageRefreshWorkaround",
    "Workaround",
    "run_with_workaround",
]
