"""
================================================================================
Workarounds
================================================================================

Known flaky symptoms cured by a corrective action (refresh the page, ...).

A workaround is tolerated once per page location: when the same location
needs a workaround again, the symptom is considered persistent and the
workaround fails instead of looping.

Usage:
    element = run_with_workaround(
        lambda: page.wait_for_element(Locator.css("#grid")),
        lambda: PageRefreshWorkaround(page, "Grid never displayed"),
        signature=ElementNotFoundError,
    )

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional, Tuple, Type, TypeVar, Union

from loguru import logger

from .errors import WorkaroundFailedError

if TYPE_CHECKING:
    from .dialog import AbstractDialog
    from .page_base import BasePage


T = TypeVar("T")

ErrorSignature = Union[
    Type[BaseException],
    Tuple[Type[BaseException], ...],
    Callable[[BaseException], bool],
]


class Workaround(ABC):
    """
    Corrective action applied on a page.

    Creating a workaround on a location which already got one raises
    `WorkaroundFailedError` when fail is set (an open dialog is cancelled
    first).
    """

    def __init__(
        self,
        page: "BasePage",
        message: str,
        fail: bool = True,
        dialog: Optional["AbstractDialog"] = None,
        report: bool = True,
    ):
        self.page = page
        self.message = message
        self.fail = fail
        self.dialog = dialog
        self.created = datetime.now()

        session = page.session
        if report:
            logger.warning(f"WORKAROUND: {message}")
            session.attach_screenshot(f"{type(page).__name__}_Workaround")

        if page.location in session.workaround_locations:
            if fail:
                if dialog is not None:
                    dialog.cancel()
                raise WorkaroundFailedError(message)
        else:
            session.workaround_locations.add(page.location)

    def __str__(self) -> str:
        kind = "failure" if self.fail else "normal"
        return (
            f"WORKAROUND: time creation={self.created:%Y%m%d-%H%M%S}, "
            f"message='{self.message}', kind={kind}"
        )

    @abstractmethod
    def execute(self) -> Any:
        ...


class PageRefreshWorkaround(Workaround):
    """Refresh the entire page."""

    def execute(self) -> None:
        logger.debug("Workaround: try to refresh the entire page...")
        self.page.refresh()


def _matches(error: BaseException, signature: ErrorSignature) -> bool:
    if isinstance(signature, tuple) or isinstance(signature, type):
        return isinstance(error, signature)
    return bool(signature(error))


def run_with_workaround(
    action: Callable[[], T],
    workaround: Callable[[], Workaround],
    signature: ErrorSignature,
) -> T:
    """
    Run an action, applying a workaround once if it fails with a known symptom.

    Args:
        action: Action to run
        workaround: Factory of the workaround to apply
        signature: Exception type(s) or predicate recognizing the symptom

    Returns:
        Result of the action

    Raises:
        The original error if it does not match the signature or if the
        action still fails after the workaround
    """
    try:
        return action()
    except Exception as error:
        if not _matches(error, signature):
            raise
        original = error

    try:
        workaround().execute()
        result = action()
    except WorkaroundFailedError:
        raise
    except Exception as retry_error:
        logger.error(f"Workaround did not cure '{original}' ({retry_error})")
        raise original from retry_error

    logger.warning(f"Workaround cured: {original}")
    return result


__all__ = [
    "ErrorSignature",
    "Workaround",
    "PageRefreshWorkaround",
    "run_with_workaround",
]
