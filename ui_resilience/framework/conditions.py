# ================================================================================
# Conditions Module
# ================================================================================
#
# Reusable element conditions for the Wait Engine.
#
# A condition is a callable with a readable description. Text conditions keep
# the last text they read, so that a timeout reports expected vs. actual.
#
# Usage:
#   wait_until(session, text_matches(status, "Saved", Comparison.ENDS_WITH), timeout=10)
#   wait_while(session, displayed(spinner), timeout=30, fail=False)
#
# ================================================================================

from __future__ import annotations

import json
import re
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from loguru import logger

from .errors import DriverError, WaitTimeoutError

if TYPE_CHECKING:
    from .element import ElementHandle
    from .session import BrowserSession


class Comparison(Enum):
    """How an element text is compared with an expected text."""

    EQUALS = "equals"
    STARTS_WITH = "starts_with"
    IS_START_OF = "is_start_of"
    ENDS_WITH = "ends_with"
    IS_END_OF = "is_end_of"
    CONTAINS = "contains"
    REGEX = "regex"
    JSON_EQUALS = "json_equals"

    def compare(self, actual: str, expected: str) -> bool:
        if self is Comparison.EQUALS:
            return actual == expected
        if self is Comparison.STARTS_WITH:
            return actual.startswith(expected)
        if self is Comparison.IS_START_OF:
            return expected.startswith(actual)
        if self is Comparison.ENDS_WITH:
            return actual.endswith(expected)
        if self is Comparison.IS_END_OF:
            return expected.endswith(actual)
        if self is Comparison.CONTAINS:
            return expected in actual
        if self is Comparison.REGEX:
            return re.fullmatch(expected, actual, re.DOTALL) is not None
        try:
            return json.loads(actual) == json.loads(expected)
        except ValueError:
            return False


class Condition:
    """Named boolean condition."""

    def __init__(self, check: Callable[[], bool], description: str):
        self._check = check
        self.description = description

    def __call__(self) -> bool:
        return bool(self._check())

    def failure_message(self) -> str:
        return f"Condition \"{self.description}\" not met"

    def __str__(self) -> str:
        return self.description


class TextCondition(Condition):
    """Condition on the text of an element, remembering the last text read."""

    def __init__(self, element: "ElementHandle", expected: str, comparison: Comparison):
        self.element = element
        self.expected = expected
        self.comparison = comparison
        self.actual: Optional[str] = None
        super().__init__(
            self._matches,
            f"text of {element} {comparison.value.replace('_', ' ')} '{expected}'",
        )

    def _matches(self) -> bool:
        try:
            self.actual = self.element.get_text()
        except DriverError as ex:
            if not ex.retryable:
                raise
            logger.debug(f"Cannot read text of {self.element}: {ex}")
            return False
        return self.comparison.compare(self.actual, self.expected)

    def failure_message(self) -> str:
        return (
            f"Text of {self.element} does not match "
            f"(comparison={self.comparison.value}): expected '{self.expected}', "
            f"actual '{self.actual}'"
        )


def displayed(element: "ElementHandle") -> Condition:
    return Condition(lambda: element.is_displayed(recovery=False), f"{element} displayed")


def enabled(element: "ElementHandle") -> Condition:
    return Condition(lambda: element.is_enabled(), f"{element} enabled")


def text_matches(
    element: "ElementHandle",
    expected: str,
    comparison: Comparison = Comparison.EQUALS,
) -> TextCondition:
    return TextCondition(element, expected, comparison)


def attribute_contains(element: "ElementHandle", attribute: str, value: str) -> Condition:
    def check() -> bool:
        return value in (element.get_attribute(attribute) or "")

    return Condition(check, f"attribute '{attribute}' of {element} contains '{value}'")


def wait_until(
    session: "BrowserSession",
    condition: Condition,
    timeout: Optional[float] = None,
    fail: bool = True,
) -> bool:
    """
    Wait until the condition is met.

    Returns:
        True if met, False on a no-fail timeout
    """
    timeout = session.timeouts.default if timeout is None else timeout
    result = session.waiter.wait(condition, timeout, fail=False, description=str(condition))
    if result:
        return True
    if fail:
        raise WaitTimeoutError(condition.failure_message())
    return False


def wait_while(
    session: "BrowserSession",
    condition: Condition,
    timeout: Optional[float] = None,
    fail: bool = True,
) -> bool:
    """
    Wait while the condition is met.

    Returns:
        True once not met anymore, False on a no-fail timeout
    """
    timeout = session.timeouts.default if timeout is None else timeout
    return session.waiter.wait_while(condition, timeout, fail=fail, description=str(condition))


__all__ = [
    "Comparison",
    "Condition",
    "TextCondition",
    "displayed",
    "enabled",
    "text_matches",
    "attribute_contains",
    "wait_until",
    "wait_while",
]
