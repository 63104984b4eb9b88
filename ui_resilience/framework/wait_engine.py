# ================================================================================
# Wait Engine Module
# ================================================================================
#
# Deadline-bounded polling primitive underlying every wait of the framework.
#
# Key Features:
#   - Absolute deadline computed once at start
#   - Fixed polling interval (configurable, 250ms by default)
#   - Fail / no-fail contract on deadline expiry
#   - "Race" waits returning the first of several locators to succeed
#   - Non-resetting timeout budgets shared by multi-step actions
#
# Usage:
#   waiter = Waiter.from_timeouts(Timeouts.from_config())
#   element = waiter.wait(lambda: find_button(), timeout=10)
#   waiter.wait_while(lambda: spinner_displayed(), timeout=30, fail=False)
#
# ================================================================================

from __future__ import annotations

import time
from typing import Any, Callable, Optional, Sequence, Tuple, TypeVar

from loguru import logger

from .errors import StructuralError, WaitTimeoutError
from .timeouts import Timeouts


T = TypeVar("T")

Clock = Callable[[], float]
Sleeper = Callable[[float], None]

DEFAULT_POLL_INTERVAL = 0.25


def _describe(condition: Callable, description: Optional[str]) -> str:
    if description:
        return description
    return getattr(condition, "__name__", None) or repr(condition)


class Waiter:
    """
    Polls conditions until they succeed or an absolute deadline passes.

    There is no background thread: waiting is a loop of
    (check condition -> sleep fixed interval -> re-check). The clock and the
    sleep function are injectable so tests can drive time explicitly.

    Example:
        waiter = Waiter(interval=0.25)
        value = waiter.wait(lambda: page_ready() and "ready", timeout=5)
    """

    def __init__(
        self,
        interval: float = DEFAULT_POLL_INTERVAL,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleeper] = None,
    ):
        """
        Initialize waiter.

        Args:
            interval: Fixed pause between two condition checks (seconds)
            clock: Monotonic clock returning seconds (time.monotonic by default)
            sleep: Sleep function (time.sleep by default)
        """
        if interval <= 0:
            raise StructuralError(f"Polling interval must be positive, got {interval}")
        self.interval = interval
        self._clock = clock or time.monotonic
        self._sleep = sleep or time.sleep

    @classmethod
    def from_timeouts(
        cls,
        timeouts: Timeouts,
        clock: Optional[Clock] = None,
        sleep: Optional[Sleeper] = None,
    ) -> "Waiter":
        return cls(interval=timeouts.poll_interval, clock=clock, sleep=sleep)

    def now(self) -> float:
        return self._clock()

    def pause(self, seconds: float) -> None:
        """Sleep for the given number of seconds (no-op when not positive)."""
        if seconds > 0:
            self._sleep(seconds)

    def wait(
        self,
        condition: Callable[[], T],
        timeout: float,
        fail: bool = True,
        description: Optional[str] = None,
    ) -> Optional[T]:
        """
        Wait until the condition returns a truthy value.

        Args:
            condition: Callable evaluated at each poll
            timeout: Time budget in seconds
            fail: Raise on timeout when True, return None otherwise
            description: Human-readable condition name for logs and errors

        Returns:
            First truthy value returned by the condition, or None on a
            no-fail timeout

        Raises:
            WaitTimeoutError: If the deadline passes and fail is True
        """
        label = _describe(condition, description)
        start = self._clock()
        deadline = start + timeout
        attempt = 0

        while True:
            attempt += 1
            result = condition()
            if result:
                elapsed = self._clock() - start
                if attempt > 1:
                    logger.debug(
                        f"Wait successful after {attempt} attempts ({elapsed:.2f}s): {label}"
                    )
                return result

            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            self._sleep(min(self.interval, remaining))

        elapsed = self._clock() - start
        message = (
            f"Condition \"{label}\" was still false after {elapsed:.1f} seconds "
            f"(timeout={timeout}s), give up."
        )
        if fail:
            logger.error(message)
            raise WaitTimeoutError(message)

        logger.debug(message)
        return None

    def wait_while(
        self,
        condition: Callable[[], Any],
        timeout: float,
        fail: bool = True,
        description: Optional[str] = None,
    ) -> bool:
        """
        Wait while the condition stays truthy.

        Returns:
            True once the condition became falsy, False on a no-fail timeout

        Raises:
            WaitTimeoutError: If the condition is still true at the deadline
                and fail is True
        """
        label = _describe(condition, description)
        start = self._clock()
        deadline = start + timeout

        while condition():
            remaining = deadline - self._clock()
            if remaining <= 0:
                message = (
                    f"Condition \"{label}\" was still true after "
                    f"{self._clock() - start:.1f} seconds, give up."
                )
                if fail:
                    logger.error(message)
                    raise WaitTimeoutError(message)
                logger.debug(message)
                return False
            self._sleep(min(self.interval, remaining))

        return True

    def race(
        self,
        candidates: Sequence[Tuple[Any, Callable[[Any], T]]],
        timeout: float,
        fail: bool = True,
        description: Optional[str] = None,
    ) -> Optional[Tuple[int, Any, T]]:
        """
        Wait for the first of several (locator, predicate) pairs to succeed.

        Predicates are evaluated in order at each poll, receiving their
        locator as argument.

        Returns:
            Tuple (index, locator, value) of the first success, or None on a
            no-fail timeout
        """
        if not candidates:
            raise StructuralError("Cannot race an empty list of candidates")

        def first_success():
            for index, (locator, predicate) in enumerate(candidates):
                value = predicate(locator)
                if value:
                    return index, locator, value
            return None

        label = description or "any of " + ", ".join(str(c[0]) for c in candidates)
        return self.wait(first_success, timeout, fail=fail, description=label)


class TimeoutBudget:
    """
    Non-resetting deadline shared by the steps of a multi-step action.

    `start_timeout()` captures the deadline only once; subsequent calls (and
    `test_timeout()`) check the same deadline, so an action made of several
    unrelated waits is bounded by one overall budget.

    Usage:
        budget = TimeoutBudget()
        budget.start_timeout(30, "Menu never finished to load")
        for item in items:
            ...
            budget.test_timeout()
        budget.reset()
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or time.monotonic
        self._deadline: Optional[float] = None
        self._message: str = ""

    @property
    def running(self) -> bool:
        return self._deadline is not None

    def start_timeout(self, seconds: float, message: str) -> None:
        """Start the budget if not already running, then test it."""
        if self._deadline is None:
            self._deadline = self._clock() + seconds
            self._message = message
            logger.debug(f"Timeout budget started: {seconds}s ({message})")
        self.test_timeout()

    def test_timeout(self) -> None:
        """
        Raises:
            StructuralError: If no budget has been started
            WaitTimeoutError: If the budget deadline has passed
        """
        if self._deadline is None:
            raise StructuralError(
                "Programming error, no timeout has been set, hence it cannot be tested!"
            )
        if self._clock() > self._deadline:
            logger.error(f"Timeout budget exhausted: {self._message}")
            raise WaitTimeoutError(self._message)

    def remaining(self) -> float:
        if self._deadline is None:
            raise StructuralError("No timeout has been started")
        return max(0.0, self._deadline - self._clock())

    def reset(self) -> None:
        self._deadline = None
        self._message = ""


__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "Waiter",
    "TimeoutBudget",
]
