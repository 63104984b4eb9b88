"""
================================================================================
Resilience Errors
================================================================================

Error taxonomy shared by every component of the framework.

    ResilienceError
      +-- DriverError               raised by driver adapters, carries an ErrorKind
      |     +-- TransientDriverError   stale reference / recoverable glitch (retried)
      |     +-- FatalDriverError       session is gone (never retried)
      +-- WaitTimeoutError          a bounded wait never succeeded
      +-- MultipleFoundError        uniqueness required, several matches visible
      +-- StructuralError           programming or configuration mistake
      +-- WorkaroundFailedError     a workaround could not cure a flaky symptom

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Sequence


class ErrorKind(Enum):
    """Classification of raw driver failures, assigned by the driver adapter."""

    STALE_REFERENCE = "stale_reference"
    TRANSPORT = "transport"
    UNHANDLED_ALERT = "unhandled_alert"
    FATAL = "fatal"

    @property
    def retryable(self) -> bool:
        return self is not ErrorKind.FATAL


class ResilienceError(Exception):
    """Base class of all errors raised by the resilience layer."""
    pass


class DriverError(ResilienceError):
    """
    Failure reported by a driver adapter.

    Adapters never let their library exceptions leak: they translate them with
    `DriverError.from_kind()` so the core only deals with `ErrorKind`.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.TRANSPORT):
        super().__init__(message)
        self.kind = kind

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    @staticmethod
    def from_kind(kind: ErrorKind, message: str) -> "DriverError":
        if kind is ErrorKind.FATAL:
            return FatalDriverError(message)
        return TransientDriverError(message, kind)


class TransientDriverError(DriverError):
    """Stale reference or recoverable transport glitch."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.STALE_REFERENCE):
        super().__init__(message, kind)


class FatalDriverError(DriverError):
    """Unrecoverable driver failure (e.g. unreachable session)."""

    def __init__(self, message: str):
        super().__init__(message, ErrorKind.FATAL)


class WaitTimeoutError(ResilienceError, TimeoutError):
    """Raised when a wait operation times out."""
    pass


class ElementNotFoundError(WaitTimeoutError):
    """Raised when a mandatory element cannot be found in time."""
    pass


class MultipleFoundError(ResilienceError):
    """Raised when a single element was expected but several are visible."""

    def __init__(self, message: str, elements: Optional[Sequence[Any]] = None):
        super().__init__(message)
        self.elements = list(elements or [])


class StructuralError(ResilienceError):
    """Programming or configuration mistake, always fatal."""
    pass


class WorkaroundFailedError(ResilienceError):
    """Raised when a workaround is applied again on an already worked-around page."""
    pass


__all__ = [
    "ErrorKind",
    "ResilienceError",
    "DriverError",
    "TransientDriverError",
    "FatalDriverError",
    "WaitTimeoutError",
    "ElementNotFoundError",
    "MultipleFoundError",
    "StructuralError",
    "WorkaroundFailedError",
]
