"""
================================================================================
Topology
================================================================================

Knowledge about the applications under test which the page cache needs:
whether a location requires a login for a given identity, how to log in and
how to log out.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Hashable, Optional
from urllib.parse import urlparse

from loguru import logger

from .errors import StructuralError
from .locators import Locator

if TYPE_CHECKING:
    from .page_base import BasePage


@dataclass(frozen=True)
class User:
    """User identity of a page."""
    user_id: str
    name: str = ""
    password: str = field(default="", repr=False)

    def __str__(self) -> str:
        return self.name or self.user_id


class LoginOperation(ABC):
    """
    Login operation performed on a page before it can be used.

    Subclasses implement `perform_login()`; `perform()` wraps it with the
    expectation check and the topology bookkeeping.
    """

    def __init__(self, page: "BasePage", identity: Hashable):
        self.page = page
        self.identity = identity

    def is_expecting_login(self) -> bool:
        return True

    def before_login(self) -> None:
        pass

    @abstractmethod
    def perform_login(self) -> None:
        ...

    def perform(self) -> bool:
        """
        Log in if the page is expecting it.

        Returns:
            True if the login has been performed
        """
        if not self.is_expecting_login():
            logger.debug(f"Page {self.page} is not expecting login for {self.identity}")
            return False
        logger.info(f"Login as {self.identity} on {self.page.location}")
        self.before_login()
        self.perform_login()
        self.page.session.topology.login(self.page.location, self.identity)
        return True


class FormLoginOperation(LoginOperation):
    """Login through a classic user id / password form."""

    user_id_locator = Locator.css("input[name='username']")
    password_locator = Locator.css("input[type='password']")
    login_button_locator = Locator.css("button[type='submit']")

    def is_expecting_login(self) -> bool:
        return self.page.wait_for_element(self.login_button_locator, fail=False, timeout=1) is not None

    def perform_login(self) -> None:
        if not isinstance(self.identity, User):
            raise StructuralError(f"Form login needs a User identity, got {self.identity!r}")
        self.page.wait_for_element(self.user_id_locator).type_text(self.identity.user_id)
        self.page.wait_for_element(self.password_locator).type_text(self.identity.password)
        self.page.wait_for_element(self.login_button_locator).click()


class Topology(ABC):
    """Applications topology consulted when pages change identity."""

    @abstractmethod
    def needs_login(self, location: str, identity: Optional[Hashable]) -> bool:
        """Tell whether opening location as identity requires a login."""

    @abstractmethod
    def resolve_login_operation(
        self, page: "BasePage", identity: Hashable
    ) -> Optional[LoginOperation]:
        """Return the operation to log identity in on page, None if not needed."""

    @abstractmethod
    def login(self, location: str, identity: Hashable) -> None:
        """Record identity as logged in the application at location."""

    def logout(self, page: "BasePage") -> bool:
        """
        Log the current identity out of the application of the page.

        Returns:
            True if an identity was logged in
        """
        return False


def application_of(location: str) -> str:
    """Application key of a location (scheme and network location)."""
    parsed = urlparse(location)
    if parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}"
    return location


class StaticTopology(Topology):
    """
    Topology where every application shares the same login policy.

    Logged identities are tracked per application (scheme + host).

    Example:
        topology = StaticTopology(login_operation=MyLoginOperation)
    """

    def __init__(
        self,
        login_required: bool = True,
        login_operation: Optional[Callable[[Any, Hashable], LoginOperation]] = None,
    ):
        self.login_required = login_required
        self.login_operation = login_operation
        self.logged: Dict[str, Hashable] = {}

    def logged_identity(self, location: str) -> Optional[Hashable]:
        return self.logged.get(application_of(location))

    def needs_login(self, location: str, identity: Optional[Hashable]) -> bool:
        if identity is None or not self.login_required:
            return False
        return self.logged_identity(location) != identity

    def resolve_login_operation(
        self, page: "BasePage", identity: Hashable
    ) -> Optional[LoginOperation]:
        if self.login_operation is None or not self.needs_login(page.location, identity):
            return None
        return self.login_operation(page, identity)

    def login(self, location: str, identity: Hashable) -> None:
        self.logged[application_of(location)] = identity

    def logout(self, page: "BasePage") -> bool:
        previous = self.logged.pop(application_of(page.location), None)
        if previous is not None:
            logger.info(f"Logout {previous} from {application_of(page.location)}")
            page.logout_action()
        return previous is not None


__all__ = [
    "User",
    "LoginOperation",
    "FormLoginOperation",
    "Topology",
    "StaticTopology",
    "application_of",
]
