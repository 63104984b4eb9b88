"""
================================================================================
Page Registry and Page Cache
================================================================================

    PageTypeRegistry   explicit tag -> page factory mapping
    PageCache          access-ordered cache of page objects of one session

Page types are registered explicitly, at import time:

    registry = PageTypeRegistry()

    @registry.register("home")
    class HomePage(BasePage):
        ...

    page = session.page_cache.open_page("https://app/home", alice, "home")

The cache keeps at most one page per (location, identity). Its last entry is
the current page. Asking for a cached location with another identity reuses
the cached page object and switches it to the new identity through a login
transition.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Hashable,
    Iterator,
    List,
    Optional,
)

from loguru import logger

from .errors import StructuralError
from .page_base import BasePage

if TYPE_CHECKING:
    from .session import BrowserSession


PageFactory = Callable[..., BasePage]


class PageTypeRegistry:
    """Explicit mapping of page type tags to page factories."""

    def __init__(self):
        self._factories: Dict[Any, PageFactory] = {}

    def __contains__(self, tag: Any) -> bool:
        return tag in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def register(self, tag: Any = None, factory: Optional[PageFactory] = None):
        """
        Register a page factory under a tag.

        Used as a decorator (`@registry.register("tag")` or
        `@registry.register()`, the class being then its own tag) or called
        directly with a factory.

        Raises:
            StructuralError: If the tag is already bound to another factory
        """
        def bind(target: PageFactory) -> PageFactory:
            key = target if tag is None else tag
            existing = self._factories.get(key)
            if existing is not None and existing is not target:
                raise StructuralError(f"Page type '{key}' is already registered to {existing}")
            self._factories[key] = target
            return target

        if factory is not None:
            return bind(factory)
        return bind

    def resolve(self, tag: Any) -> PageFactory:
        """
        Raises:
            StructuralError: If the tag is unknown
        """
        factory = self._factories.get(tag)
        if factory is not None:
            return factory
        if isinstance(tag, type) and issubclass(tag, BasePage):
            return tag
        raise StructuralError(f"Unknown page type '{tag}'")

    def create(
        self,
        tag: Any,
        location: str,
        identity: Optional[Hashable],
        session: "BrowserSession",
        data: Optional[Dict[str, Any]] = None,
    ) -> BasePage:
        page = self.resolve(tag)(location, identity, session, data)
        if not isinstance(page, BasePage):
            raise StructuralError(f"Factory of page type '{tag}' returned {type(page).__name__}")
        page.page_type = tag
        return page


# Registry used by sessions created without an explicit one
default_registry = PageTypeRegistry()


def _same_identity(first: Optional[Hashable], second: Optional[Hashable]) -> bool:
    if first is None or second is None:
        return first is second
    return first == second


class PageCache:
    """
    Access-ordered cache of the pages of a browser session.

    The last page is the current one. Every access moves the page to the end.
    """

    def __init__(self, session: "BrowserSession"):
        self.session = session
        self._pages: List[BasePage] = []

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[BasePage]:
        return iter(list(self._pages))

    @property
    def pages(self) -> List[BasePage]:
        return list(self._pages)

    @property
    def current(self) -> Optional[BasePage]:
        return self._pages[-1] if self._pages else None

    def clear(self) -> None:
        logger.debug(f"Clear pages cache ({len(self._pages)} pages)")
        self._pages.clear()

    def _index(self, location: str, identity: Optional[Hashable]) -> Optional[int]:
        for index in range(len(self._pages) - 1, -1, -1):
            page = self._pages[index]
            if page.location == location and _same_identity(page.identity, identity):
                return index
        return None

    def _location_index(self, location: str) -> Optional[int]:
        for index in range(len(self._pages) - 1, -1, -1):
            if self._pages[index].location == location:
                return index
        return None

    def cached_page(self, location: str, identity: Optional[Hashable]) -> Optional[BasePage]:
        index = self._index(location, identity)
        return None if index is None else self._pages[index]

    def _append(self, page: BasePage) -> None:
        page.handle = self.session.window_handle()
        self._pages.append(page)

    def cache_page(self, page: BasePage) -> None:
        """Cache the page, replacing the one cached for the same location and identity."""
        index = self._index(page.location, page.identity)
        if index is not None:
            del self._pages[index]
        self._append(page)

    @staticmethod
    def _check_type(page: BasePage, page_type: Any) -> None:
        if isinstance(page_type, type):
            matches = isinstance(page, page_type)
        else:
            matches = getattr(page, "page_type", None) == page_type
        if not matches:
            raise StructuralError(
                f"Cached page at {page.location} is a {type(page).__name__}, "
                f"not a page of type '{page_type}'"
            )

    def get_or_create(
        self,
        location: str,
        identity: Optional[Hashable],
        page_type: Any,
        data: Optional[Dict[str, Any]] = None,
    ) -> BasePage:
        """
        Return the page object for (location, identity).

        Args:
            location: Page location (URL)
            identity: User the page is displayed for (None if anonymous)
            page_type: Registered tag or page class
            data: Page data, replacing the data of a cached page

        Returns:
            The cached page moved to the end of the cache, or a new page

        Raises:
            StructuralError: If the page type is unknown or the cached page
                has an unexpected type
        """
        self.session.registry.resolve(page_type)

        index = self._index(location, identity)
        identity_change = False
        if index is None:
            index = self._location_index(location)
            identity_change = index is not None

        if index is not None:
            page = self._pages[index]
            self._check_type(page, page_type)
            page.data = dict(data or {})
            del self._pages[index]
            if identity_change:
                logger.debug(f"Cached page {page} reused for {identity}")
                page.login(identity)
            self._append(page)
            return page

        page = self.session.registry.create(page_type, location, identity, self.session, data)
        topology = self.session.topology
        if topology.needs_login(location, identity):
            page.pending_login = True
            page.login_operation = topology.resolve_login_operation(page, identity)
        logger.debug(f"New page {page} (pending login: {page.pending_login})")
        self._append(page)
        return page

    def open_page(
        self,
        location: str,
        identity: Optional[Hashable],
        page_type: Any,
        data: Optional[Dict[str, Any]] = None,
    ) -> BasePage:
        """Get the page from the cache (or create it) and display it."""
        page = self.get_or_create(location, identity, page_type, data)
        page.load()
        return page

    def remove(self, page: BasePage) -> None:
        self._pages = [p for p in self._pages if p is not page]


__all__ = [
    "PageFactory",
    "PageTypeRegistry",
    "PageCache",
    "default_registry",
]
