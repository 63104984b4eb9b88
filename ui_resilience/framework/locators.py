"""
================================================================================
Locators
================================================================================

Immutable, declarative element-finding strategies.

A Locator is compared by value, so two locators built from the same strategy
and expression are interchangeable (dictionary keys, cache keys, ...).

Strategy Priority (most to least stable):
    1. id / data-testid attributes (css)
    2. css selectors
    3. visible text
    4. xpath (last resort)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import StructuralError


STRATEGIES = ("css", "xpath", "text", "tag", "id")


@dataclass(frozen=True)
class Locator:
    """
    Element-finding strategy.

    Attributes:
        strategy: One of css, xpath, text, tag, id
        value: Strategy expression
    """
    strategy: str
    value: str

    def __post_init__(self):
        if self.strategy not in STRATEGIES:
            raise StructuralError(
                f"Unknown locator strategy '{self.strategy}', expecting one of {STRATEGIES}"
            )
        if not self.value:
            raise StructuralError("Locator value cannot be empty")

    @classmethod
    def css(cls, value: str) -> "Locator":
        return cls("css", value)

    @classmethod
    def xpath(cls, value: str) -> "Locator":
        return cls("xpath", value)

    @classmethod
    def text(cls, value: str) -> "Locator":
        return cls("text", value)

    @classmethod
    def tag(cls, value: str) -> "Locator":
        return cls("tag", value)

    @classmethod
    def id(cls, value: str) -> "Locator":
        return cls("id", value)

    @classmethod
    def by_test_id(cls, value: str) -> "Locator":
        """Locator on the data-testid attribute (recommended)."""
        return cls("css", f"[data-testid='{value}']")

    @property
    def selector(self) -> str:
        """Selector string understood by Playwright-like engines."""
        if self.strategy == "css":
            return f"css={self.value}"
        if self.strategy == "xpath":
            return f"xpath={self.value}"
        if self.strategy == "text":
            return f"text={self.value}"
        if self.strategy == "tag":
            return f"css={self.value}"
        return f"css=[id='{self.value}']"

    def __str__(self) -> str:
        return f"{self.strategy}:{self.value}"


# Locator of nested document frames
FRAME_LOCATOR = Locator.tag("iframe")


__all__ = [
    "STRATEGIES",
    "Locator",
    "FRAME_LOCATOR",
]
