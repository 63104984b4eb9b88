"""
================================================================================
Frame Contexts
================================================================================

Value objects identifying a (possibly nested) document frame.

    IndexedFrame   frame selected by its ordinal among the parent frame children
    NamedFrame     frame selected by its name or id attribute
    ElementFrame   frame selected through its <iframe> element handle
    EmbeddedFrame  element frame which must live inside another element frame

`None` stands for the top-level document (default content). Every frame
reaches the top-level document through a finite parent chain: `path()`
returns it from the outermost frame down to the frame itself, and
`switch_to()` walks it from default content.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

from loguru import logger

from .driver import DriverAdapter
from .errors import DriverError, StructuralError

if TYPE_CHECKING:
    from .element import ElementHandle


class FrameContext(ABC):
    """Base class of frame contexts."""

    @property
    @abstractmethod
    def parent(self) -> Optional["FrameContext"]:
        ...

    @abstractmethod
    def _enter(self, driver: DriverAdapter) -> None:
        """Select this frame assuming its parent is currently selected."""

    def path(self) -> List["FrameContext"]:
        chain: List[FrameContext] = []
        frame: Optional[FrameContext] = self
        while frame is not None:
            chain.append(frame)
            frame = frame.parent
        chain.reverse()
        return chain

    @property
    def depth(self) -> int:
        return len(self.path())

    def switch_to(self, driver: DriverAdapter) -> None:
        logger.debug(f"Switch to {self}")
        driver.switch_to_default_content()
        for frame in self.path():
            frame._enter(driver)

    def is_displayed(self) -> bool:
        return True


@dataclass(frozen=True)
class IndexedFrame(FrameContext):
    index: int
    parent_frame: Optional[FrameContext] = None

    @property
    def parent(self) -> Optional[FrameContext]:
        return self.parent_frame

    def _enter(self, driver: DriverAdapter) -> None:
        driver.switch_to_frame(self.index)

    @property
    def indexes(self) -> List[int]:
        """Index chain when every ancestor is an indexed frame."""
        return [f.index for f in self.path() if isinstance(f, IndexedFrame)]

    def __str__(self) -> str:
        return "Frame indexed " + "/".join(str(i) for i in self.indexes)


@dataclass(frozen=True)
class NamedFrame(FrameContext):
    name: str
    parent_frame: Optional[FrameContext] = None

    @property
    def parent(self) -> Optional[FrameContext]:
        return self.parent_frame

    def _enter(self, driver: DriverAdapter) -> None:
        driver.switch_to_frame(self.name)

    def __str__(self) -> str:
        return f"Frame named '{self.name}'"


@dataclass(frozen=True)
class ElementFrame(FrameContext):
    """Frame selected through its element; its parent is the element's own frame."""
    element: "ElementHandle" = field(compare=False)

    def __eq__(self, other) -> bool:
        if isinstance(other, ElementFrame):
            return self.element is other.element
        return NotImplemented

    def __hash__(self) -> int:
        return id(self.element)

    @property
    def parent(self) -> Optional[FrameContext]:
        return self.element.frame

    def _enter(self, driver: DriverAdapter) -> None:
        driver.switch_to_frame(self.element.native)

    def is_displayed(self) -> bool:
        try:
            return self.element.is_displayed(recovery=False)
        except DriverError:
            return False

    def __str__(self) -> str:
        return f"Frame element {self.element}"


@dataclass(frozen=True, eq=False)
class EmbeddedFrame(ElementFrame):
    """Element frame nested in another element frame."""
    parent_frame: Optional[FrameContext] = None

    def __post_init__(self):
        if self.parent_frame is None:
            raise StructuralError("An embedded frame must have a parent.")
        if not isinstance(self.parent_frame, ElementFrame):
            raise StructuralError(
                f"Invalid class for parent frame: {type(self.parent_frame).__name__}"
            )

    @property
    def parent(self) -> Optional[FrameContext]:
        return self.parent_frame

    def __str__(self) -> str:
        return f"Frame element {self.element} embedded in {self.parent_frame}"


def same_frame(first: Optional[FrameContext], second: Optional[FrameContext]) -> bool:
    """Compare two frame contexts, None being the top-level document."""
    if first is None or second is None:
        return first is second
    return first == second


__all__ = [
    "FrameContext",
    "IndexedFrame",
    "NamedFrame",
    "ElementFrame",
    "EmbeddedFrame",
    "same_frame",
]
