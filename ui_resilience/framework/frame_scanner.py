"""
================================================================================
Frame Scanner
================================================================================

Find elements when the frame holding them is unknown.

The scanner first tries the current frame. Then it takes a census of the
frame tree of the page, starting from the top-level document, and queries
every frame level by level (shallow frames first). The first frame showing a
displayed match becomes the session current frame.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from loguru import logger

from .frames import IndexedFrame
from .locators import FRAME_LOCATOR, Locator

if TYPE_CHECKING:
    from .element import ElementHandle
    from .session import BrowserSession


class FrameScanner:
    """
    Single-use scanner of the frames of the current page.

    Attributes:
        levels: Frames found at each depth (level 0 = children of the document)
        max_indexes: Number of frames of the widest parent at each depth
    """

    def __init__(self, session: "BrowserSession"):
        self.session = session
        self.levels: List[List[IndexedFrame]] = []
        self.max_indexes: List[int] = []

    def census(self) -> List[List[IndexedFrame]]:
        """Discover all frames of the page, level by level."""
        self.levels = []
        self.max_indexes = []
        self._census(None, 0)
        logger.debug(
            f"Frames census: {sum(len(level) for level in self.levels)} frames, "
            f"max indexes per level {self.max_indexes}"
        )
        return self.levels

    def _census(self, parent: Optional[IndexedFrame], level: int) -> None:
        frames = self.session.finder.find_elements(
            FRAME_LOCATOR, frame=parent, displayed=False, recovery=False
        )
        count = len(frames)
        if count == 0:
            return
        if len(self.levels) <= level:
            self.levels.append([])
            self.max_indexes.append(0)
        self.max_indexes[level] = max(self.max_indexes[level], count)
        for index in range(count):
            frame = IndexedFrame(index, parent)
            self.levels[level].append(frame)
            self._census(frame, level + 1)

    def find(self, locator: Locator) -> Optional[List["ElementHandle"]]:
        """
        Find displayed elements in the current frame or any frame of the page.

        Returns:
            Handles of the found elements with their frame selected, or None
            (the top-level document being then selected)
        """
        finder = self.session.finder
        logger.debug(f"Find elements '{locator}' in frames, current frame: {self.session.current_frame}")

        elements = finder.find_elements(locator, displayed=True, recovery=False)
        if elements:
            return elements

        self.session.reset_frame()
        self.census()

        for level, frames in enumerate(self.levels):
            for frame in frames:
                elements = finder.find_elements(
                    locator, frame=frame, displayed=True, recovery=False
                )
                if elements:
                    logger.debug(f"Found {len(elements)} elements '{locator}' in {frame} (level {level})")
                    self.session.select_frame(frame)
                    return elements

        logger.debug(f"No element '{locator}' found in any frame")
        self.session.reset_frame()
        return None


__all__ = ["FrameScanner"]
