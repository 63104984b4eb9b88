"""
In-memory driver used by the unit tests.

The page is a tree of `Node`; an `iframe` node holds its own document in
`content`. Nodes can be hidden, detached (stale) or replaced, driver calls
can be made to fail, and alerts can be queued. `FakeClock` drives time
explicitly and runs scheduled page mutations when time passes.
"""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Callable, Dict, List, Optional

from ui_resilience.framework.driver import DriverAdapter
from ui_resilience.framework.errors import DriverError, ErrorKind, TransientDriverError
from ui_resilience.framework.locators import Locator


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.time = start
        self.start = start
        self.sleeps: List[float] = []
        self._scheduled: List[tuple] = []

    def now(self) -> float:
        return self.time

    @property
    def elapsed(self) -> float:
        return self.time - self.start

    def at(self, elapsed: float, action: Callable[[], None]) -> None:
        """Run action once the clock has advanced by elapsed seconds from start."""
        self._scheduled.append((self.start + elapsed, action))
        self._scheduled.sort(key=lambda item: item[0])

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.time += seconds
        due = [item for item in self._scheduled if item[0] <= self.time]
        self._scheduled = [item for item in self._scheduled if item[0] > self.time]
        for _, action in due:
            action()


class Node:
    def __init__(
        self,
        tag: str,
        text: str = "",
        displayed: bool = True,
        enabled: bool = True,
        content: Optional["Node"] = None,
        **attrs: str,
    ):
        self.tag = tag
        self.text = text
        self.displayed = displayed
        self.enabled = enabled
        self.attrs: Dict[str, str] = {k.rstrip("_").replace("_", "-"): v for k, v in attrs.items()}
        self.children: List[Node] = []
        self.parent: Optional[Node] = None
        self.attached = True
        self.content = content
        self.value = ""
        self.clicks = 0
        self.on_click: Optional[Callable[["FakeDriver"], None]] = None

    def __repr__(self) -> str:
        return f"<Node {self.tag} {self.attrs}>"

    def add(self, *nodes: "Node") -> "Node":
        for node in nodes:
            node.parent = self
            self.children.append(node)
        return self

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None
        for node in self.walk():
            node.attached = False

    def replace_with(self, other: "Node") -> None:
        parent = self.parent
        index = parent.children.index(self)
        self.remove()
        other.parent = parent
        parent.children.insert(index, other)

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()

    def descendants(self):
        for child in self.children:
            yield from child.walk()


class NodeRef:
    """New reference to a node, like the handles browser drivers return on every query."""

    def __init__(self, node: Node):
        self.node = node

    def __repr__(self) -> str:
        return f"<NodeRef {self.node!r}>"


def _node(element):
    return element.node if isinstance(element, NodeRef) else element


def document(*nodes: Node) -> Node:
    return Node("html").add(Node("body").add(*nodes))


def iframe(*nodes: Node, **attrs: str) -> Node:
    return Node("iframe", content=document(*nodes), **attrs)


_CSS = re.compile(r"^(?P<tag>[\w-]+)?(?P<id>#[\w-]+)?(?P<classes>(\.[\w-]+)*)(?P<attrs>(\[[^\]]+\])*)$")
_ATTR = re.compile(r"\[([\w-]+)(?:='([^']*)')?\]")


def matches(node: Node, locator: Locator) -> bool:
    if locator.strategy == "tag":
        return node.tag == locator.value
    if locator.strategy == "id":
        return node.attrs.get("id") == locator.value
    if locator.strategy == "text":
        return node.text == locator.value
    if locator.strategy != "css":
        raise NotImplementedError(locator.strategy)
    parsed = _CSS.match(locator.value)
    if parsed is None:
        raise NotImplementedError(locator.value)
    if parsed.group("tag") and node.tag != parsed.group("tag"):
        return False
    if parsed.group("id") and node.attrs.get("id") != parsed.group("id")[1:]:
        return False
    classes = node.attrs.get("class", "").split()
    for name in filter(None, parsed.group("classes").split(".")):
        if name not in classes:
            return False
    for name, value in _ATTR.findall(parsed.group("attrs") or ""):
        if name not in node.attrs:
            return False
        if value and node.attrs[name] != value:
            return False
    return True


class FakeDriver(DriverAdapter):
    # Wrap every query result into a new NodeRef
    fresh_handles = False

    def __init__(self, root: Optional[Node] = None):
        self.root = root or document()
        self.current = self.root
        self.url = "about:blank"
        self.pages: Dict[str, Callable[[], Node]] = {}
        self.navigations: List[str] = []
        self.refreshes = 0
        self.alerts: List[str] = []
        self.accepted: List[str] = []
        self.calls: Dict[str, int] = defaultdict(int)
        self._failures: Dict[str, List[DriverError]] = defaultdict(list)

    def load(self, root: Node) -> Node:
        """Display a new document, as if the browser had navigated to it."""
        self.root = self.current = root
        return root

    @property
    def body(self) -> Node:
        return self.root.children[0]

    # Fault injection

    def fail_next(self, operation: str, error: Optional[DriverError] = None, times: int = 1) -> None:
        error = error or TransientDriverError(f"stale element during {operation}")
        self._failures[operation].extend([error] * times)

    def _call(self, operation: str) -> None:
        self.calls[operation] += 1
        if self._failures[operation]:
            raise self._failures[operation].pop(0)

    @staticmethod
    def _check(node: Node) -> None:
        if not node.attached:
            raise TransientDriverError(f"{node} is not attached to the page document")

    # Elements

    def find_matches(self, locator: Locator, parent: Optional[Node] = None) -> List[Node]:
        self._call("find")
        parent = _node(parent)
        if parent is not None:
            self._check(parent)
        root = parent if parent is not None else self.current
        found = [node for node in root.descendants() if matches(node, locator)]
        return [NodeRef(node) for node in found] if self.fresh_handles else found

    def same_element(self, first, second) -> bool:
        return _node(first) is _node(second)

    def click(self, element: Node) -> None:
        self._call("click")
        element = _node(element)
        self._check(element)
        element.clicks += 1
        if element.on_click is not None:
            element.on_click(self)

    def type_text(self, element: Node, text: str) -> None:
        self._call("type_text")
        element = _node(element)
        self._check(element)
        element.value = text

    def get_text(self, element: Node) -> str:
        self._call("get_text")
        element = _node(element)
        self._check(element)
        return element.text

    def get_attribute(self, element: Node, name: str) -> Optional[str]:
        self._call("get_attribute")
        element = _node(element)
        self._check(element)
        return element.attrs.get(name)

    def is_displayed(self, element: Node) -> bool:
        self._call("is_displayed")
        element = _node(element)
        self._check(element)
        return element.displayed

    def is_enabled(self, element: Node) -> bool:
        self._call("is_enabled")
        element = _node(element)
        self._check(element)
        return element.enabled

    def scroll_into_view(self, element: Node) -> None:
        self._call("scroll")
        element = _node(element)
        self._check(element)

    # Frames

    def switch_to_default_content(self) -> None:
        self.calls["default_content"] += 1
        self.current = self.root

    def switch_to_frame(self, target) -> None:
        self._call("switch_frame")
        frames = [node for node in self.current.descendants() if node.tag == "iframe"]
        if isinstance(target, int):
            if target >= len(frames):
                raise TransientDriverError(f"No frame at index {target}")
            frame = frames[target]
        elif isinstance(target, str):
            frame = next(
                (f for f in frames if target in (f.attrs.get("name"), f.attrs.get("id"))),
                None,
            )
            if frame is None:
                raise TransientDriverError(f"No frame named {target}")
        else:
            frame = _node(target)
            self._check(frame)
        self.current = frame.content

    # Page

    def navigate(self, url: str) -> None:
        self._call("navigate")
        self.url = url
        self.navigations.append(url)
        if url in self.pages:
            self.root = self.pages[url]()
        self.current = self.root

    def current_url(self) -> str:
        return self.url

    def refresh(self) -> None:
        self.refreshes += 1
        self.current = self.root

    def window_handle(self) -> Optional[str]:
        return "main-window"

    def alert_text(self) -> Optional[str]:
        return self.alerts[0] if self.alerts else None

    def accept_alert(self) -> None:
        self.accepted.append(self.alerts.pop(0))

    def screenshot(self) -> bytes:
        return b"\x89PNG"


def fatal(message: str = "session is gone") -> DriverError:
    return DriverError.from_kind(ErrorKind.FATAL, message)
