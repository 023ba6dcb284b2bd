from __future__ import annotations

"""Primitives the snapshot builder needs from whatever hosts the live page.

The builder never touches a browser directly. It asks a `DomCapabilities`
implementation for the live tree, computed styles and hit-tests, so the same
traversal runs against Playwright (see `playwright_custom.page_capabilities`)
or any other remote-control protocol, or an in-memory fake in tests.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .snapshot import Point


class NodeKind(str, Enum):
    ELEMENT = "element"
    TEXT = "text"


class Boundary(str, Enum):
    """How a live node hangs off its parent."""

    CHILD = "child"
    SHADOW = "shadow"  # top-level child of the parent's shadow root
    FRAME = "frame"  # body child of the parent iframe's document


@dataclass(frozen=True)
class Rect:
    """A DOMRect in the coordinate space of the node's own document viewport."""

    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center(self) -> Point:
        return Point(self.left + self.width / 2, self.top + self.height / 2)


@dataclass(frozen=True)
class ComputedStyle:
    display: str = "block"
    visibility: str = "visible"
    opacity: str = "1"
    # Result of Element.checkVisibility() where the host supports it.
    rendered: Optional[bool] = None

    @property
    def css_visible(self) -> bool:
        return self.visibility != "hidden" and self.display != "none"


@dataclass(frozen=True)
class ViewportInfo:
    scroll_x: float = 0.0
    scroll_y: float = 0.0
    width: int = 1280
    height: int = 720


@dataclass(eq=False)
class LiveNode:
    """One node of the live document as reported by a capability host.

    Identity matters (hit-tests are answered with the node objects
    themselves), hence `eq=False`.
    """

    node_id: int
    kind: NodeKind = NodeKind.ELEMENT
    tag: str = ""
    text: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    rect: Rect = field(default_factory=Rect)
    offset_width: float = 0.0
    offset_height: float = 0.0
    parent_tag: Optional[str] = None  # tag of parentElement, None across a shadow boundary
    boundary: Boundary = Boundary.CHILD
    in_main_document: bool = True
    shadow_scope: Optional[int] = None  # node_id of the host when the root node is a shadow root
    has_onclick: bool = False  # the element's onclick property is set
    draggable: bool = False
    has_shadow_root: bool = False
    frame_accessible: bool = True  # iframes only
    children: List["LiveNode"] = field(default_factory=list)
    parent: Optional["LiveNode"] = field(default=None, repr=False)

    @property
    def is_element(self) -> bool:
        return self.kind == NodeKind.ELEMENT

    @property
    def is_iframe(self) -> bool:
        return self.is_element and self.tag == "iframe"

    @property
    def class_list(self) -> List[str]:
        return self.attributes.get("class", "").split()


def link_parents(root: LiveNode) -> LiveNode:
    """Set `parent` back-pointers for a freshly built live tree."""
    stack = [root]
    while stack:
        node = stack.pop()
        for child in node.children:
            child.parent = node
            stack.append(child)
    return root


class DomCapabilities(ABC):
    """Read-only view of one live page.

    Implementations answer for a single point in time; the builder calls
    `query_live_tree()` once per snapshot and then only asks about nodes of
    that tree.
    """

    @abstractmethod
    def query_live_tree(self) -> Optional[LiveNode]:
        """Return the document body (None if the document has none)."""

    @abstractmethod
    def compute_style(self, node: LiveNode) -> ComputedStyle:
        """Computed style of an element; for a text node, of its parent element."""

    @abstractmethod
    def hit_test(self, point: Point, scope: Optional[int] = None) -> Optional[LiveNode]:
        """Topmost node at a viewport point.

        `scope` is the node_id of a shadow host to hit-test inside that
        shadow root; None means the main document. May raise when the host
        cannot answer.
        """

    @abstractmethod
    def viewport(self) -> ViewportInfo:
        """Scroll offsets and inner size of the main window."""

    def event_listeners(self, node: LiveNode) -> Optional[Dict[str, int]]:
        """Attached listener counts by event type, or None when unsupported."""
        return None
