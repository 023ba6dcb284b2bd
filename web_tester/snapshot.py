from __future__ import annotations

"""Snapshot data model: the structural capture of a rendered page.

A snapshot is a tree of `ElementNode` / `TextNode` rooted at the document
body. Element nodes carry their classification flags and, when they were
judged interactive, visible and unobstructed, a highlight index that the
orchestrator uses to address them in later actions.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

UNINDEXED = -1

# Attributes whose values count as "nearby text" next to visible text nodes.
TEXT_BEARING_ATTRIBUTES = ("placeholder", "alt", "title", "aria-label", "value")


def round_half_up(value: float) -> int:
    """Round like the browser's Math.round (halves go towards +inf)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class RectCoordinates:
    """Four corners, center and size of a box, rounded to whole pixels."""

    top_left: Point
    top_right: Point
    bottom_left: Point
    bottom_right: Point
    center: Point
    width: int
    height: int

    @classmethod
    def from_box(cls, left: float, top: float, width: float, height: float,
                 dx: float = 0.0, dy: float = 0.0) -> "RectCoordinates":
        """Build coordinates from a DOMRect-like box shifted by (dx, dy)."""
        right = left + width
        bottom = top + height
        r = round_half_up
        return cls(
            top_left=Point(r(left + dx), r(top + dy)),
            top_right=Point(r(right + dx), r(top + dy)),
            bottom_left=Point(r(left + dx), r(bottom + dy)),
            bottom_right=Point(r(right + dx), r(bottom + dy)),
            center=Point(r(left + width / 2 + dx), r(top + height / 2 + dy)),
            width=r(width),
            height=r(height),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topLeft": self.top_left.to_dict(),
            "topRight": self.top_right.to_dict(),
            "bottomLeft": self.bottom_left.to_dict(),
            "bottomRight": self.bottom_right.to_dict(),
            "center": self.center.to_dict(),
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class Viewport:
    scroll_x: int
    scroll_y: int
    width: int
    height: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "scrollX": self.scroll_x,
            "scrollY": self.scroll_y,
            "width": self.width,
            "height": self.height,
        }


@dataclass
class TextNode:
    text: str
    is_visible: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "TEXT_NODE", "text": self.text, "isVisible": self.is_visible}


@dataclass
class ElementNode:
    tag_name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    xpath: str = ""  # diagnostic only, never used for resolution
    children: List["SnapshotNode"] = field(default_factory=list)
    viewport_coordinates: Optional[RectCoordinates] = None
    page_coordinates: Optional[RectCoordinates] = None
    viewport: Optional[Viewport] = None
    is_interactive: bool = False
    is_visible: bool = False
    is_top_element: bool = False
    highlight_index: int = UNINDEXED
    has_shadow_root: bool = False

    @property
    def is_indexed(self) -> bool:
        return self.highlight_index >= 0

    def iter_elements(self) -> Iterator["ElementNode"]:
        """Yield this node and every descendant element in pre-order."""
        yield self
        for child in self.children:
            if isinstance(child, ElementNode):
                yield from child.iter_elements()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tagName": self.tag_name,
            "attributes": dict(self.attributes),
            "xpath": self.xpath,
            "children": [c.to_dict() for c in self.children],
            "viewportCoordinates": self.viewport_coordinates.to_dict() if self.viewport_coordinates else {},
            "pageCoordinates": self.page_coordinates.to_dict() if self.page_coordinates else {},
            "viewport": self.viewport.to_dict() if self.viewport else {},
            "isInteractive": self.is_interactive,
            "isVisible": self.is_visible,
            "isTopElement": self.is_top_element,
            "highlightIndex": self.highlight_index,
            "shadowRoot": self.has_shadow_root,
        }


SnapshotNode = Union[ElementNode, TextNode]


@dataclass
class InteractiveElement:
    """Flattened entry returned by the list action."""

    highlight_index: int
    text: str
    tag: str

    def to_dict(self) -> Dict[str, Any]:
        return {"highlightIndex": self.highlight_index, "text": self.text, "tag": self.tag}


@dataclass
class ElementDetail:
    """What the inspect action and the element resolver know about one index."""

    tag_name: str
    attributes: Dict[str, str]
    is_visible: bool
    is_top_element: bool
    text_nearby: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tagName": self.tag_name,
            "attributes": dict(self.attributes),
            "isVisible": self.is_visible,
            "isTopElement": self.is_top_element,
            "textNearby": self.text_nearby,
        }


# ----------------------------------------------------------------------
# tree helpers -----------------------------------------------------------

def aggregated_text(node: Optional[SnapshotNode], limit: Optional[int] = None) -> str:
    """Collect visible text and text-bearing attribute values below *node*.

    The walk is pre-order; every piece is trimmed, empty pieces are dropped
    and the rest joined by single spaces. `limit` truncates the result.
    """
    pieces: List[str] = []

    def collect(n: SnapshotNode) -> None:
        if isinstance(n, TextNode):
            if n.text:
                pieces.append(n.text)
            return
        for name in TEXT_BEARING_ATTRIBUTES:
            value = n.attributes.get(name)
            if value:
                pieces.append(value)
        for child in n.children:
            collect(child)

    if node is not None:
        collect(node)
    text = " ".join(p.strip() for p in pieces if p.strip())
    if limit is not None:
        text = text[:limit]
    return text


def find_by_highlight_index(root: Optional[ElementNode], highlight_index: int) -> Optional[ElementNode]:
    if root is None or highlight_index < 0:
        return None
    for element in root.iter_elements():
        if element.highlight_index == highlight_index:
            return element
    return None


def interactive_elements(root: Optional[ElementNode]) -> List[InteractiveElement]:
    """Flatten every indexed node in traversal (= index) order."""
    if root is None:
        return []
    return [
        InteractiveElement(
            highlight_index=el.highlight_index,
            text=aggregated_text(el),
            tag=el.tag_name,
        )
        for el in root.iter_elements()
        if el.is_interactive and el.is_indexed
    ]


def element_detail(root: Optional[ElementNode], highlight_index: int, text_limit: int = 300) -> Optional[ElementDetail]:
    found = find_by_highlight_index(root, highlight_index)
    if found is None:
        return None
    return ElementDetail(
        tag_name=found.tag_name,
        attributes=dict(found.attributes),
        is_visible=found.is_visible,
        is_top_element=found.is_top_element,
        text_nearby=aggregated_text(found, limit=text_limit),
    )
