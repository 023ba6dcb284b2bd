"""
Shared fixtures: an in-memory DOM capability host and a mocked Playwright page.
"""
import itertools
from typing import Dict, Iterator, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from web_tester.dom_capabilities import (
    Boundary,
    ComputedStyle,
    DomCapabilities,
    LiveNode,
    NodeKind,
    Rect,
    ViewportInfo,
    link_parents,
)
from web_tester.snapshot import Point

_ids = itertools.count(1)


def _walk(node: LiveNode) -> Iterator[LiveNode]:
    yield node
    for child in node.children:
        yield from _walk(child)


def _mark_shadow(node: LiveNode, host_id: int) -> None:
    if node.shadow_scope is None:
        node.shadow_scope = host_id
        for child in node.children:
            if child.boundary != Boundary.SHADOW:
                _mark_shadow(child, host_id)


def _mark_frame(node: LiveNode) -> None:
    node.in_main_document = False
    node.shadow_scope = None
    for child in node.children:
        _mark_frame(child)


def el(tag: str, *children: LiveNode, attrs: Optional[Dict[str, str]] = None,
       rect: Tuple[float, float, float, float] = (0, 0, 100, 20),
       offset: Optional[Tuple[float, float]] = None,
       shadow: Optional[List[LiveNode]] = None,
       frame: Optional[List[LiveNode]] = None,
       **kwargs) -> LiveNode:
    """Build a live element; `shadow` and `frame` attach shadow-root / iframe content."""
    left, top, width, height = rect
    node = LiveNode(
        node_id=next(_ids),
        kind=NodeKind.ELEMENT,
        tag=tag,
        attributes=dict(attrs or {}),
        rect=Rect(left, top, width, height),
        offset_width=width if offset is None else offset[0],
        offset_height=height if offset is None else offset[1],
        **kwargs,
    )
    for child in shadow or []:
        child.boundary = Boundary.SHADOW
        child.parent_tag = None
        _mark_shadow(child, node.node_id)
        node.children.append(child)
    node.has_shadow_root = node.has_shadow_root or bool(shadow)
    for child in frame or []:
        child.boundary = Boundary.FRAME
        if child.is_element:
            child.parent_tag = "body"
        _mark_frame(child)
        node.children.append(child)
    for child in children:
        if child.is_element and child.parent_tag is None:
            child.parent_tag = tag
        node.children.append(child)
    return node


def txt(text: str, rect: Tuple[float, float, float, float] = (0, 0, 50, 10)) -> LiveNode:
    return LiveNode(node_id=next(_ids), kind=NodeKind.TEXT, text=text, rect=Rect(*rect))


class FakeDom(DomCapabilities):
    """Answers hit-tests with the deepest element centred on the point unless told otherwise."""

    def __init__(self, body: Optional[LiveNode], viewport: Optional[ViewportInfo] = None) -> None:
        self.body = link_parents(body) if body is not None else None
        self._viewport = viewport or ViewportInfo()
        self.styles: Dict[int, ComputedStyle] = {}
        self.listeners: Optional[Dict[int, Dict[str, int]]] = None
        self.occluders: Dict[Tuple[Optional[int], float, float], Optional[LiveNode]] = {}
        self.hit_error: Optional[Exception] = None
        self.hit_calls: List[Tuple[Point, Optional[int]]] = []

    def occlude(self, node: LiveNode, by: Optional[LiveNode]) -> None:
        center = node.rect.center
        self.occluders[(node.shadow_scope, center.x, center.y)] = by

    def query_live_tree(self) -> Optional[LiveNode]:
        return self.body

    def compute_style(self, node: LiveNode) -> ComputedStyle:
        if node.kind == NodeKind.TEXT and node.parent is not None:
            return self.styles.get(node.node_id, self.styles.get(node.parent.node_id, ComputedStyle()))
        return self.styles.get(node.node_id, ComputedStyle())

    def hit_test(self, point: Point, scope: Optional[int] = None) -> Optional[LiveNode]:
        self.hit_calls.append((point, scope))
        if self.hit_error is not None:
            raise self.hit_error
        key = (scope, point.x, point.y)
        if key in self.occluders:
            return self.occluders[key]
        hit = None
        for node in _walk(self.body):
            if node.is_element and node.in_main_document and node.shadow_scope == scope and node.rect.center == point:
                hit = node
        return hit

    def viewport(self) -> ViewportInfo:
        return self._viewport

    def event_listeners(self, node: LiveNode) -> Optional[Dict[str, int]]:
        if self.listeners is None:
            return None
        return self.listeners.get(node.node_id, {})


@pytest.fixture
def locator():
    loc = MagicMock(name="locator")
    loc.click = AsyncMock()
    loc.fill = AsyncMock()
    loc.first = loc
    return loc


@pytest.fixture
def page(locator):
    page = MagicMock(name="page")
    page.goto = AsyncMock()
    page.evaluate = AsyncMock(return_value=None)
    page.screenshot = AsyncMock(return_value=b"png-bytes")
    page.wait_for_load_state = AsyncMock()
    page.url = "https://example.com/"
    page.locator.return_value = locator
    page.get_by_role.return_value = locator
    page.get_by_text.return_value = locator
    return page
