from __future__ import annotations

"""Snapshot builder: classify the live tree and assign highlight indices.

The walk is a pre-order traversal from the document body through shadow
roots and same-origin iframes. Every element is classified as interactive,
visible and top-most; those passing all three checks receive the next
highlight index and, when overlays are enabled, a highlight box request.

All traversal state (index counter, overlay requests) lives in a
`_TraversalState` created per `build()` call, so concurrent sessions never
share numbering.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .dom_capabilities import Boundary, DomCapabilities, LiveNode, ViewportInfo
from .errors import SnapshotError
from .highlight_overlay import HighlightBox, layout_highlight
from .snapshot import (
    ElementNode,
    RectCoordinates,
    SnapshotNode,
    TextNode,
    Viewport,
    round_half_up,
)

logger = logging.getLogger(__name__)

# Passing this as viewport_expansion disables the viewport/occlusion check.
UNBOUNDED_VIEWPORT = -1

DENIED_TAGS = frozenset({"svg", "script", "style", "link", "meta"})

INTERACTIVE_TAGS = frozenset({
    "a",
    "button",
    "details",
    "embed",
    "input",
    "label",
    "menu",
    "menuitem",
    "object",
    "select",
    "textarea",
    "summary",
})

INTERACTIVE_ROLES = frozenset({
    "button",
    "menu",
    "menuitem",
    "link",
    "checkbox",
    "radio",
    "slider",
    "tab",
    "tabpanel",
    "textbox",
    "combobox",
    "grid",
    "listbox",
    "option",
    "progressbar",
    "scrollbar",
    "searchbox",
    "switch",
    "tree",
    "treeitem",
    "spinbutton",
    "tooltip",
    "a-button-inner",
    "a-dropdown-button",
    "click",
    "menuitemcheckbox",
    "menuitemradio",
    "a-button-text",
    "button-text",
    "button-icon",
    "button-icon-only",
    "button-text-icon-only",
    "dropdown",
})

ADDRESS_AUTOCOMPLETE_CLASS = "address-input__container__input"
DROPDOWN_DATA_ACTIONS = frozenset({"a-dropdown-select", "a-dropdown-button"})

CLICK_BINDING_ATTRIBUTES = ("onclick", "ng-click", "@click", "v-on:click")
ARIA_STATE_ATTRIBUTES = ("aria-expanded", "aria-pressed", "aria-selected", "aria-checked")

# Listener types read back from inline on* attributes when the host cannot
# introspect attached listeners.
INLINE_HANDLER_EVENTS = (
    "click",
    "mousedown",
    "mouseup",
    "touchstart",
    "touchend",
    "keydown",
    "keyup",
    "focus",
    "blur",
)
CLICK_LISTENER_EVENTS = ("click", "mousedown", "mouseup", "touchstart", "touchend")


@dataclass
class SnapshotBuild:
    root: ElementNode
    highlights: List[HighlightBox]


@dataclass(frozen=True)
class _FrameContext:
    """Accumulated viewport offset of the iframes enclosing a node."""

    offset_x: float = 0.0
    offset_y: float = 0.0

    def enter(self, iframe: LiveNode) -> "_FrameContext":
        return _FrameContext(self.offset_x + iframe.rect.left, self.offset_y + iframe.rect.top)


@dataclass
class _TraversalState:
    highlight: bool
    focus_index: int
    viewport_expansion: int
    viewport: ViewportInfo
    next_index: int = 0
    highlights: List[HighlightBox] = field(default_factory=list)


class SnapshotBuilder:
    """Builds one snapshot per call from a `DomCapabilities` host."""

    def __init__(self, capabilities: DomCapabilities) -> None:
        self._caps = capabilities

    # ------------------------------------------------------------------
    def build(
        self,
        highlight: bool = True,
        focus_index: int = -1,
        viewport_expansion: int = 0,
    ) -> SnapshotBuild:
        body = self._caps.query_live_tree()
        if body is None:
            raise SnapshotError("Document has no body to snapshot")

        state = _TraversalState(
            highlight=highlight,
            focus_index=focus_index,
            viewport_expansion=viewport_expansion,
            viewport=self._caps.viewport(),
        )
        root = self._build_node(body, state, _FrameContext(), f"html/{body.tag}")
        if not isinstance(root, ElementNode):
            raise SnapshotError("Document body was rejected by the snapshot filter")
        logger.debug("Snapshot built: %d indexed elements", state.next_index)
        return SnapshotBuild(root=root, highlights=state.highlights)

    # ------------------------------------------------------------------
    # traversal ---------------------------------------------------------

    def _build_node(
        self, node: LiveNode, state: _TraversalState, frame: _FrameContext, xpath: str
    ) -> Optional[SnapshotNode]:
        if not node.is_element:
            return self._build_text(node)
        if node.tag in DENIED_TAGS:
            return None

        vp = state.viewport
        element = ElementNode(
            tag_name=node.tag,
            attributes=dict(node.attributes),
            xpath=xpath,
            viewport_coordinates=RectCoordinates.from_box(
                node.rect.left, node.rect.top, node.rect.width, node.rect.height
            ),
            page_coordinates=RectCoordinates.from_box(
                node.rect.left, node.rect.top, node.rect.width, node.rect.height,
                dx=vp.scroll_x, dy=vp.scroll_y,
            ),
            viewport=Viewport(
                scroll_x=round_half_up(vp.scroll_x),
                scroll_y=round_half_up(vp.scroll_y),
                width=vp.width,
                height=vp.height,
            ),
            has_shadow_root=node.has_shadow_root,
        )

        element.is_interactive = self._is_interactive(node)
        element.is_visible = self._is_visible(node)
        element.is_top_element = self._is_top_element(node, state)

        if element.is_interactive and element.is_visible and element.is_top_element:
            element.highlight_index = state.next_index
            state.next_index += 1
            if state.highlight and (state.focus_index < 0 or state.focus_index == element.highlight_index):
                state.highlights.append(
                    layout_highlight(
                        element.highlight_index,
                        node.node_id,
                        node.rect,
                        vp.scroll_x,
                        vp.scroll_y,
                        frame.offset_x,
                        frame.offset_y,
                    )
                )

        if node.is_iframe and not node.frame_accessible:
            logger.warning("Unable to access iframe %s; its content is skipped", node.attributes.get("src", "<no src>"))

        seen: Counter[Tuple[Boundary, str]] = Counter()
        for child in node.children:
            child_xpath = ""
            if child.is_element:
                position = seen[(child.boundary, child.tag)]
                seen[(child.boundary, child.tag)] += 1
                child_xpath = self._child_xpath(xpath, child, position)
            child_frame = frame.enter(node) if child.boundary == Boundary.FRAME else frame
            built = self._build_node(child, state, child_frame, child_xpath)
            if built is not None:
                element.children.append(built)
        return element

    def _build_text(self, node: LiveNode) -> Optional[TextNode]:
        text = node.text.strip()
        if not text:
            return None
        if node.rect.width == 0 or node.rect.height == 0:
            return None
        style = self._caps.compute_style(node)
        visible = style.rendered if style.rendered is not None else style.css_visible
        if not visible:
            return None
        return TextNode(text=text, is_visible=True)

    # ------------------------------------------------------------------
    # classification ----------------------------------------------------

    def _is_interactive(self, node: LiveNode) -> bool:
        attrs = node.attributes
        tabindex = attrs.get("tabindex")
        if (
            node.tag in INTERACTIVE_TAGS
            or attrs.get("role", "") in INTERACTIVE_ROLES
            or attrs.get("aria-role", "") in INTERACTIVE_ROLES
            or (tabindex is not None and tabindex != "-1" and node.parent_tag != "body")
            or ADDRESS_AUTOCOMPLETE_CLASS in node.class_list
            or attrs.get("data-action") in DROPDOWN_DATA_ACTIONS
        ):
            return True

        # body and its direct children only qualify through the tiers above
        if node.tag == "body" or node.parent_tag == "body":
            return False
        return self._has_click_affinity(node)

    def _has_click_affinity(self, node: LiveNode) -> bool:
        attrs = node.attributes
        if node.has_onclick or any(name in attrs for name in CLICK_BINDING_ATTRIBUTES):
            return True
        listeners = self._listeners(node)
        if any(listeners.get(event, 0) > 0 for event in CLICK_LISTENER_EVENTS):
            return True
        if any(name in attrs for name in ARIA_STATE_ATTRIBUTES):
            return True
        return node.draggable or attrs.get("draggable") == "true"

    def _listeners(self, node: LiveNode) -> Dict[str, int]:
        introspected = self._caps.event_listeners(node)
        if introspected is not None:
            return introspected
        return {event: 1 for event in INLINE_HANDLER_EVENTS if f"on{event}" in node.attributes}

    def _is_visible(self, node: LiveNode) -> bool:
        if node.offset_width <= 0 or node.offset_height <= 0:
            return False
        return self._caps.compute_style(node).css_visible

    def _is_top_element(self, node: LiveNode, state: _TraversalState) -> bool:
        if not node.in_main_document:
            return True
        if state.viewport_expansion == UNBOUNDED_VIEWPORT:
            return True

        center = node.rect.center
        if node.shadow_scope is not None:
            try:
                hit = self._caps.hit_test(center, scope=node.shadow_scope)
            except Exception as e:
                logger.debug("Shadow hit-test failed for node %s, assuming top: %s", node.node_id, e)
                return True
            return self._is_self_or_ancestor(node, hit)

        vp = state.viewport
        expansion = state.viewport_expansion
        viewport_top = vp.scroll_y - expansion
        viewport_left = vp.scroll_x - expansion
        viewport_bottom = vp.scroll_y + vp.height + expansion
        viewport_right = vp.scroll_x + vp.width + expansion

        abs_top = node.rect.top + vp.scroll_y
        abs_left = node.rect.left + vp.scroll_x
        abs_bottom = node.rect.bottom + vp.scroll_y
        abs_right = node.rect.right + vp.scroll_x
        if (
            abs_bottom < viewport_top
            or abs_top > viewport_bottom
            or abs_right < viewport_left
            or abs_left > viewport_right
        ):
            return False

        if not (0 <= center.x < vp.width and 0 <= center.y < vp.height):
            # cannot hit-test outside the visual viewport
            return True
        try:
            hit = self._caps.hit_test(center)
        except Exception as e:
            logger.debug("Hit-test failed for node %s, assuming top: %s", node.node_id, e)
            return True
        return self._is_self_or_ancestor(node, hit)

    @staticmethod
    def _is_self_or_ancestor(node: LiveNode, hit: Optional[LiveNode]) -> bool:
        current = hit
        while current is not None:
            if current is node:
                return True
            current = current.parent
        return False

    # ------------------------------------------------------------------
    @staticmethod
    def _child_xpath(parent_xpath: str, child: LiveNode, position: int) -> str:
        """Sibling-indexed path, restarting at shadow-root and iframe boundaries.

        `position` counts earlier siblings with the same tag and boundary.
        """
        segment = f"{child.tag}[{position + 1}]" if position else child.tag
        if child.boundary == Boundary.SHADOW:
            return segment
        if child.boundary == Boundary.FRAME:
            return "html/body" if child.tag == "body" else f"html/body/{segment}"
        return f"{parent_xpath}/{segment}"
