"""Geometry of the numbered highlight boxes painted over indexed elements.

Only layout lives here; painting into the page is done by
`playwright_custom.utils.highlight_utils.HighlightPainter`.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .dom_capabilities import Rect

CONTAINER_ID = "playwright-highlight-container"
HIGHLIGHT_ATTRIBUTE = "browser-user-highlight-id"

PALETTE = (
    "#FF0000",
    "#00FF00",
    "#0000FF",
    "#FFA500",
    "#800080",
    "#008080",
    "#FF69B4",
    "#4B0082",
    "#FF4500",
    "#2E8B57",
    "#DC143C",
    "#4682B4",
)

LABEL_WIDTH = 20
LABEL_HEIGHT = 16


def highlight_attribute_value(index: int) -> str:
    return f"playwright-highlight-{index}"


def highlight_selector(index: int) -> str:
    """Last-resort CSS selector for an element painted in the latest overlay pass."""
    return f'[{HIGHLIGHT_ATTRIBUTE}="{highlight_attribute_value(index)}"]'


@dataclass(frozen=True)
class HighlightBox:
    """One overlay box plus its label, in page coordinates of the main document."""

    index: int
    node_id: int
    color: str
    top: float
    left: float
    width: float
    height: float
    label_top: float
    label_left: float
    font_size: float

    @property
    def background(self) -> str:
        return f"{self.color}1A"  # ~10% alpha

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "nodeId": self.node_id,
            "color": self.color,
            "background": self.background,
            "top": self.top,
            "left": self.left,
            "width": self.width,
            "height": self.height,
            "labelTop": self.label_top,
            "labelLeft": self.label_left,
            "fontSize": self.font_size,
            "attribute": highlight_attribute_value(self.index),
        }


def layout_highlight(index: int, node_id: int, rect: Rect, scroll_x: float, scroll_y: float,
                     frame_offset_x: float = 0.0, frame_offset_y: float = 0.0) -> HighlightBox:
    """Place the box for *rect* and its label.

    The label sits inside the top-right corner, or just above the box when
    the box is too small to hold it.
    """
    top = rect.top + scroll_y + frame_offset_y
    left = rect.left + scroll_x + frame_offset_x

    label_top = top + 2
    label_left = left + rect.width - LABEL_WIDTH - 2
    if rect.width < LABEL_WIDTH + 4 or rect.height < LABEL_HEIGHT + 4:
        label_top = top - LABEL_HEIGHT - 2
        label_left = left + rect.width - LABEL_WIDTH

    return HighlightBox(
        index=index,
        node_id=node_id,
        color=PALETTE[index % len(PALETTE)],
        top=top,
        left=left,
        width=rect.width,
        height=rect.height,
        label_top=label_top,
        label_left=label_left,
        font_size=min(12.0, max(8.0, rect.height / 2)),
    )
