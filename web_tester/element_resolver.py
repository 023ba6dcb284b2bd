from __future__ import annotations

"""Map a highlight index from the latest snapshot back to a live Playwright locator.

Highlight indices are not selectors, and raw attribute selectors break when
the page re-renders, so resolution prefers role/text matching, then id and
class, and only falls back to the synthetic overlay attribute when there is
no snapshot to consult at all.
"""

import logging
from typing import Optional

from playwright.async_api import Locator, Page

from . import config
from .errors import ElementNotFoundError
from .highlight_overlay import highlight_selector
from .snapshot import ElementDetail, ElementNode, element_detail

logger = logging.getLogger(__name__)


def _quote(value: str) -> str:
    """Escape a value for a double-quoted CSS attribute selector."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


class ElementResolver:
    def __init__(self, page: Page, text_limit: int = config.NEARBY_TEXT_LIMIT) -> None:
        self._page = page
        self._text_limit = text_limit

    def resolve(self, snapshot: Optional[ElementNode], highlight_index: int) -> Locator:
        """Return a locator for *highlight_index*; first matching tier wins.

        Raises `ElementNotFoundError` when a snapshot exists but does not
        contain the index.
        """
        if snapshot is None:
            logger.debug("No snapshot available; using overlay attribute for index %s", highlight_index)
            return self._page.locator(highlight_selector(highlight_index)).first

        detail = element_detail(snapshot, highlight_index, text_limit=self._text_limit)
        if detail is None:
            raise ElementNotFoundError(highlight_index)
        logger.debug("Element details: %s", detail)
        return self.locator_for(detail)

    def locator_for(self, detail: ElementDetail) -> Locator:
        attrs = detail.attributes
        if detail.tag_name == "button":
            role = attrs.get("role") or detail.tag_name
            return self._page.get_by_role(role, name=detail.text_nearby).first  # type: ignore[arg-type]

        if detail.tag_name == "a":
            return self._page.get_by_text(detail.text_nearby).first

        if attrs.get("id"):
            logger.debug("ID found: %s", attrs["id"])
            return self._page.locator(f'[id="{_quote(attrs["id"])}"]')

        classes = attrs.get("class", "").split()
        if classes:
            logger.debug("Class found: %s", attrs["class"])
            return self._page.locator("".join(f'[class~="{_quote(c)}"]' for c in classes))

        # Neither id nor class: the selector is knowingly empty and fails downstream.
        return self._page.locator(f"#{attrs.get('id') or attrs.get('class') or ''}")
