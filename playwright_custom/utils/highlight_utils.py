import logging
from typing import List, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from playwright_custom.page_capabilities import NODE_REGISTRY_KEY
from web_tester.highlight_overlay import CONTAINER_ID, HIGHLIGHT_ATTRIBUTE, HighlightBox

logger = logging.getLogger(__name__)


class HighlightPainter:
    """
    Paints numbered highlight boxes over captured elements and removes them again.
    """

    def __init__(self) -> None:
        self.painted_indices: List[int] = []

    async def clear(self, page: Page) -> None:
        """
        Remove the overlay container and the highlight attribute left by the previous pass.

        Args:
            page (Page): The Playwright page object.
        """
        try:
            await page.evaluate(
                """
                ([containerId, attribute]) => {
                    const container = document.getElementById(containerId);
                    if (container) {
                        container.remove();
                    }
                    document.querySelectorAll(`[${attribute}]`).forEach(el => {
                        el.removeAttribute(attribute);
                    });
                }
                """,
                [CONTAINER_ID, HIGHLIGHT_ATTRIBUTE],
            )
            self.painted_indices = []
        except PlaywrightError as e:
            logger.warning(f"Error clearing highlight overlay: {e}")

    async def paint(self, page: Page, boxes: Sequence[HighlightBox]) -> None:
        """
        Draw one box and label per entry and tag the underlying element.

        Boxes refer to elements by the node id assigned during the last capture,
        so this must run against the same page state the snapshot was built from.

        Args:
            page (Page): The Playwright page object.
            boxes (Sequence[HighlightBox]): Layout computed by the snapshot builder.
        """
        if not boxes:
            return
        try:
            await page.evaluate(
                """
                ([boxes, containerId, attribute, registryKey]) => {
                    let container = document.getElementById(containerId);
                    if (!container) {
                        container = document.createElement('div');
                        container.id = containerId;
                        container.style.position = 'absolute';
                        container.style.pointerEvents = 'none';
                        container.style.top = '0';
                        container.style.left = '0';
                        container.style.width = '100%';
                        container.style.height = '100%';
                        container.style.zIndex = '2147483647';
                        document.body.appendChild(container);
                    }
                    const registry = window[registryKey] || [];

                    boxes.forEach(box => {
                        const overlay = document.createElement('div');
                        overlay.style.position = 'absolute';
                        overlay.style.border = `2px solid ${box.color}`;
                        overlay.style.backgroundColor = box.background;
                        overlay.style.pointerEvents = 'none';
                        overlay.style.boxSizing = 'border-box';
                        overlay.style.top = `${box.top}px`;
                        overlay.style.left = `${box.left}px`;
                        overlay.style.width = `${box.width}px`;
                        overlay.style.height = `${box.height}px`;

                        const label = document.createElement('div');
                        label.className = 'playwright-highlight-label';
                        label.style.position = 'absolute';
                        label.style.background = box.color;
                        label.style.color = 'white';
                        label.style.padding = '1px 4px';
                        label.style.borderRadius = '4px';
                        label.style.fontSize = `${box.fontSize}px`;
                        label.style.top = `${box.labelTop}px`;
                        label.style.left = `${box.labelLeft}px`;
                        label.textContent = String(box.index);

                        container.appendChild(overlay);
                        container.appendChild(label);

                        const el = registry[box.nodeId];
                        if (el && el.setAttribute) {
                            el.setAttribute(attribute, box.attribute);
                        }
                    });
                }
                """,
                [[b.to_dict() for b in boxes], CONTAINER_ID, HIGHLIGHT_ATTRIBUTE, NODE_REGISTRY_KEY],
            )
            self.painted_indices = [b.index for b in boxes]
        except PlaywrightError as e:
            logger.warning(f"Error painting highlight overlay: {e}")
