import logging
from unittest.mock import AsyncMock

import pytest
from playwright.async_api import Error as PlaywrightError

from playwright_custom.page_capabilities import NODE_REGISTRY_KEY
from playwright_custom.utils.highlight_utils import HighlightPainter
from web_tester.dom_capabilities import Rect
from web_tester.highlight_overlay import CONTAINER_ID, HIGHLIGHT_ATTRIBUTE, layout_highlight


@pytest.mark.asyncio
async def test_paint_sends_box_layout_and_records_indices(page):
    boxes = [layout_highlight(0, 11, Rect(0, 0, 50, 20), 0, 0), layout_highlight(1, 12, Rect(0, 30, 50, 20), 0, 0)]
    painter = HighlightPainter()

    await painter.paint(page, boxes)

    args = page.evaluate.await_args.args[1]
    assert args[0] == [b.to_dict() for b in boxes]
    assert args[1:] == [CONTAINER_ID, HIGHLIGHT_ATTRIBUTE, NODE_REGISTRY_KEY]
    assert painter.painted_indices == [0, 1]


@pytest.mark.asyncio
async def test_paint_nothing_skips_the_page(page):
    await HighlightPainter().paint(page, [])
    page.evaluate.assert_not_awaited()


@pytest.mark.asyncio
async def test_clear_resets_painted_indices(page):
    painter = HighlightPainter()
    painter.painted_indices = [0, 1, 2]

    await painter.clear(page)

    assert page.evaluate.await_args.args[1] == [CONTAINER_ID, HIGHLIGHT_ATTRIBUTE]
    assert painter.painted_indices == []


@pytest.mark.asyncio
async def test_page_errors_are_logged_not_raised(page, caplog):
    page.evaluate = AsyncMock(side_effect=PlaywrightError("Execution context was destroyed"))
    painter = HighlightPainter()

    with caplog.at_level(logging.WARNING):
        await painter.paint(page, [layout_highlight(0, 1, Rect(0, 0, 50, 20), 0, 0)])
        await painter.clear(page)

    assert painter.painted_indices == []
    assert "Execution context was destroyed" in caplog.text
