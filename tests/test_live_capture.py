"""Snapshot capture against a real Chromium page.

Needs `playwright install chromium`; run with `pytest -m browser`.
"""

from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from web_tester.browser_session import BrowserSession
from web_tester.highlight_overlay import CONTAINER_ID, HIGHLIGHT_ATTRIBUTE, highlight_attribute_value

pytestmark = [pytest.mark.browser, pytest.mark.asyncio]

PAGE = """
<html>
<body style="margin: 0">
  <button id="plain">Plain</button>
  <shadow-host id="host"></shadow-host>
  <iframe id="frame" style="position: absolute; top: 120px; left: 0; width: 300px; height: 80px; border: 0"
          srcdoc="<button id='inner'>Inner</button>"></iframe>
  <div style="position: relative; margin-top: 300px; width: 200px">
    <button id="covered">Covered</button>
    <div style="position: absolute; top: 0; left: 0; right: 0; bottom: 0; background: white"></div>
  </div>
  <script>
    const root = document.getElementById('host').attachShadow({mode: 'open'});
    root.innerHTML = '<button id="shadowed">Shadow</button>';
    root.getElementById('shadowed').addEventListener('click', () => { window.shadowClicked = true; });
  </script>
</body>
</html>
"""


@pytest_asyncio.fixture
async def live_session():
    session = BrowserSession(
        headless=True, analyzer=MagicMock(), navigation_timeout_ms=5000, idle_timeout_ms=1000
    )
    await session.init()
    await session._page.set_content(PAGE)
    yield session
    await session.close()


def _indexed_ids(root):
    return {
        el.attributes.get("id"): el.highlight_index
        for el in root.iter_elements()
        if el.highlight_index >= 0
    }


async def test_capture_reaches_shadow_roots_and_iframes(live_session):
    root = await live_session.refresh_snapshot()

    indexed = _indexed_ids(root)
    assert set(indexed) == {"plain", "shadowed", "inner"}
    assert indexed["plain"] < indexed["shadowed"] < indexed["inner"]


async def test_occluded_button_is_not_indexed(live_session):
    root = await live_session.refresh_snapshot()

    covered = next(el for el in root.iter_elements() if el.attributes.get("id") == "covered")
    assert covered.is_visible
    assert not covered.is_top_element
    assert covered.highlight_index < 0


async def test_painter_tags_indexed_elements(live_session):
    root = await live_session.refresh_snapshot()
    indexed = _indexed_ids(root)
    page = live_session._page

    plain = await page.evaluate(
        "(attr) => document.getElementById('plain').getAttribute(attr)", HIGHLIGHT_ATTRIBUTE
    )
    shadowed = await page.evaluate(
        "(attr) => document.getElementById('host').shadowRoot.getElementById('shadowed').getAttribute(attr)",
        HIGHLIGHT_ATTRIBUTE,
    )
    labels = await page.evaluate(
        "(id) => Array.from(document.getElementById(id).querySelectorAll('.playwright-highlight-label'))"
        ".map(l => l.textContent)",
        CONTAINER_ID,
    )

    assert plain == highlight_attribute_value(indexed["plain"])
    assert shadowed == highlight_attribute_value(indexed["shadowed"])
    assert sorted(labels) == sorted(str(i) for i in indexed.values())


async def test_refresh_replaces_previous_overlay(live_session):
    await live_session.refresh_snapshot()
    await live_session.refresh_snapshot()

    containers = await live_session._page.evaluate(
        "(id) => document.querySelectorAll('#' + id).length", CONTAINER_ID
    )
    assert containers == 1


async def test_click_reaches_shadow_button(live_session):
    root = await live_session.refresh_snapshot()
    index = _indexed_ids(root)["shadowed"]

    result = await live_session.click(str(index))

    assert result.startswith(f"Clicked element with highlightIndex = {index}.")
    assert await live_session._page.evaluate("() => window.shadowClicked === true")
