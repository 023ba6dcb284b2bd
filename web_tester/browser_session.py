from __future__ import annotations

"""The action surface: one browser session driven through named actions.

Every action takes a single string payload and returns a string (plain text
or JSON, possibly with an embedded base64 screenshot). Precondition, parse
and resolution problems are reported in that string so the orchestrator can
recover conversationally; only a failed `init()` raises.
"""

import asyncio
import base64
import functools
import json
import logging
import re
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from playwright_custom.page_capabilities import PlaywrightDomCapabilities
from playwright_custom.utils.highlight_utils import HighlightPainter

from . import config
from .action_registry import browser_action
from .element_resolver import ElementResolver
from .errors import ElementNotFoundError, PayloadError
from .planner import COMPLETION_MESSAGE, MISSING_TARGET_MESSAGE, QaPlanner
from .snapshot import ElementNode, element_detail, interactive_elements
from .snapshot_builder import DENIED_TAGS, SnapshotBuilder
from .vision import ScreenshotAnalyzer

logger = logging.getLogger(__name__)

NO_SESSION_MESSAGE = "Error: no active session. Call init() first."
NO_SNAPSHOT_MESSAGE = "No DOM snapshot available. Use visitUrl first."

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_OPAQUE_SCHEMES = ("about:", "data:")


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


def normalize_url(url: str) -> str:
    """Prefix https:// unless the URL already names a scheme."""
    url = url.strip()
    if _SCHEME_RE.match(url) or url.lower().startswith(_OPAQUE_SCHEMES):
        return url
    return "https://" + url


def parse_highlight_index(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise PayloadError(f'Could not parse highlightIndex from "{text.strip()}". Must be a number.') from None


def parse_fill_payload(payload: str) -> Tuple[int, str]:
    """Split `"<index>||<text>"` on the first separator."""
    index_text, _, text = payload.partition("||")
    try:
        index = int(index_text.strip())
    except ValueError:
        raise PayloadError(
            f'Could not parse highlightIndex from "{index_text.strip()}". Use "5||Hello world" syntax.'
        ) from None
    text = text.strip()
    if not text:
        raise PayloadError('No text provided. Use "5||Hello world".')
    return index, text


def _requires_page(func: Callable[..., Awaitable[str]]) -> Callable[..., Awaitable[str]]:
    @functools.wraps(func)
    async def wrapper(self: "BrowserSession", payload: str = "") -> str:
        if self._page is None:
            return NO_SESSION_MESSAGE
        return await func(self, payload)

    return wrapper


class BrowserSession:
    """Owns one Playwright browser, context and page plus the current snapshot."""

    def __init__(
        self,
        headless: bool = config.HEADLESS,
        analyzer: Optional[ScreenshotAnalyzer] = None,
        navigation_timeout_ms: int = config.NAVIGATION_TIMEOUT_MS,
        click_timeout_ms: int = config.CLICK_TIMEOUT_MS,
        idle_timeout_ms: int = config.POST_ACTION_IDLE_TIMEOUT_MS,
    ) -> None:
        self.headless = headless
        self._analyzer = analyzer or ScreenshotAnalyzer()
        self._navigation_timeout_ms = navigation_timeout_ms
        self._click_timeout_ms = click_timeout_ms
        self._idle_timeout_ms = idle_timeout_ms

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._snapshot: Optional[ElementNode] = None
        self._state = SessionState.UNINITIALIZED

        self._painter = HighlightPainter()
        self._planner = QaPlanner()
        # snapshot rebuilds tear down and repaint a shared overlay
        self._snapshot_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # lifecycle ---------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def snapshot(self) -> Optional[ElementNode]:
        return self._snapshot

    async def __aenter__(self) -> "BrowserSession":
        await self.init()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def init(self) -> None:
        """Launch the browser. Launch failures propagate to the caller."""
        if self._page is not None:
            return
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
            self._context = await self._browser.new_context(ignore_https_errors=True)
            page = await self._context.new_page()
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            self._browser = None
            self._context = None
            raise
        self._bind(page)
        logger.info("Browser session started (headless=%s)", self.headless)

    def _bind(self, page: Page) -> None:
        self._page = page
        self._snapshot = None
        self._state = SessionState.READY

    @browser_action("closeBrowser", "Closes the current browser session")
    async def close(self, _payload: str = "") -> str:
        browser, playwright = self._browser, self._playwright
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None
        self._snapshot = None
        self._state = SessionState.CLOSED

        try:
            if browser is not None:
                await browser.close()
        except PlaywrightError as e:
            logger.warning("Error closing browser: %s", e)
        try:
            if playwright is not None:
                await playwright.stop()
        except PlaywrightError as e:
            logger.warning("Error stopping Playwright: %s", e)
        return "Browser closed successfully."

    def current_url(self) -> Optional[str]:
        return self._page.url if self._page is not None else None

    # ------------------------------------------------------------------
    # snapshot ----------------------------------------------------------

    async def refresh_snapshot(
        self, highlight: bool = True, focus_index: int = -1, viewport_expansion: int = 0
    ) -> ElementNode:
        """Replace the current snapshot with a fresh one and repaint overlays."""
        page = self._page
        if page is None:
            raise RuntimeError("No Page found. Did you call init()?")
        async with self._snapshot_lock:
            self._snapshot = None
            await self._painter.clear(page)
            caps = await PlaywrightDomCapabilities.capture(page, DENIED_TAGS)
            build = SnapshotBuilder(caps).build(
                highlight=highlight, focus_index=focus_index, viewport_expansion=viewport_expansion
            )
            if highlight:
                await self._painter.paint(page, build.highlights)
            self._snapshot = build.root
            return build.root

    # ------------------------------------------------------------------
    # actions -----------------------------------------------------------

    @browser_action("visitUrl", "Navigate to a specified URL and store the updated DOM internally.")
    @_requires_page
    async def navigate(self, payload: str) -> str:
        if not payload.strip():
            return "No URL provided. Use visitUrl with a URL, e.g. example.com"
        url = normalize_url(payload)
        try:
            await self._page.goto(url, wait_until="networkidle", timeout=self._navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            logger.warning("Navigation to %s did not reach network idle: %s", url, e)
        await self.refresh_snapshot()
        return f"Visited URL: {url} and updated DOM snapshot."

    @browser_action(
        "listClickableElements",
        "Returns a JSON array of { highlightIndex, text, tag } for clickable elements with a screenshot of the page.",
    )
    @_requires_page
    async def list_interactive(self, _payload: str = "") -> str:
        if self._snapshot is None:
            return NO_SNAPSHOT_MESSAGE
        await self._wait_for_load_states()
        await self.refresh_snapshot()
        elements = interactive_elements(self._snapshot)
        return json.dumps(
            {
                "elements": [e.to_dict() for e in elements],
                "base64Image": await self._screenshot_base64(full_page=True),
                "message": "Clickable elements with page screenshot",
            },
            indent=2,
        )

    @browser_action("getElementDetails", "Provide detail about a single element by highlightIndex with a screenshot.")
    @_requires_page
    async def inspect(self, payload: str) -> str:
        if self._snapshot is None:
            return NO_SNAPSHOT_MESSAGE
        try:
            index = parse_highlight_index(payload)
        except PayloadError as e:
            return str(e)
        detail = element_detail(self._snapshot, index, text_limit=config.NEARBY_TEXT_LIMIT)
        if detail is None:
            return f"Error: No element found with highlightIndex = {index}"

        await self.refresh_snapshot(highlight=True, focus_index=index)
        return json.dumps(
            {
                "element": detail.to_dict(),
                "base64Image": await self._screenshot_base64(),
                "message": f"Element details for highlightIndex {index}",
            },
            indent=2,
        )

    @browser_action("clickElementByHighlightIndex", "Clicks on an element by its highlightIndex in the current DOM")
    @_requires_page
    async def click(self, payload: str) -> str:
        try:
            index = parse_highlight_index(payload)
            locator = ElementResolver(self._page).resolve(self._snapshot, index)
        except (PayloadError, ElementNotFoundError) as e:
            return f"Error: {e}"

        try:
            await locator.click(timeout=self._click_timeout_ms)
        except PlaywrightError as e:
            # no forced-click fallback; the fresh snapshot shows what happened
            logger.warning("Click on highlightIndex %s failed, continuing: %s", index, e)
        await self._wait_for_network_idle()

        await self.refresh_snapshot()
        elements = [e.to_dict() for e in interactive_elements(self._snapshot)]
        return f"Clicked element with highlightIndex = {index}.\nnew state: {json.dumps(elements, indent=2)}"

    @browser_action(
        "fillInputByHighlightIndex",
        'Fills an input at "highlightIndex" with text. Format: {"tool": "fillInputByHighlightIndex", "args": "<highlightIndex>||sometext"}',
    )
    @_requires_page
    async def fill(self, payload: str) -> str:
        try:
            index, text = parse_fill_payload(payload)
            locator = ElementResolver(self._page).resolve(self._snapshot, index)
        except (PayloadError, ElementNotFoundError) as e:
            return f"Error: {e}"

        await locator.fill(text)
        await self.refresh_snapshot()
        return f'Filled element at highlightIndex {index} with "{text}"'

    @browser_action(
        "openDropdown",
        "Opens a dropdown or autocomplete input and updates the DOM snapshot. e.g. openDropdown 5",
    )
    @_requires_page
    async def open_dropdown(self, payload: str) -> str:
        try:
            index = parse_highlight_index(payload)
            locator = ElementResolver(self._page).resolve(self._snapshot, index)
        except (PayloadError, ElementNotFoundError) as e:
            return f"Error: {e}"

        await locator.click()
        await self._wait_for_network_idle()
        await self.refresh_snapshot()
        return (
            f"Opened dropdown/autocomplete for element with highlightIndex = {index} "
            "and updated the DOM snapshot."
        )

    @browser_action("takeScreenshot", "Takes a screenshot of the current page and encodes it as base64 for vision models.")
    @_requires_page
    async def screenshot(self, _payload: str = "") -> str:
        return json.dumps(
            {"base64Image": await self._screenshot_base64(), "message": "Screenshot taken successfully."}
        )

    @browser_action("analyzeScreenshot", "Takes a screenshot and sends it to the vision model for analysis.")
    @_requires_page
    async def analyze_screenshot(self, payload: str = "") -> str:
        prompt = payload.strip() or config.DEFAULT_VISION_PROMPT
        logger.debug("Screenshot prompt: %s", prompt)
        image = await self._screenshot_base64()
        return await self._analyzer.analyze(image, prompt)

    @browser_action("saveScreenshot", "Takes a screenshot and saves it to a file. Format: saveScreenshot filename.png")
    @_requires_page
    async def save_screenshot(self, payload: str = "") -> str:
        filename = payload.strip() or f"screenshot-{int(time.time() * 1000)}.png"
        await self._page.screenshot(path=filename)
        return f"Screenshot saved to {filename}"

    # ------------------------------------------------------------------
    # test planning -----------------------------------------------------

    @browser_action(
        "createTestPlan",
        "Creates a comprehensive test plan for an application or specific feature. "
        "Specify what to test, e.g., 'login form', 'checkout process'.",
    )
    @_requires_page
    async def create_test_plan(self, payload: str) -> str:
        if not payload.strip():
            return MISSING_TARGET_MESSAGE
        plan = self._planner.create_plan(payload, self._page.url)
        return json.dumps(plan.to_dict(), indent=2)

    @browser_action("startTest", "Begins executing a specific test case from the test plan. Format: 'TestCaseID'")
    async def start_test(self, payload: str = "") -> str:
        return self._planner.start_case(payload)

    @browser_action("completeTesting", "Completes the current testing session and generates a summary report.")
    async def complete_testing(self, _payload: str = "") -> str:
        return json.dumps({"message": COMPLETION_MESSAGE}, indent=2)

    # ------------------------------------------------------------------
    # helpers -----------------------------------------------------------

    async def _screenshot_base64(self, full_page: bool = False) -> str:
        raw = await self._page.screenshot(full_page=full_page)
        return base64.b64encode(raw).decode("ascii")

    async def _wait_for_network_idle(self) -> None:
        try:
            await self._page.wait_for_load_state("networkidle", timeout=self._idle_timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug("Network did not go idle within %s ms; continuing", self._idle_timeout_ms)

    async def _wait_for_load_states(self) -> None:
        for state in ("load", "domcontentloaded"):
            try:
                await self._page.wait_for_load_state(state, timeout=config.LOAD_STATE_TIMEOUT_MS)
            except PlaywrightTimeoutError:
                logger.debug("Page did not reach '%s' in time; continuing", state)
