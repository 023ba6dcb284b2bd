"""Web Tester package: drive a browser for automated testing through a small menu of named actions.

An external decision process (typically an LLM) never sees raw markup. It works on a structural snapshot of the
page in which interactive, visible and unobstructed elements carry a numeric highlight index.

Key sub-modules:

snapshot.py            – Snapshot data model (element / text nodes, box geometry, nearby text).
dom_capabilities.py    – Capability interface the builder needs from the live page (tree, styles, hit-tests).
snapshot_builder.py    – Classification and highlight-index assignment over the live tree.
highlight_overlay.py   – Layout of the numbered overlay boxes.
element_resolver.py    – Tiered mapping from a highlight index back to a Playwright locator.
browser_session.py     – The action surface (navigate, list, inspect, click, fill, screenshots, close).
action_registry.py     – Static name → handler table used to enumerate and dispatch actions.
planner.py             – Template QA plans behind the test-planning actions.
vision.py              – Screenshot analysis through an OpenAI vision model.

All runtime-level browser operations are delegated to the helpers under the `playwright_custom` package
(`PlaywrightDomCapabilities`, `HighlightPainter`).
"""
