from __future__ import annotations

"""Playwright-hosted implementation of the DOM capability interface.

A single `page.evaluate` call serialises the live document (main frame,
open shadow roots and same-origin iframes) together with everything the
snapshot builder will ask about: computed styles, listener introspection
where the page exposes it, and hit-tests at every element's center.
The element references are kept in the page (`window.__webTesterNodes`) so
the overlay painter can tag exactly the elements that were captured.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from playwright.async_api import Page

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
from web_tester.errors import HitTestUnavailable
from web_tester.snapshot import Point

logger = logging.getLogger(__name__)

NODE_REGISTRY_KEY = "__webTesterNodes"

CAPTURE_SCRIPT = """
(args) => {
    const pruneTags = new Set(args.pruneTags);
    const registry = [];
    const ids = new Map();
    const pendingHits = [];
    const listenersSupported = typeof window.getEventListeners === 'function';
    window[args.registryKey] = registry;

    function styleOf(el) {
        if (!el) {
            return { display: 'block', visibility: 'visible', opacity: '1', rendered: null };
        }
        const view = el.ownerDocument.defaultView || window;
        const cs = view.getComputedStyle(el);
        let rendered = null;
        if (typeof el.checkVisibility === 'function') {
            rendered = el.checkVisibility({ checkOpacity: true, checkVisibilityCSS: true });
        }
        return { display: cs.display, visibility: cs.visibility, opacity: cs.opacity, rendered };
    }

    function listenersOf(el) {
        if (!listenersSupported) return null;
        try {
            const all = window.getEventListeners(el) || {};
            const counts = {};
            for (const type of Object.keys(all)) counts[type] = all[type].length;
            return counts;
        } catch (e) {
            return null;
        }
    }

    function rectOf(r) {
        return [r.left, r.top, r.width, r.height];
    }

    function serialize(node, boundary, inMain, shadowScope) {
        if (node.nodeType === Node.TEXT_NODE) {
            const id = registry.length;
            registry.push(node);
            const range = node.ownerDocument.createRange();
            range.selectNodeContents(node);
            return {
                id, kind: 'text', text: node.textContent || '', boundary,
                rect: rectOf(range.getBoundingClientRect()),
                style: styleOf(node.parentElement),
            };
        }
        if (node.nodeType !== Node.ELEMENT_NODE) return null;

        const el = node;
        const id = registry.length;
        registry.push(el);
        ids.set(el, id);

        const tag = el.tagName.toLowerCase();
        const rect = el.getBoundingClientRect();
        const attrs = {};
        for (const name of el.getAttributeNames()) attrs[name] = el.getAttribute(name);

        const data = {
            id, kind: 'element', tag, attrs, boundary, inMain, shadowScope,
            rect: rectOf(rect),
            offset: [
                el.offsetWidth !== undefined ? el.offsetWidth : rect.width,
                el.offsetHeight !== undefined ? el.offsetHeight : rect.height,
            ],
            parentTag: el.parentElement ? el.parentElement.tagName.toLowerCase() : null,
            onclick: typeof el.onclick === 'function',
            draggable: el.draggable === true,
            shadow: !!el.shadowRoot,
            frameAccessible: true,
            style: styleOf(el),
            listeners: listenersOf(el),
            children: [],
        };
        if (pruneTags.has(tag)) return data;

        if (inMain) {
            const cx = rect.left + rect.width / 2;
            const cy = rect.top + rect.height / 2;
            if (shadowScope !== null) {
                pendingHits.push([shadowScope, cx, cy, el.getRootNode()]);
            } else if (cx >= 0 && cx < window.innerWidth && cy >= 0 && cy < window.innerHeight) {
                pendingHits.push([null, cx, cy, document]);
            }
        }

        if (el.shadowRoot) {
            for (const child of el.shadowRoot.childNodes) {
                const c = serialize(child, 'shadow', inMain, id);
                if (c) data.children.push(c);
            }
        }

        if (tag === 'iframe') {
            let doc = null;
            try {
                doc = el.contentDocument || (el.contentWindow && el.contentWindow.document);
            } catch (e) {
                doc = null;
            }
            if (doc && doc.body) {
                for (const child of doc.body.childNodes) {
                    const c = serialize(child, 'frame', false, null);
                    if (c) data.children.push(c);
                }
            } else {
                data.frameAccessible = false;
            }
        } else {
            for (const child of el.childNodes) {
                const c = serialize(child, 'child', inMain, shadowScope);
                if (c) data.children.push(c);
            }
        }
        return data;
    }

    function nearestCaptured(el) {
        let cur = el;
        while (cur) {
            if (ids.has(cur)) return ids.get(cur);
            if (cur.parentElement) {
                cur = cur.parentElement;
            } else {
                const root = cur.getRootNode();
                cur = root instanceof ShadowRoot ? root.host : null;
            }
        }
        return null;
    }

    if (!document.body) {
        return { root: null, hitTests: [], listenersSupported, viewport: null };
    }
    const root = serialize(document.body, 'child', true, null);

    const hitTests = [];
    for (const [scope, x, y, target] of pendingHits) {
        try {
            const hit = target.elementFromPoint(x, y);
            hitTests.push([scope, x, y, hit ? nearestCaptured(hit) : null, null]);
        } catch (e) {
            hitTests.push([scope, x, y, null, String(e)]);
        }
    }

    return {
        root,
        hitTests,
        listenersSupported,
        viewport: {
            scrollX: window.scrollX,
            scrollY: window.scrollY,
            width: window.innerWidth,
            height: window.innerHeight,
        },
    };
}
"""

_HitKey = Tuple[Optional[int], float, float]


def _hit_key(scope: Optional[int], x: float, y: float) -> _HitKey:
    return (scope, round(x, 3), round(y, 3))


class PlaywrightDomCapabilities(DomCapabilities):
    """Answers capability queries from one captured payload."""

    def __init__(self, payload: Dict[str, Any]) -> None:
        self._nodes: Dict[int, LiveNode] = {}
        self._styles: Dict[int, ComputedStyle] = {}
        self._listeners: Dict[int, Optional[Dict[str, int]]] = {}
        self._listeners_supported = bool(payload.get("listenersSupported"))

        raw_vp = payload.get("viewport") or {}
        self._viewport = ViewportInfo(
            scroll_x=float(raw_vp.get("scrollX", 0)),
            scroll_y=float(raw_vp.get("scrollY", 0)),
            width=int(raw_vp.get("width", 0)),
            height=int(raw_vp.get("height", 0)),
        )

        raw_root = payload.get("root")
        self._root = link_parents(self._parse(raw_root)) if raw_root else None

        self._hits: Dict[_HitKey, Tuple[Optional[int], Optional[str]]] = {}
        for scope, x, y, hit_id, error in payload.get("hitTests", []):
            self._hits[_hit_key(scope, x, y)] = (hit_id, error)

    @classmethod
    async def capture(cls, page: Page, prune_tags: Iterable[str]) -> "PlaywrightDomCapabilities":
        """Serialise the live page in one round trip."""
        payload = await page.evaluate(
            CAPTURE_SCRIPT,
            {"pruneTags": sorted(prune_tags), "registryKey": NODE_REGISTRY_KEY},
        )
        caps = cls(payload or {})
        logger.debug("Captured %d live nodes, %d hit-tests", len(caps._nodes), len(caps._hits))
        return caps

    # ------------------------------------------------------------------
    def _parse(self, raw: Dict[str, Any]) -> LiveNode:
        left, top, width, height = raw.get("rect") or (0, 0, 0, 0)
        node = LiveNode(
            node_id=int(raw["id"]),
            kind=NodeKind(raw.get("kind", "element")),
            boundary=Boundary(raw.get("boundary", "child")),
            rect=Rect(float(left), float(top), float(width), float(height)),
        )
        style = raw.get("style") or {}
        self._styles[node.node_id] = ComputedStyle(
            display=style.get("display", "block"),
            visibility=style.get("visibility", "visible"),
            opacity=str(style.get("opacity", "1")),
            rendered=style.get("rendered"),
        )
        self._nodes[node.node_id] = node

        if node.kind == NodeKind.TEXT:
            node.text = raw.get("text", "")
            return node

        offset_w, offset_h = raw.get("offset") or (0, 0)
        node.tag = raw.get("tag", "")
        node.attributes = {str(k): str(v) for k, v in (raw.get("attrs") or {}).items()}
        node.offset_width = float(offset_w)
        node.offset_height = float(offset_h)
        node.parent_tag = raw.get("parentTag")
        node.in_main_document = bool(raw.get("inMain", True))
        node.shadow_scope = raw.get("shadowScope")
        node.has_onclick = bool(raw.get("onclick"))
        node.draggable = bool(raw.get("draggable"))
        node.has_shadow_root = bool(raw.get("shadow"))
        node.frame_accessible = bool(raw.get("frameAccessible", True))
        self._listeners[node.node_id] = raw.get("listeners")
        node.children = [self._parse(child) for child in raw.get("children") or []]
        return node

    # ------------------------------------------------------------------
    def query_live_tree(self) -> Optional[LiveNode]:
        return self._root

    def compute_style(self, node: LiveNode) -> ComputedStyle:
        return self._styles.get(node.node_id, ComputedStyle())

    def hit_test(self, point: Point, scope: Optional[int] = None) -> Optional[LiveNode]:
        entry = self._hits.get(_hit_key(scope, point.x, point.y))
        if entry is None:
            raise HitTestUnavailable(f"No hit-test recorded at ({point.x}, {point.y})")
        hit_id, error = entry
        if error:
            raise HitTestUnavailable(error)
        if hit_id is None:
            return None
        return self._nodes.get(int(hit_id))

    def viewport(self) -> ViewportInfo:
        return self._viewport

    def event_listeners(self, node: LiveNode) -> Optional[Dict[str, int]]:
        if not self._listeners_supported:
            return None
        return self._listeners.get(node.node_id)
