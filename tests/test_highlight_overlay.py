from web_tester.dom_capabilities import Rect
from web_tester.highlight_overlay import PALETTE, highlight_selector, layout_highlight


def test_label_sits_inside_a_large_box():
    box = layout_highlight(3, 42, Rect(100, 50, 200, 40), scroll_x=0, scroll_y=120)

    assert (box.top, box.left) == (170, 100)
    assert (box.label_top, box.label_left) == (172, 100 + 200 - 22)
    assert box.font_size == 12
    assert box.color == PALETTE[3]
    assert box.background == PALETTE[3] + "1A"


def test_label_moves_above_a_small_box():
    box = layout_highlight(0, 1, Rect(10, 40, 18, 18), scroll_x=0, scroll_y=0)

    assert (box.label_top, box.label_left) == (40 - 18, 10 + 18 - 20)
    assert box.font_size == 9


def test_palette_cycles():
    first = layout_highlight(0, 1, Rect(0, 0, 50, 50), 0, 0)
    wrapped = layout_highlight(len(PALETTE), 1, Rect(0, 0, 50, 50), 0, 0)
    assert first.color == wrapped.color


def test_to_dict_carries_the_resolver_attribute():
    data = layout_highlight(7, 9, Rect(0, 0, 50, 50), 0, 0).to_dict()
    assert data["attribute"] == "playwright-highlight-7"
    assert data["nodeId"] == 9
    assert highlight_selector(7) == '[browser-user-highlight-id="playwright-highlight-7"]'
