from web_tester.snapshot import (
    ElementNode,
    RectCoordinates,
    TextNode,
    aggregated_text,
    element_detail,
    find_by_highlight_index,
    interactive_elements,
    round_half_up,
)


def _page():
    return ElementNode(
        tag_name="body",
        children=[
            ElementNode(
                tag_name="form",
                children=[
                    ElementNode(tag_name="input", attributes={"placeholder": " Email ", "type": "email"},
                                is_interactive=True, highlight_index=0),
                    ElementNode(tag_name="button", children=[TextNode("  Sign in ")],
                                is_interactive=True, is_visible=True, is_top_element=True, highlight_index=1),
                ],
            ),
            ElementNode(tag_name="div", is_interactive=True, children=[TextNode("not indexed")]),
            ElementNode(tag_name="a", attributes={"title": "Help"}, children=[TextNode("?")],
                        is_interactive=True, highlight_index=2),
        ],
    )


def test_round_half_up_matches_browser_rounding():
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.5) == 0
    assert round_half_up(-1.5) == -1
    assert round_half_up(10.49) == 10


def test_rect_coordinates_from_box():
    coords = RectCoordinates.from_box(10.5, 20, 100, 40.4, dy=500)

    assert coords.to_dict() == {
        "topLeft": {"x": 11, "y": 520},
        "topRight": {"x": 111, "y": 520},
        "bottomLeft": {"x": 11, "y": 560},
        "bottomRight": {"x": 111, "y": 560},
        "center": {"x": 61, "y": 540},
        "width": 100,
        "height": 40,
    }


def test_aggregated_text_collects_text_and_attributes_in_order():
    root = _page()
    assert aggregated_text(root) == "Email Sign in not indexed Help ?"


def test_aggregated_text_truncates():
    node = ElementNode(tag_name="p", children=[TextNode("x" * 500)])
    assert aggregated_text(node, limit=300) == "x" * 300


def test_aggregated_text_of_nothing_is_empty():
    assert aggregated_text(None) == ""
    assert aggregated_text(ElementNode(tag_name="div")) == ""


def test_interactive_elements_lists_indexed_nodes_in_order():
    listed = [e.to_dict() for e in interactive_elements(_page())]
    assert listed == [
        {"highlightIndex": 0, "text": "Email", "tag": "input"},
        {"highlightIndex": 1, "text": "Sign in", "tag": "button"},
        {"highlightIndex": 2, "text": "Help ?", "tag": "a"},
    ]


def test_interactive_elements_on_a_page_without_any():
    assert interactive_elements(ElementNode(tag_name="body")) == []
    assert interactive_elements(None) == []


def test_find_by_highlight_index():
    root = _page()
    assert find_by_highlight_index(root, 2).tag_name == "a"
    assert find_by_highlight_index(root, 7) is None
    assert find_by_highlight_index(root, -1) is None


def test_element_detail():
    detail = element_detail(_page(), 1)
    assert detail.to_dict() == {
        "tagName": "button",
        "attributes": {},
        "isVisible": True,
        "isTopElement": True,
        "textNearby": "Sign in",
    }
    assert element_detail(_page(), 99) is None


def test_element_node_serialises_with_wire_keys():
    data = _page().to_dict()
    assert data["tagName"] == "body"
    assert data["highlightIndex"] == -1
    assert data["children"][0]["children"][1]["children"][0] == {
        "type": "TEXT_NODE",
        "text": "  Sign in ",
        "isVisible": True,
    }
