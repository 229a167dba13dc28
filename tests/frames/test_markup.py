"""Tests for the host markup adapter."""

from galmode.frames import message_tree, parse_markup


def _tags(node):
    return [c.tag if c.kind == "element" else f"#{c.text}" for c in node.children]


def test_nested_elements():
    root = parse_markup("<p>Hi <b>there</b></p>")
    assert root.tag == "root"
    assert _tags(root) == ["p"]
    assert _tags(root.children[0]) == ["#Hi ", "b"]
    assert _tags(root.children[0].children[1]) == ["#there"]


def test_img_is_void_and_keeps_src_and_classes():
    root = parse_markup('<img class="emoji big" src="a.png">after')
    img = root.children[0]
    assert img.tag == "img"
    assert img.src == "a.png"
    assert img.classes == ["emoji", "big"]
    assert img.children == []
    assert root.children[1].text == "after"


def test_tags_are_lowercased():
    root = parse_markup("<DIV>x</DIV>")
    assert root.children[0].tag == "div"


def test_stray_end_tag_ignored():
    root = parse_markup("a</div>b")
    assert _tags(root) == ["#a", "#b"]


def test_unclosed_element_extends_to_end():
    root = parse_markup("<think>plan<p>more</p>")
    assert _tags(root) == ["think"]
    assert _tags(root.children[0]) == ["#plan", "p"]


def test_end_tag_closes_inner_unclosed_elements():
    root = parse_markup("<div><span>x</div>y")
    assert _tags(root) == ["div", "#y"]


def test_comments_are_not_text():
    root = parse_markup("before<!-- hidden note -->after")
    assert _tags(root) == ["#before", "#after"]


def test_entities_decoded():
    root = parse_markup("Tom &amp; Jerry")
    assert "".join(c.text for c in root.children) == "Tom & Jerry"


def test_message_tree_turns_newlines_into_breaks():
    root = message_tree("one\r\ntwo\nthree")
    assert _tags(root) == ["#one", "br", "#two", "br", "#three"]


def test_message_tree_empty():
    assert message_tree("").children == []
    assert message_tree(None).children == []
