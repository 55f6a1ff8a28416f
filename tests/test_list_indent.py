from RichTex import latex_format
from RichTex.latex_serializer import serialize_body
from RichTex.list_indent import (
    IndentResult,
    find_enclosing_list_item,
    indent_list_item,
    locate_list_item,
    outdent_list_item,
)
from RichTex.list_styles import current_style
from RichTex.model import BulletedList, Document, ListItem, NumberedList, Paragraph, TextRun


def _item(text: str, *sublists) -> ListItem:
    return ListItem(children=[TextRun(text), *sublists])


def _texts(block) -> list[str]:
    return [item.inline[0].text for item in block.children]


def test_first_item_indent_rotates_style():
    first = _item("a")
    lst = BulletedList(children=[first, _item("b")])
    doc = Document(blocks=[lst])

    visited = [current_style(lst, 0).marker_kind]
    for _ in range(3):
        assert indent_list_item(doc, first) is IndentResult.ROTATED
        visited.append(current_style(lst, 0).marker_kind)
    assert visited == ["disc", "circle", "square", "disc"]
    assert indent_list_item(doc, first) is IndentResult.ROTATED
    assert lst.style == "circle"
    assert _texts(lst) == ["a", "b"]


def test_outdent_undoes_rotation_at_top_level():
    first = _item("1")
    lst = NumberedList(children=[first])
    doc = Document(blocks=[lst])
    indent_list_item(doc, first)
    assert lst.style == "lower-alpha"
    assert outdent_list_item(doc, first) is IndentResult.ROTATED
    assert lst.style == "decimal"


def test_indent_nests_item_and_following_siblings():
    a, b, c = _item("a"), _item("b"), _item("c")
    lst = BulletedList(children=[a, b, c])
    doc = Document(blocks=[lst])

    assert indent_list_item(doc, b) is IndentResult.NESTED
    assert lst.children == [a]
    (nested,) = a.sublists
    assert isinstance(nested, BulletedList)
    assert nested.style == "circle"
    assert nested.children[0] is b and nested.children[1] is c
    assert (b.indent_level, c.indent_level) == (1, 1)


def test_indent_numbered_list_uses_next_ordered_style():
    one, two = _item("1"), _item("2")
    doc = Document(blocks=[NumberedList(children=[one, two])])
    indent_list_item(doc, two)
    (nested,) = one.sublists
    assert isinstance(nested, NumberedList)
    assert nested.style == "lower-alpha"


def test_indent_absorbs_into_existing_nested_list():
    x = ListItem(children=[TextRun("x")], indent_level=1)
    a = _item("a", BulletedList(children=[x]))
    b = _item("b")
    lst = BulletedList(children=[a, b])
    doc = Document(blocks=[lst])

    assert indent_list_item(doc, b) is IndentResult.ABSORBED
    assert lst.children == [a]
    assert _texts(a.sublists[0]) == ["x", "b"]
    assert b.indent_level == 1


def test_indent_moves_item_subtree_one_level_deeper():
    inner = ListItem(children=[TextRun("inner")], indent_level=1)
    b = _item("b", BulletedList(children=[inner]))
    a = _item("a")
    doc = Document(blocks=[BulletedList(children=[a, b])])
    indent_list_item(doc, b)
    assert b.indent_level == 1
    assert inner.indent_level == 2


def test_indent_first_item_of_nested_list_is_not_applicable():
    x = ListItem(children=[TextRun("x")], indent_level=1)
    doc = Document(blocks=[BulletedList(children=[_item("a", BulletedList(children=[x]))])])
    result = indent_list_item(doc, x)
    assert result is IndentResult.NOT_APPLICABLE
    assert not result.applied


def test_indent_respects_maximum_depth(monkeypatch):
    monkeypatch.setattr(latex_format, "MAX_INDENT_LEVEL", 0)
    a, b = _item("a"), _item("b")
    lst = BulletedList(children=[a, b])
    assert indent_list_item(Document(blocks=[lst]), b) is IndentResult.NOT_APPLICABLE
    assert lst.children == [a, b]


def test_edits_outside_lists_are_not_applicable():
    paragraph = Paragraph(children=[TextRun("plain")])
    doc = Document(blocks=[paragraph, BulletedList(children=[_item("a")])])
    stray = _item("stray")
    assert indent_list_item(doc, stray) is IndentResult.NOT_APPLICABLE
    assert outdent_list_item(doc, paragraph) is IndentResult.NOT_APPLICABLE
    assert locate_list_item(doc, None) is None


def test_outdent_last_nested_item_lifts_it_after_parent():
    x = ListItem(children=[TextRun("x")], indent_level=1)
    a = _item("a", BulletedList(children=[x]))
    b = _item("b")
    lst = BulletedList(children=[a, b])
    doc = Document(blocks=[lst])

    assert outdent_list_item(doc, x) is IndentResult.LIFTED
    assert _texts(lst) == ["a", "x", "b"]
    assert a.children == [TextRun("a")]
    assert x.indent_level == 0


def test_outdent_keeps_earlier_siblings_nested():
    w = ListItem(children=[TextRun("w")], indent_level=1)
    x = ListItem(children=[TextRun("x")], indent_level=1)
    a = _item("a", BulletedList(children=[w, x]))
    lst = BulletedList(children=[a])
    doc = Document(blocks=[lst])

    assert outdent_list_item(doc, x) is IndentResult.LIFTED
    assert _texts(lst) == ["a", "x"]
    assert _texts(a.sublists[0]) == ["w"]


def test_outdent_with_following_siblings_splits_them_off():
    x, y, z = (ListItem(children=[TextRun(t)], indent_level=1) for t in "xyz")
    a = _item("a", BulletedList(children=[x, y, z], style="circle"))
    lst = BulletedList(children=[a])
    doc = Document(blocks=[lst])

    assert outdent_list_item(doc, x) is IndentResult.SPLIT
    assert _texts(lst) == ["a", "x"]
    assert a.sublists == []
    (split,) = x.sublists
    assert split.style == "circle"
    assert _texts(split) == ["y", "z"]
    assert (x.indent_level, y.indent_level, z.indent_level) == (0, 1, 1)


def test_indent_then_outdent_restores_structure():
    a, b = _item("a"), _item("b")
    lst = BulletedList(children=[a, b])
    doc = Document(blocks=[lst])
    indent_list_item(doc, b)
    outdent_list_item(doc, b)
    assert lst.children == [a, b]
    assert a.children == [TextRun("a")]
    assert b.indent_level == 0


def test_nested_depth_shows_in_latex():
    a, b = _item("a"), _item("b")
    doc = Document(blocks=[BulletedList(children=[a, b])])
    indent_list_item(doc, b)
    assert "  \\item b" in serialize_body(doc.blocks)


def test_find_enclosing_list_item_walks_cursor_path():
    a, b = _item("a"), _item("b")
    doc = Document(blocks=[Paragraph(children=[TextRun("p")]), BulletedList(children=[a, b])])
    assert find_enclosing_list_item(doc, [1, 1, 0]) is b
    assert find_enclosing_list_item(doc, [0, 0]) is None
    assert find_enclosing_list_item(doc, [1, 9]) is None


def test_outdent_keeps_later_sublists_after_lifted_item():
    x = ListItem(children=[TextRun("x")], indent_level=1)
    y = ListItem(children=[TextRun("y")], indent_level=1)
    y_list = NumberedList(children=[y])
    a = _item("a", BulletedList(children=[x]), y_list)
    lst = BulletedList(children=[a])
    doc = Document(blocks=[lst])

    assert outdent_list_item(doc, x) is IndentResult.SPLIT
    assert _texts(lst) == ["a", "x"]
    assert a.children == [TextRun("a")]
    assert x.sublists == [y_list]
    assert [item.inline[0].text for item in doc.iter_list_items()] == ["a", "x", "y"]
    assert y.indent_level == 1
