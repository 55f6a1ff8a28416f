import pytest

from RichTex.list_styles import (
    ListKind,
    StyleDescriptor,
    current_style,
    rotate_style,
    style_for,
)
from RichTex.model import BulletedList, NumberedList


def test_unordered_cycle():
    assert style_for(ListKind.UNORDERED, 0) == StyleDescriptor(css_class="list-disc", marker_kind="disc")
    assert style_for(ListKind.UNORDERED, 1).marker_kind == "circle"
    assert style_for(ListKind.UNORDERED, 2).marker_kind == "square"


def test_ordered_cycle():
    assert [style_for(ListKind.ORDERED, depth).marker_kind for depth in range(4)] == [
        "decimal",
        "lower-alpha",
        "lower-roman",
        "decimal",
    ]
    assert style_for(ListKind.ORDERED, 1).css_class == "list-lower-alpha"


@pytest.mark.parametrize("kind", list(ListKind))
@pytest.mark.parametrize("depth", range(10))
def test_style_has_period_three(kind, depth):
    assert style_for(kind, depth) == style_for(kind, depth + 3)


def test_rotate_style_both_directions():
    assert rotate_style(ListKind.UNORDERED, "square", 1).marker_kind == "disc"
    assert rotate_style(ListKind.UNORDERED, "disc", -1).marker_kind == "square"
    assert rotate_style(ListKind.ORDERED, "lower-alpha", 2).marker_kind == "decimal"


def test_rotate_unknown_marker_starts_from_cycle_head():
    assert rotate_style(ListKind.ORDERED, "bogus", 1).marker_kind == "lower-alpha"
    assert rotate_style(ListKind.UNORDERED, None, 0).marker_kind == "disc"


def test_current_style_prefers_stored_style():
    assert current_style(BulletedList(children=[], style="square"), 0).marker_kind == "square"
    assert current_style(BulletedList(children=[]), 1).marker_kind == "circle"
    assert current_style(NumberedList(children=[], style="disc"), 0).marker_kind == "decimal"


def test_list_kind_follows_node_type():
    assert BulletedList(children=[]).kind is ListKind.UNORDERED
    assert NumberedList(children=[]).kind is ListKind.ORDERED
