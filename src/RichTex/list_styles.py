from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import ListBlock


class ListKind(str, Enum):
    ORDERED = "ordered"
    UNORDERED = "unordered"


ORDERED_CYCLE = ("decimal", "lower-alpha", "lower-roman")
UNORDERED_CYCLE = ("disc", "circle", "square")


@dataclass(frozen=True)
class StyleDescriptor:
    css_class: str
    marker_kind: str


def cycle_for(kind: ListKind) -> tuple[str, ...]:
    return ORDERED_CYCLE if kind is ListKind.ORDERED else UNORDERED_CYCLE


def describe(marker: str) -> StyleDescriptor:
    return StyleDescriptor(css_class=f"list-{marker}", marker_kind=marker)


def style_for(kind: ListKind, depth: int) -> StyleDescriptor:
    """Marker style of a ``kind`` list nested ``depth`` levels deep.

    Both cycles have period three, so depth ``d`` and ``d + 3`` share a style.
    """
    cycle = cycle_for(kind)
    return describe(cycle[depth % len(cycle)])


def rotate_style(kind: ListKind, marker: str | None, step: int = 1) -> StyleDescriptor:
    """Move ``step`` positions along the cycle; negative steps go backward."""
    cycle = cycle_for(kind)
    position = cycle.index(marker) if marker in cycle else 0
    return describe(cycle[(position + step) % len(cycle)])


def current_style(block: "ListBlock", depth: int) -> StyleDescriptor:
    """Stored style of ``block``, falling back to the default for ``depth``."""
    if block.style in cycle_for(block.kind):
        return describe(block.style)
    return style_for(block.kind, depth)
