from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterator, List, Union

from .colors import normalize_color
from .list_styles import ListKind

ALIGNMENTS = ("left", "center", "right")


def _check_align(align: str | None) -> None:
    if align is not None and align not in ALIGNMENTS:
        raise ValueError(f"Unknown alignment: {align!r}")


@dataclass
class Block:
    """Base class for block-level nodes."""


@dataclass
class TextRun:
    text: str
    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    color: str | None = None
    background_color: str | None = None

    def __post_init__(self) -> None:
        if self.color is not None:
            self.color = normalize_color(self.color)
        if self.background_color is not None:
            self.background_color = normalize_color(self.background_color)

    @property
    def has_marks(self) -> bool:
        return bool(
            self.bold
            or self.italic
            or self.underline
            or self.color
            or (self.background_color and self.background_color != "transparent")
        )


@dataclass
class MathNode(Block):
    """Raw LaTeX math without delimiters; ``display`` selects block or inline."""

    formula: str
    display: bool = True

    @property
    def children(self) -> list:
        return []


InlineNode = Union[TextRun, MathNode]


@dataclass
class Paragraph(Block):
    children: List[InlineNode]
    align: str | None = None

    def __post_init__(self) -> None:
        _check_align(self.align)


@dataclass
class Heading(Block):
    level: int
    children: List[InlineNode]
    align: str | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.level <= 6:
            raise ValueError(f"Heading level must be within 1..6, got {self.level}")
        _check_align(self.align)


@dataclass
class ListItem:
    children: List[Union[InlineNode, "ListBlock"]]
    indent_level: int = 0

    @property
    def inline(self) -> list[InlineNode]:
        return [child for child in self.children if not isinstance(child, ListBlock)]

    @property
    def sublists(self) -> list["ListBlock"]:
        return [child for child in self.children if isinstance(child, ListBlock)]


@dataclass
class ListBlock(Block):
    children: List[ListItem]
    align: str | None = None
    style: str | None = None

    ordered: ClassVar[bool] = False

    def __post_init__(self) -> None:
        _check_align(self.align)

    @property
    def kind(self) -> ListKind:
        return ListKind.ORDERED if self.ordered else ListKind.UNORDERED


@dataclass
class BulletedList(ListBlock):
    ordered: ClassVar[bool] = False


@dataclass
class NumberedList(ListBlock):
    ordered: ClassVar[bool] = True


@dataclass
class TableCell:
    children: List[InlineNode]
    header: bool = False


@dataclass
class TableRow:
    children: List[TableCell]


@dataclass
class Table(Block):
    children: List[TableRow]

    @property
    def rows(self) -> int:
        return len(self.children)

    @property
    def cols(self) -> int:
        return max((len(row.children) for row in self.children), default=0)


BlockNode = Union[Paragraph, Heading, BulletedList, NumberedList, MathNode, Table]


@dataclass
class Document:
    blocks: List[BlockNode] = field(default_factory=list)
    metadata: dict[str, Any] | None = None

    def iter_list_items(self) -> Iterator[ListItem]:
        """Yield every list item in document order, nested ones included."""
        for block in self.blocks:
            if isinstance(block, ListBlock):
                yield from _walk_items(block)


def _walk_items(block: ListBlock) -> Iterator[ListItem]:
    for item in block.children:
        yield item
        for sublist in item.sublists:
            yield from _walk_items(sublist)
