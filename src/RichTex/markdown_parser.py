from __future__ import annotations

from typing import Iterable, List

from markdown_it import MarkdownIt
from mdit_py_plugins.texmath import texmath_plugin

from .model import (
    Block,
    BulletedList,
    Document,
    Heading,
    InlineNode,
    ListBlock,
    ListItem,
    MathNode,
    NumberedList,
    Paragraph,
    Table,
    TableCell,
    TableRow,
    TextRun,
)

INLINE_MATH_TOKENS = {"math_inline", "math_single"}
BLOCK_MATH_TOKENS = {"math_block", "math_block_eqno"}


def parse_markdown(text: str) -> Document:
    md = MarkdownIt("commonmark").use(texmath_plugin).enable(["table"])
    tokens = md.parse(text)
    blocks, _ = _parse_blocks(tokens, 0, stop_types=set(), depth=0)
    return Document(blocks=blocks, metadata={"source": "markdown"})


def _parse_blocks(tokens, index: int, stop_types: set[str], depth: int) -> tuple[list, int]:
    blocks: List[Block] = []
    i = index
    while i < len(tokens):
        tok = tokens[i]
        if tok.type in stop_types:
            break
        if tok.type == "heading_open":
            level = int(tok.tag[1])
            inline = tokens[i + 1]
            blocks.append(Heading(level=level, children=_parse_inline(inline.children or [])))
            i += 3
        elif tok.type == "paragraph_open":
            inline = tokens[i + 1]
            display_latex = _extract_display_math_inline(inline.content or "")
            if display_latex is not None:
                blocks.append(MathNode(formula=display_latex, display=True))
            else:
                blocks.append(Paragraph(children=_parse_inline(inline.children or [])))
            i += 3
        elif tok.type in ("bullet_list_open", "ordered_list_open"):
            list_block, i = _parse_list(tokens, i, depth)
            blocks.append(list_block)
        elif tok.type in ("fence", "code_block"):
            blocks.append(Paragraph(children=[TextRun(tok.content.rstrip("\n"))]))
            i += 1
        elif tok.type in BLOCK_MATH_TOKENS:
            blocks.append(MathNode(formula=tok.content.strip(), display=True))
            i += 1
        elif tok.type == "table_open":
            table_block, i = _parse_table(tokens, i)
            blocks.append(table_block)
        else:
            i += 1
    return blocks, i


def _parse_list(tokens, index: int, depth: int) -> tuple[ListBlock, int]:
    ordered = tokens[index].type == "ordered_list_open"
    closing = "ordered_list_close" if ordered else "bullet_list_close"
    i = index + 1
    items: list[ListItem] = []
    while i < len(tokens) and tokens[i].type != closing:
        if tokens[i].type == "list_item_open":
            i += 1
            item_blocks, i = _parse_blocks(tokens, i, stop_types={"list_item_close"}, depth=depth + 1)
            items.append(_list_item_from_blocks(item_blocks, depth))
            i += 1  # skip list_item_close
        else:
            i += 1
    list_type = NumberedList if ordered else BulletedList
    return list_type(children=items), i + 1


def _list_item_from_blocks(blocks: Iterable[Block], depth: int) -> ListItem:
    """Flatten the blocks of a Markdown list item into inline runs and sublists."""
    children: list = []
    for block in blocks:
        if isinstance(block, ListBlock):
            children.append(block)
        elif isinstance(block, MathNode):
            children.append(block)
        elif isinstance(block, (Paragraph, Heading)):
            if children and not isinstance(children[-1], ListBlock):
                children.append(TextRun(" "))
            children.extend(block.children)
    if not children:
        children.append(TextRun(""))
    return ListItem(children=children, indent_level=depth)


def _parse_table(tokens, index: int) -> tuple[Table, int]:
    rows: list[TableRow] = []
    i = index + 1
    header = False
    while i < len(tokens):
        tok = tokens[i]
        if tok.type == "thead_open":
            header = True
            i += 1
        elif tok.type == "thead_close":
            header = False
            i += 1
        elif tok.type == "tr_open":
            cells: list[TableCell] = []
            i += 1
            while tokens[i].type != "tr_close":
                if tokens[i].type in {"td_open", "th_open"}:
                    inline = tokens[i + 1]
                    cells.append(TableCell(children=_parse_inline(inline.children or []), header=header))
                    i += 3  # skip open, inline, close
                else:
                    i += 1
            rows.append(TableRow(children=cells))
            i += 1  # skip tr_close
        elif tok.type == "table_close":
            break
        else:
            i += 1
    return Table(children=rows), i + 1


def _parse_inline(children: Iterable) -> List[InlineNode]:
    result: List[InlineNode] = []
    bold = False
    italic = False
    underline = False
    for tok in children:
        if tok.type == "text":
            result.append(_run(tok.content, bold, italic, underline))
        elif tok.type in {"softbreak", "hardbreak"}:
            result.append(_run(" ", bold, italic, underline))
        elif tok.type == "strong_open":
            bold = True
        elif tok.type == "strong_close":
            bold = False
        elif tok.type == "em_open":
            italic = True
        elif tok.type == "em_close":
            italic = False
        elif tok.type == "link_open":
            underline = True
        elif tok.type == "link_close":
            underline = False
        elif tok.type == "code_inline":
            result.append(_run(tok.content, bold, italic, underline))
        elif tok.type in INLINE_MATH_TOKENS:
            result.append(MathNode(formula=tok.content, display=False))
        elif tok.type == "math_inline_double":
            result.append(MathNode(formula=tok.content, display=True))
    return result or [TextRun("")]


def _run(text: str, bold: bool, italic: bool, underline: bool) -> TextRun:
    return TextRun(text, bold=bold or None, italic=italic or None, underline=underline or None)


def _extract_display_math_inline(text: str) -> str | None:
    stripped = text.strip()
    if not (stripped.startswith("$$") and stripped.endswith("$$")) or len(stripped) < 4:
        return None
    inner = stripped[2:-2].strip()
    if "$$" in inner:
        return None
    return inner or None
