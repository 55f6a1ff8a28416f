from __future__ import annotations

import re
from typing import Iterable

from . import latex_format
from .colors import TRANSPARENT, hex_to_latex
from .model import (
    Block,
    Document,
    Heading,
    InlineNode,
    ListBlock,
    ListItem,
    MathNode,
    Paragraph,
    Table,
    TableCell,
    TextRun,
)

LATEX_ESCAPES = {
    "\\": r"\textbackslash{}",
    "{": r"\{",
    "}": r"\}",
    "$": r"\$",
    "&": r"\&",
    "#": r"\#",
    "_": r"\_",
    "%": r"\%",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}

_ESCAPE_RE = re.compile("|".join(re.escape(ch) for ch in LATEX_ESCAPES))


def serialize_latex(doc: Document) -> str:
    body = serialize_body(doc.blocks)
    return f"{latex_format.build_preamble()}\n\n\\begin{{document}}\n\n{body}\n\n\\end{{document}}"


def serialize_body(blocks: Iterable[Block]) -> str:
    return "\n\n".join(_dispatch_block(block) for block in blocks)


def escape_latex(text: str) -> str:
    return _ESCAPE_RE.sub(lambda match: LATEX_ESCAPES[match.group(0)], text)


def _dispatch_block(block: Block) -> str:
    if isinstance(block, Paragraph):
        return _align(_render_inline(block.children), block.align)
    if isinstance(block, Heading):
        return _render_heading(block)
    if isinstance(block, ListBlock):
        return _align(_render_list(block, depth=0), block.align)
    if isinstance(block, MathNode):
        return _render_math(block)
    if isinstance(block, Table):
        return _render_table(block)
    return ""


def _align(content: str, align: str | None) -> str:
    environment = latex_format.ALIGN_ENVIRONMENTS.get(align or "left")
    if environment is None:
        return content
    return f"\\begin{{{environment}}}\n{content}\n\\end{{{environment}}}"


def _render_heading(heading: Heading) -> str:
    command = latex_format.heading_command(heading.level)
    return f"\\{command}{{{_render_inline(heading.children)}}}"


def _render_list(block: ListBlock, depth: int) -> str:
    environment = latex_format.LIST_ENVIRONMENTS[block.ordered]
    prefix = latex_format.ITEM_INDENT * depth
    lines = [f"{prefix}\\begin{{{environment}}}"]
    lines.extend(_render_list_item(item, depth) for item in block.children)
    lines.append(f"{prefix}\\end{{{environment}}}")
    return "\n".join(lines)


def _render_list_item(item: ListItem, depth: int) -> str:
    """Children are written in stored order; text after a sublist gets its own line."""
    indent = latex_format.ITEM_INDENT * item.indent_level
    lines: list[str] = []
    pending: list[InlineNode] = []
    for child in item.children:
        if isinstance(child, ListBlock):
            if pending or not lines:
                lines.append(_item_text_line(pending, indent, first=not lines))
                pending = []
            lines.append(_render_list(child, depth + 1))
        else:
            pending.append(child)
    if pending or not lines:
        lines.append(_item_text_line(pending, indent, first=not lines))
    return "\n".join(lines)


def _item_text_line(children: list[InlineNode], indent: str, first: bool) -> str:
    if first:
        return f"{indent}\\item {_render_inline(children)}"
    return f"{indent}{latex_format.ITEM_INDENT}{_render_inline(children)}"


def _render_math(node: MathNode) -> str:
    if node.display:
        return f"\\[\n{node.formula}\n\\]"
    return f"\\({node.formula}\\)"


def _render_table(table: Table) -> str:
    cols = max(table.cols, 1)
    colspec = "|" + "|".join("l" for _ in range(cols)) + "|"
    lines = [f"\\begin{{{latex_format.TABLE_ENVIRONMENT}}}{{{colspec}}}", "\\hline"]
    for row in table.children:
        cells = [_render_cell(cell) for cell in row.children]
        cells.extend("" for _ in range(cols - len(cells)))
        lines.append(" & ".join(cells) + " \\\\")
        lines.append("\\hline")
    lines.append(f"\\end{{{latex_format.TABLE_ENVIRONMENT}}}")
    return "\n".join(lines)


def _render_cell(cell: TableCell) -> str:
    content = _render_inline(cell.children)
    if cell.header:
        return f"\\textbf{{{content}}}"
    return content


def _render_inline(children: Iterable[InlineNode]) -> str:
    parts = []
    for child in children:
        if isinstance(child, TextRun):
            parts.append(render_text_run(child))
        elif isinstance(child, MathNode):
            parts.append(f"\\[{child.formula}\\]" if child.display else f"\\({child.formula}\\)")
    return "".join(parts)


def render_text_run(run: TextRun) -> str:
    """Escape the text, then wrap bold, italic, underline, colour, background."""
    result = escape_latex(run.text)
    if not run.has_marks:
        return result
    if run.bold:
        result = f"\\textbf{{{result}}}"
    if run.italic:
        result = f"\\textit{{{result}}}"
    if run.underline:
        result = f"\\underline{{{result}}}"
    if run.color:
        result = f"\\textcolor{{{hex_to_latex(run.color)}}}{{{result}}}"
    if run.background_color and run.background_color != TRANSPARENT:
        result = f"\\colorbox{{{hex_to_latex(run.background_color)}}}{{{result}}}"
    return result
