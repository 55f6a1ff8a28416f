from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Callable, List, Optional, Tuple, Type

from . import latex_format
from .colors import latex_to_hex
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

logger = logging.getLogger(__name__)

Match = Optional[Tuple[Block, int]]
Matcher = Callable[[str, int], Match]

_DOCUMENT_BEGIN = "\\begin{document}"
_DOCUMENT_END = "\\end{document}"

_COMMENT_RE = re.compile(r"(?<!\\)%.*$", re.MULTILINE)
_WHITESPACE_RE = re.compile(r"\s*")
_NEWLINE_RUN_RE = re.compile(r"[ \t]*\n\s*")
_SECTION_RE = re.compile(r"\\(?P<subs>(?:sub)*)section\*?[ \t]*(?=\{)")
_PARAGRAPH_HEADING_RE = re.compile(r"\\paragraph\*?[ \t]*(?=\{)")
_LIST_TOKEN_RE = re.compile(r"\\(begin|end)\{(itemize|enumerate)\}|\\item(?![A-Za-z])")
_NESTED_LIST_RE = re.compile(r"\\begin\{(itemize|enumerate)\}")
_BLOCK_START_RE = re.compile(
    r"\n[ \t]*\n"
    r"|(?<!\\)\\\["
    r"|\$\$"
    r"|(?<!\\)\\begin\{(?:itemize|enumerate|center|flushright|tabular)\}"
    r"|(?<!\\)\\(?:(?:sub)*section|paragraph)\*?[ \t]*\{"
)
_HLINE_RE = re.compile(r"^(?:\s*\\hline(?![A-Za-z]))*")
_TRAILING_HLINE_RE = re.compile(r"(?:\\hline(?![A-Za-z])\s*)*$")
_MATH_CLOSERS = {"\\(": "\\)", "\\[": "\\]", "$$": "$$", "$": "$"}
_COMMAND_RE = re.compile(r"\\([A-Za-z]+|.)", re.DOTALL)
_UNESCAPE_RE = re.compile(r"\\(textbackslash|textasciitilde|textasciicircum)(?:\{\})?|\\([{}$&#_%])")

MARK_COMMANDS = {
    "textbf": {"bold": True},
    "textit": {"italic": True},
    "underline": {"underline": True},
}
COLOR_COMMANDS = {
    "textcolor": "color",
    "colorbox": "background_color",
}
SYMBOL_COMMANDS = {
    "textbackslash": "\\",
    "textasciitilde": "~",
    "textasciicircum": "^",
}
ESCAPED_CHARS = frozenset("{}$&#_%")


def parse_latex(text: str) -> Document:
    """Parse LaTeX source into a Document; never raises on malformed input."""
    body = _document_body(_COMMENT_RE.sub("", text))
    blocks = parse_blocks(body)
    if not blocks:
        blocks = [Paragraph(children=[TextRun("")])]
    return Document(blocks=blocks)


def parse_blocks(text: str) -> List[Block]:
    blocks: List[Block] = []
    pos = 0
    while True:
        pos = _WHITESPACE_RE.match(text, pos).end()
        if pos >= len(text):
            break
        for matcher in BLOCK_MATCHERS:
            result = matcher(text, pos)
            if result is not None:
                node, pos = result
                blocks.append(node)
                break
    return blocks


def _document_body(text: str) -> str:
    start = text.find(_DOCUMENT_BEGIN)
    if start == -1:
        return text
    start += len(_DOCUMENT_BEGIN)
    end = text.find(_DOCUMENT_END, start)
    return text[start:] if end == -1 else text[start:end]


# Block matchers, tried in BLOCK_MATCHERS order at the current position.


def match_display_math(text: str, pos: int) -> Match:
    for opener, closer in (("\\[", "\\]"), ("$$", "$$")):
        if text.startswith(opener, pos):
            end = text.find(closer, pos + len(opener))
            if end == -1:
                logger.debug("Unterminated display math at offset %d", pos)
                return None
            formula = text[pos + len(opener) : end].strip()
            return MathNode(formula=formula, display=True), end + len(closer)
    return None


def match_inline_math(text: str, pos: int) -> Match:
    if text.startswith("\\(", pos):
        end = text.find("\\)", pos + 2)
        if end == -1:
            logger.debug("Unterminated inline math at offset %d", pos)
            return None
        return MathNode(formula=text[pos + 2 : end].strip(), display=False), end + 2
    if text.startswith("$", pos) and not text.startswith("$$", pos):
        return _match_dollar_math(text, pos)
    return None


def match_itemize(text: str, pos: int) -> Match:
    return _match_list(text, pos, "itemize", BulletedList)


def match_enumerate(text: str, pos: int) -> Match:
    return _match_list(text, pos, "enumerate", NumberedList)


def match_center(text: str, pos: int) -> Match:
    return _match_aligned(text, pos, "center", "center")


def match_flushright(text: str, pos: int) -> Match:
    return _match_aligned(text, pos, "flushright", "right")


def match_tabular(text: str, pos: int) -> Match:
    found = _match_environment(text, pos, latex_format.TABLE_ENVIRONMENT)
    if found is None:
        return None
    body, after = found
    return _parse_table(body), after


def match_section(text: str, pos: int) -> Match:
    match = _SECTION_RE.match(text, pos)
    if match:
        level = min(1 + len(match.group("subs")) // 3, 6)
    else:
        match = _PARAGRAPH_HEADING_RE.match(text, pos)
        if not match:
            return None
        level = latex_format.FALLBACK_HEADING_LEVEL
    group = _balanced_group(text, match.end())
    if group is None:
        logger.debug("Unbalanced heading title at offset %d", pos)
        return None
    title, after = group
    return Heading(level=level, children=parse_inline(title.strip())), after


def match_paragraph(text: str, pos: int) -> Match:
    """Plain text up to a blank line or the start of a recognised block."""
    boundary = _BLOCK_START_RE.search(text, pos + 1)
    end = boundary.start() if boundary else len(text)
    content = text[pos:end].strip()
    return Paragraph(children=parse_inline(content)), end


BLOCK_MATCHERS: Tuple[Matcher, ...] = (
    match_display_math,
    match_inline_math,
    match_itemize,
    match_enumerate,
    match_center,
    match_flushright,
    match_tabular,
    match_section,
    match_paragraph,
)


# Environments


@lru_cache(maxsize=None)
def _environment_pattern(name: str) -> re.Pattern:
    return re.compile(r"\\(begin|end)\{" + re.escape(name) + r"\}")


def _find_environment_end(text: str, name: str, start: int) -> tuple[int, int] | None:
    """Offsets of the matching ``\\end{name}``, honouring nested ``name`` environments."""
    depth = 1
    for match in _environment_pattern(name).finditer(text, start):
        if match.group(1) == "begin":
            depth += 1
            continue
        depth -= 1
        if depth == 0:
            return match.start(), match.end()
    return None


def _match_environment(text: str, pos: int, name: str) -> tuple[str, int] | None:
    opener = f"\\begin{{{name}}}"
    if not text.startswith(opener, pos):
        return None
    bounds = _find_environment_end(text, name, pos + len(opener))
    if bounds is None:
        logger.debug("Unterminated %s environment at offset %d", name, pos)
        return None
    body_end, after = bounds
    return text[pos + len(opener) : body_end], after


def _match_aligned(text: str, pos: int, name: str, align: str) -> Match:
    found = _match_environment(text, pos, name)
    if found is None:
        return None
    body, after = found
    inner = body.strip()
    for list_matcher in (match_itemize, match_enumerate):
        result = list_matcher(inner, 0)
        if result is not None and not inner[result[1] :].strip():
            node = result[0]
            node.align = align
            return node, after
    return Paragraph(children=parse_inline(inner), align=align), after


def _match_list(text: str, pos: int, name: str, list_type: Type[ListBlock]) -> Match:
    found = _match_environment(text, pos, name)
    if found is None:
        return None
    body, after = found
    return list_type(children=_parse_list_items(body, depth=0)), after


def _split_items(body: str) -> list[str]:
    """Split a list body at its own ``\\item`` markers, skipping nested lists."""
    segments: list[str] = []
    nesting = 0
    start = None
    for match in _LIST_TOKEN_RE.finditer(body):
        if match.group(1) == "begin":
            nesting += 1
        elif match.group(1) == "end":
            nesting = max(nesting - 1, 0)
        elif nesting == 0:
            if start is not None:
                segments.append(body[start : match.start()])
            start = match.end()
    if start is not None:
        segments.append(body[start:])
    return segments


def _parse_list_items(body: str, depth: int) -> list[ListItem]:
    return [_parse_list_item(segment, depth) for segment in _split_items(body)]


def _parse_list_item(segment: str, depth: int) -> ListItem:
    children: list = []
    pos = 0
    for match in _NESTED_LIST_RE.finditer(segment):
        if match.start() < pos:
            continue
        name = match.group(1)
        bounds = _find_environment_end(segment, name, match.end())
        if bounds is None:
            break
        before = segment[pos : match.start()].strip()
        if before:
            children.extend(parse_inline(before))
        list_type = NumberedList if name == "enumerate" else BulletedList
        nested_body = segment[match.end() : bounds[0]]
        children.append(list_type(children=_parse_list_items(nested_body, depth + 1)))
        pos = bounds[1]
    rest = segment[pos:].strip()
    if rest or not children:
        children.extend(parse_inline(rest))
    return ListItem(children=children, indent_level=depth)


def _parse_table(body: str) -> Table:
    pos = _WHITESPACE_RE.match(body, 0).end()
    if body.startswith("[", pos):
        close = body.find("]", pos)
        pos = close + 1 if close != -1 else pos
    group = _balanced_group(body, pos)
    if group is not None:
        pos = group[1]
    rows: list[TableRow] = []
    for raw_cells in _split_table_rows(body[pos:]):
        raw_cells[0] = _HLINE_RE.sub("", raw_cells[0])
        raw_cells[-1] = _TRAILING_HLINE_RE.sub("", raw_cells[-1])
        raw_cells = [cell.strip() for cell in raw_cells]
        if raw_cells == [""]:
            continue
        rows.append(TableRow(children=[TableCell(children=parse_inline(cell)) for cell in raw_cells]))
    if rows and all(_is_header_cell(cell) for cell in rows[0].children):
        for cell in rows[0].children:
            cell.header = True
            cell.children[0].bold = None
    return Table(children=rows)


def _split_table_rows(body: str) -> list[list[str]]:
    """Split a tabular body into rows of raw cells.

    Row breaks (``\\\\``) and cell breaks (``&``) only count at brace depth
    zero and outside math, so matrices and aligned formulas stay whole.
    """
    rows: list[list[str]] = []
    cells: list[str] = []
    start = 0
    depth = 0
    index = 0
    while index < len(body):
        opener = _math_opener(body, index)
        if opener is not None:
            closer = _MATH_CLOSERS[opener]
            close = _find_unescaped(body, closer, index + len(opener))
            index = len(body) if close == -1 else close + len(closer)
            continue
        char = body[index]
        if char == "\\":
            if depth == 0 and body.startswith("\\\\", index):
                cells.append(body[start:index])
                rows.append(cells)
                cells = []
                start = index + 2
            index += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        elif char == "&" and depth == 0:
            cells.append(body[start:index])
            start = index + 1
        index += 1
    cells.append(body[start:])
    rows.append(cells)
    return rows


def _math_opener(text: str, pos: int) -> str | None:
    for opener in _MATH_CLOSERS:
        if text.startswith(opener, pos):
            return opener
    return None


def _is_header_cell(cell: TableCell) -> bool:
    if len(cell.children) != 1 or not isinstance(cell.children[0], TextRun):
        return False
    run = cell.children[0]
    return bool(run.bold) and not (run.italic or run.underline or run.color or run.background_color)


# Inline content


def parse_inline(content: str) -> List[InlineNode]:
    """Split inline LaTeX into text runs and inline math.

    Formatting commands are single level: the body of ``\\textbf{...}`` is
    unescaped but never scanned for further commands.
    """
    nodes: List[InlineNode] = []
    buffer: list[str] = []
    pos = 0
    while pos < len(content):
        char = content[pos]
        if char == "\\":
            result = _match_inline_command(content, pos)
            if result is not None:
                node, pos = result
                if isinstance(node, str):
                    buffer.append(node)
                else:
                    _flush_text(buffer, nodes)
                    nodes.append(node)
                continue
        elif char == "$":
            result = _match_dollar_math(content, pos)
            if result is not None:
                _flush_text(buffer, nodes)
                node, pos = result
                nodes.append(node)
                continue
            if content.startswith("$$", pos):
                buffer.append("$$")
                pos += 2
                continue
        buffer.append(char)
        pos += 1
    _flush_text(buffer, nodes)
    if not nodes:
        nodes.append(TextRun(""))
    return nodes


def _flush_text(buffer: list[str], nodes: List[InlineNode]) -> None:
    text = _NEWLINE_RUN_RE.sub(" ", "".join(buffer))
    buffer.clear()
    if text:
        nodes.append(TextRun(text))


def _match_inline_command(content: str, pos: int) -> tuple[InlineNode | str, int] | None:
    for opener, closer, display in (("\\(", "\\)", False), ("\\[", "\\]", True)):
        if content.startswith(opener, pos):
            end = content.find(closer, pos + 2)
            if end == -1:
                return None
            return MathNode(formula=content[pos + 2 : end].strip(), display=display), end + 2

    match = _COMMAND_RE.match(content, pos)
    if not match:
        return None
    name = match.group(1)
    after = match.end()

    if name in MARK_COMMANDS:
        group = _balanced_group(content, after)
        if group is None:
            return None
        body, end = group
        return TextRun(_clean_text(body), **MARK_COMMANDS[name]), end

    if name in COLOR_COMMANDS:
        color_group = _balanced_group(content, after)
        if color_group is None:
            return None
        color = latex_to_hex(color_group[0])
        if color is None:
            return None
        group = _balanced_group(content, color_group[1])
        if group is None:
            return None
        body, end = group
        return TextRun(_clean_text(body), **{COLOR_COMMANDS[name]: color}), end

    if name in SYMBOL_COMMANDS:
        end = after + 2 if content.startswith("{}", after) else after
        return SYMBOL_COMMANDS[name], end

    if name in ESCAPED_CHARS:
        return name, after

    return content[pos:after], after


def _match_dollar_math(content: str, pos: int) -> tuple[MathNode, int] | None:
    if content.startswith("$$", pos):
        end = content.find("$$", pos + 2)
        if end == -1:
            return None
        return MathNode(formula=content[pos + 2 : end].strip(), display=True), end + 2
    end = _find_unescaped(content, "$", pos + 1)
    if end == -1:
        return None
    return MathNode(formula=content[pos + 1 : end].strip(), display=False), end + 1


def _find_unescaped(text: str, needle: str, start: int) -> int:
    index = text.find(needle, start)
    while index != -1:
        backslashes = 0
        probe = index - 1
        while probe >= start and text[probe] == "\\":
            backslashes += 1
            probe -= 1
        if backslashes % 2 == 0:
            return index
        index = text.find(needle, index + 1)
    return -1


def _balanced_group(text: str, pos: int) -> tuple[str, int] | None:
    """Body and end offset of the ``{...}`` group starting at ``pos``."""
    while pos < len(text) and text[pos] in " \t":
        pos += 1
    if pos >= len(text) or text[pos] != "{":
        return None
    depth = 0
    index = pos
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[pos + 1 : index], index + 1
        index += 1
    return None


def _clean_text(text: str) -> str:
    return _NEWLINE_RUN_RE.sub(" ", _unescape(text))


def _unescape(text: str) -> str:
    def replace(match: re.Match) -> str:
        if match.group(1):
            return SYMBOL_COMMANDS[match.group(1)]
        return match.group(2)

    return _UNESCAPE_RE.sub(replace, text)
