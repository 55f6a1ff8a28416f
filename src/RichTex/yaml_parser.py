from __future__ import annotations

from typing import Any, Iterable, List

import yaml

from .list_indent import refresh_document_indent_levels
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

MARK_KEYS = ("bold", "italic", "underline")
COLOR_KEYS = {"color": "color", "backgroundColor": "background_color"}


def parse_yaml_document(text: str) -> Document:
    """Load a Slate-style node tree (YAML or JSON) into a Document."""
    data = yaml.safe_load(text)
    if data is None:
        return Document(blocks=[], metadata={"source": "yaml"})
    if isinstance(data, dict):
        nodes = data.get("body", data.get("children"))
        if not isinstance(nodes, list):
            raise ValueError("Node tree mapping must define a 'body' or 'children' list.")
        data = nodes
    if not isinstance(data, list):
        raise ValueError("Node tree root must be a list of block nodes.")
    doc = document_from_data(data)
    doc.metadata = {"source": "yaml"}
    return doc


def document_from_data(nodes: Iterable[Any]) -> Document:
    blocks = [_build_block(node) for node in nodes]
    doc = Document(blocks=blocks)
    refresh_document_indent_levels(doc)
    return doc


def _node_type(node: Any) -> str:
    if not isinstance(node, dict):
        raise ValueError(f"Expected a node mapping, got {type(node).__name__}.")
    return str(node.get("type", ""))


def _children(node: dict) -> list:
    children = node.get("children") or []
    if not isinstance(children, list):
        raise ValueError(f"'children' of a {_node_type(node)!r} node must be a list.")
    return children


def _build_block(node: Any) -> Block:
    node_type = _node_type(node)
    if node_type == "paragraph":
        return Paragraph(children=_build_inline(_children(node)), align=node.get("align"))
    if node_type == "heading":
        return Heading(level=int(node.get("level", 1)), children=_build_inline(_children(node)), align=node.get("align"))
    if node_type in ("bulleted-list", "numbered-list"):
        return _build_list(node)
    if node_type == "math":
        return MathNode(formula=str(node.get("formula", "")), display=bool(node.get("display", True)))
    if node_type == "table":
        return _build_table(node)
    raise ValueError(f"Unsupported block node type: {node_type!r}")


def _build_list(node: dict) -> ListBlock:
    list_type = NumberedList if node["type"] == "numbered-list" else BulletedList
    items = []
    for child in _children(node):
        if _node_type(child) != "list-item":
            raise ValueError(f"List children must be 'list-item' nodes, got {_node_type(child)!r}.")
        items.append(_build_list_item(child))
    return list_type(children=items, align=node.get("align"), style=node.get("style"))


def _build_list_item(node: dict) -> ListItem:
    children: list = []
    for child in _children(node):
        if isinstance(child, dict) and child.get("type") in ("bulleted-list", "numbered-list"):
            children.append(_build_list(child))
        else:
            children.extend(_build_inline([child]))
    return ListItem(children=children, indent_level=int(node.get("indentLevel", 0)))


def _build_table(node: dict) -> Table:
    rows = []
    for row in _children(node):
        if _node_type(row) != "table-row":
            raise ValueError(f"Table children must be 'table-row' nodes, got {_node_type(row)!r}.")
        cells = []
        for cell in _children(row):
            if _node_type(cell) != "table-cell":
                raise ValueError(f"Row children must be 'table-cell' nodes, got {_node_type(cell)!r}.")
            cells.append(TableCell(children=_build_inline(_children(cell)), header=bool(cell.get("header", False))))
        rows.append(TableRow(children=cells))
    return Table(children=rows)


def _build_inline(nodes: Iterable[Any]) -> List[InlineNode]:
    result: List[InlineNode] = []
    for node in nodes:
        if isinstance(node, str):
            result.append(TextRun(node))
        elif isinstance(node, dict) and "text" in node:
            marks = {key: bool(node[key]) for key in MARK_KEYS if node.get(key) is not None}
            colors = {attr: str(node[key]) for key, attr in COLOR_KEYS.items() if node.get(key)}
            result.append(TextRun(str(node["text"]), **marks, **colors))
        elif isinstance(node, dict) and node.get("type") == "math":
            result.append(MathNode(formula=str(node.get("formula", "")), display=bool(node.get("display", False))))
        else:
            raise ValueError(f"Unsupported inline node: {node!r}")
    return result


def document_to_data(doc: Document) -> list[dict]:
    return [_block_to_data(block) for block in doc.blocks]


def dump_yaml_document(doc: Document) -> str:
    return yaml.safe_dump(document_to_data(doc), sort_keys=False, allow_unicode=True)


def _block_to_data(block: Block) -> dict:
    if isinstance(block, Paragraph):
        return _with_align({"type": "paragraph"}, block.align, _inline_to_data(block.children))
    if isinstance(block, Heading):
        return _with_align({"type": "heading", "level": block.level}, block.align, _inline_to_data(block.children))
    if isinstance(block, ListBlock):
        return _list_to_data(block)
    if isinstance(block, MathNode):
        return _math_to_data(block)
    if isinstance(block, Table):
        return {
            "type": "table",
            "rows": block.rows,
            "cols": block.cols,
            "children": [
                {
                    "type": "table-row",
                    "children": [
                        {"type": "table-cell", "header": cell.header, "children": _inline_to_data(cell.children)}
                        for cell in row.children
                    ],
                }
                for row in block.children
            ],
        }
    raise ValueError(f"Unsupported block node: {type(block).__name__}")


def _with_align(data: dict, align: str | None, children: list) -> dict:
    if align and align != "left":
        data["align"] = align
    data["children"] = children
    return data


def _list_to_data(block: ListBlock) -> dict:
    data: dict = {"type": "numbered-list" if block.ordered else "bulleted-list"}
    if block.style:
        data["style"] = block.style
    items = []
    for item in block.children:
        children = [_list_to_data(child) if isinstance(child, ListBlock) else _inline_node_to_data(child) for child in item.children]
        items.append({"type": "list-item", "indentLevel": item.indent_level, "children": children})
    return _with_align(data, block.align, items)


def _math_to_data(node: MathNode) -> dict:
    return {"type": "math", "formula": node.formula, "display": node.display, "children": [{"text": ""}]}


def _inline_to_data(children: Iterable[InlineNode]) -> list[dict]:
    return [_inline_node_to_data(child) for child in children]


def _inline_node_to_data(node: InlineNode) -> dict:
    if isinstance(node, MathNode):
        return _math_to_data(node)
    data: dict = {"text": node.text}
    for key in MARK_KEYS:
        value = getattr(node, key)
        if value is not None:
            data[key] = value
    if node.color:
        data["color"] = node.color
    if node.background_color:
        data["backgroundColor"] = node.background_color
    return data
