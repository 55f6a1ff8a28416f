"""Structural indent/outdent edits on list items.

Every operation locates the item by identity, performs at most one
structural edit and recomputes ``indent_level`` for whatever it moved.
Requests outside a list item are answered with ``IndentResult.NOT_APPLICABLE``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from . import latex_format
from .list_styles import current_style, rotate_style, style_for
from .model import Document, ListBlock, ListItem

logger = logging.getLogger(__name__)


class IndentResult(str, Enum):
    ROTATED = "rotated"
    NESTED = "nested"
    ABSORBED = "absorbed"
    LIFTED = "lifted"
    SPLIT = "split"
    NOT_APPLICABLE = "not_applicable"

    @property
    def applied(self) -> bool:
        return self is not IndentResult.NOT_APPLICABLE


@dataclass
class ListContext:
    item: ListItem
    parent_list: ListBlock
    index: int
    depth: int
    parent_item: ListItem | None = None
    grandparent_list: ListBlock | None = None


def locate_list_item(doc: Document, item: object) -> ListContext | None:
    for block in doc.blocks:
        if isinstance(block, ListBlock):
            found = _search(block, item, depth=0, parent_item=None, grandparent_list=None)
            if found is not None:
                return found
    return None


def _search(
    block: ListBlock,
    target: object,
    depth: int,
    parent_item: ListItem | None,
    grandparent_list: ListBlock | None,
) -> ListContext | None:
    for index, child in enumerate(block.children):
        if child is target:
            return ListContext(child, block, index, depth, parent_item, grandparent_list)
        for sublist in child.sublists:
            found = _search(sublist, target, depth + 1, child, block)
            if found is not None:
                return found
    return None


def find_enclosing_list_item(doc: Document, path: Sequence[int]) -> ListItem | None:
    """Nearest list item on ``path`` (child indices from the document root)."""
    node: object = doc
    enclosing = None
    for position in path:
        children = _children_of(node)
        if not 0 <= position < len(children):
            break
        node = children[position]
        if isinstance(node, ListItem):
            enclosing = node
    return enclosing


def _children_of(node: object) -> list:
    if isinstance(node, Document):
        return node.blocks
    return list(getattr(node, "children", None) or [])


def indent_list_item(doc: Document, item: object) -> IndentResult:
    context = locate_list_item(doc, item)
    if context is None:
        logger.debug("Indent requested outside a list item")
        return IndentResult.NOT_APPLICABLE

    parent_list = context.parent_list
    if context.index == 0:
        if context.depth > 0:
            return IndentResult.NOT_APPLICABLE
        parent_list.style = rotate_style(parent_list.kind, current_style(parent_list, 0).marker_kind, 1).marker_kind
        return IndentResult.ROTATED

    new_depth = context.depth + 1
    if new_depth > latex_format.MAX_INDENT_LEVEL:
        logger.debug("Indent refused: depth %d exceeds limit", new_depth)
        return IndentResult.NOT_APPLICABLE

    previous = parent_list.children[context.index - 1]
    moved = parent_list.children[context.index :]
    del parent_list.children[context.index :]

    target = _trailing_sublist(previous, parent_list)
    if target is not None:
        target.children.extend(moved)
        result = IndentResult.ABSORBED
    else:
        target = type(parent_list)(
            children=moved,
            style=style_for(parent_list.kind, new_depth).marker_kind,
        )
        previous.children.append(target)
        result = IndentResult.NESTED
    refresh_indent_levels(target, new_depth)
    return result


def outdent_list_item(doc: Document, item: object) -> IndentResult:
    context = locate_list_item(doc, item)
    if context is None:
        logger.debug("Outdent requested outside a list item")
        return IndentResult.NOT_APPLICABLE

    parent_list = context.parent_list
    parent_item = context.parent_item
    grandparent_list = context.grandparent_list
    if parent_item is None or grandparent_list is None:
        parent_list.style = rotate_style(parent_list.kind, current_style(parent_list, 0).marker_kind, -1).marker_kind
        return IndentResult.ROTATED

    lifted = context.item
    followers = parent_list.children[context.index + 1 :]
    del parent_list.children[context.index :]

    # Whatever the parent item holds after this list reads after the lifted item.
    tail_start = _index_of(parent_item.children, parent_list) + 1
    trailing = parent_item.children[tail_start:]
    del parent_item.children[tail_start:]

    insert_at = _index_of(grandparent_list.children, parent_item) + 1
    grandparent_list.children.insert(insert_at, lifted)

    result = IndentResult.LIFTED
    if followers:
        parent_depth = context.depth - 1
        target = _trailing_sublist(lifted, parent_list)
        if target is not None:
            target.children.extend(followers)
        else:
            lifted.children.append(
                type(parent_list)(
                    children=followers,
                    style=style_for(parent_list.kind, parent_depth + 1).marker_kind,
                )
            )
        result = IndentResult.SPLIT
    if trailing:
        lifted.children.extend(trailing)
        result = IndentResult.SPLIT

    if not parent_list.children:
        del parent_item.children[_index_of(parent_item.children, parent_list)]
    refresh_indent_levels(grandparent_list, context.depth - 1)
    return result


def refresh_indent_levels(block: ListBlock, depth: int) -> None:
    """Set ``indent_level`` of every item under ``block`` from its nesting."""
    for item in block.children:
        item.indent_level = depth
        for sublist in item.sublists:
            refresh_indent_levels(sublist, depth + 1)


def refresh_document_indent_levels(doc: Document) -> None:
    for block in doc.blocks:
        if isinstance(block, ListBlock):
            refresh_indent_levels(block, 0)


def _trailing_sublist(item: ListItem, like: ListBlock) -> ListBlock | None:
    if item.children and type(item.children[-1]) is type(like):
        return item.children[-1]
    return None


def _index_of(nodes: Iterable[object], node: object) -> int:
    for index, candidate in enumerate(nodes):
        if candidate is node:
            return index
    raise ValueError("node is not a child of the given container")
