import json
import textwrap

import pytest

from RichTex import markdown_parser, yaml_parser
from RichTex.model import (
    BulletedList,
    Heading,
    MathNode,
    NumberedList,
    Paragraph,
    Table,
    TextRun,
)


def test_parse_markdown_blocks_and_inline():
    md_text = """
# Introduction

Text with *italic*, **bold** and inline $E=mc^2$.

- First
- Second
  - Nested

$$
S = \\pi r^2
$$

| A | B |
|---|---|
| 1 | 2 |
"""
    document = markdown_parser.parse_markdown(md_text)
    heading, paragraph, bullets, equation, table = document.blocks

    assert isinstance(heading, Heading) and heading.level == 1
    assert heading.children == [TextRun("Introduction")]

    assert isinstance(paragraph, Paragraph)
    assert TextRun("italic", italic=True) in paragraph.children
    assert TextRun("bold", bold=True) in paragraph.children
    assert MathNode("E=mc^2", display=False) in paragraph.children

    assert isinstance(bullets, BulletedList)
    assert len(bullets.children) == 2
    nested = bullets.children[1].sublists[0]
    assert isinstance(nested, BulletedList)
    assert nested.children[0].indent_level == 1
    assert nested.children[0].inline == [TextRun("Nested")]

    assert equation == MathNode("S = \\pi r^2", display=True)

    assert isinstance(table, Table)
    assert [cell.header for cell in table.children[0].children] == [True, True]
    assert table.children[1].children[1].children == [TextRun("2")]


def test_parse_markdown_ordered_list_and_link():
    document = markdown_parser.parse_markdown("1. see [docs](https://example.org)\n2. done\n")
    (numbers,) = document.blocks
    assert isinstance(numbers, NumberedList)
    assert TextRun("docs", underline=True) in numbers.children[0].children
    assert numbers.children[1].children == [TextRun("done")]


def test_parse_yaml_node_tree():
    yaml_text = textwrap.dedent(
        """
        - type: heading
          level: 1
          children:
            - text: Title
        - type: paragraph
          align: center
          children:
            - text: Hello
              bold: true
              color: "#FF0000"
        - type: bulleted-list
          children:
            - type: list-item
              children:
                - text: A
                - type: numbered-list
                  children:
                    - type: list-item
                      indentLevel: 5
                      children:
                        - text: B
        - type: math
          formula: x^2
          display: false
        """
    )
    document = yaml_parser.parse_yaml_document(yaml_text)
    heading, paragraph, bullets, math = document.blocks
    assert isinstance(heading, Heading) and heading.children == [TextRun("Title")]
    assert paragraph.align == "center"
    assert paragraph.children == [TextRun("Hello", bold=True, color="#ff0000")]
    nested = bullets.children[0].sublists[0]
    assert isinstance(nested, NumberedList)
    assert nested.children[0].indent_level == 1
    assert math == MathNode("x^2", display=False)


def test_yaml_dump_then_load_keeps_tree():
    document = yaml_parser.parse_yaml_document(
        json.dumps(
            [
                {"type": "paragraph", "children": [{"text": "Hi", "italic": True, "backgroundColor": "#00ffff"}]},
                {
                    "type": "table",
                    "children": [
                        {"type": "table-row", "children": [{"type": "table-cell", "header": True, "children": [{"text": "H"}]}]}
                    ],
                },
            ]
        )
    )
    dumped = yaml_parser.dump_yaml_document(document)
    assert "backgroundColor: '#00ffff'" in dumped
    assert yaml_parser.parse_yaml_document(dumped) == document


@pytest.mark.parametrize(
    "source",
    [
        "title: not a tree",
        "42",
        "- type: video\n  children: []",
        "- type: bulleted-list\n  children:\n    - type: paragraph\n      children: []",
    ],
)
def test_parse_yaml_rejects_malformed_trees(source):
    with pytest.raises(ValueError):
        yaml_parser.parse_yaml_document(source)
