from __future__ import annotations

DOCUMENT_CLASS = "article"

# (options, package) in emission order
PREAMBLE_PACKAGES = (
    ("utf8", "inputenc"),
    (None, "amsmath"),
    (None, "amsfonts"),
    (None, "amssymb"),
    (None, "xcolor"),
    (None, "graphicx"),
)

HEADING_COMMANDS = {
    1: "section",
    2: "subsection",
    3: "subsubsection",
}
FALLBACK_HEADING_COMMAND = "paragraph"
FALLBACK_HEADING_LEVEL = 4

ALIGN_ENVIRONMENTS = {
    "center": "center",
    "right": "flushright",
}

LIST_ENVIRONMENTS = {
    False: "itemize",
    True: "enumerate",
}

TABLE_ENVIRONMENT = "tabular"

ITEM_INDENT = "  "
MAX_INDENT_LEVEL = 20


def build_preamble() -> str:
    """Document class line plus the fixed package list."""
    lines = [f"\\documentclass{{{DOCUMENT_CLASS}}}"]
    for options, package in PREAMBLE_PACKAGES:
        if options:
            lines.append(f"\\usepackage[{options}]{{{package}}}")
        else:
            lines.append(f"\\usepackage{{{package}}}")
    return "\n".join(lines)


def heading_command(level: int) -> str:
    return HEADING_COMMANDS.get(level, FALLBACK_HEADING_COMMAND)
