from __future__ import annotations

import re

TRANSPARENT = "transparent"

HEX_TO_LATEX = {
    "#ff0000": "red",
    "#00ff00": "green",
    "#0000ff": "blue",
    "#ffff00": "yellow",
    "#ff00ff": "magenta",
    "#00ffff": "cyan",
    "#000000": "black",
    "#ffffff": "white",
}

LATEX_TO_HEX = {name: hex_value for hex_value, name in HEX_TO_LATEX.items()}

_HEX_RE = re.compile(r"#(?P<digits>[0-9a-fA-F]{6}|[0-9a-fA-F]{3})")
_RGB_RE = re.compile(r"rgb\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*\)", re.IGNORECASE)


def normalize_color(value: str) -> str:
    """Return ``value`` as lowercase ``#rrggbb`` or ``"transparent"``.

    Accepts short and long hex forms in any case, CSS ``rgb(r, g, b)`` and
    the named colours of the LaTeX table. Anything else raises ``ValueError``.
    """
    text = value.strip()
    lowered = text.lower()
    if lowered == TRANSPARENT:
        return TRANSPARENT
    if lowered in LATEX_TO_HEX:
        return LATEX_TO_HEX[lowered]
    match = _HEX_RE.fullmatch(text)
    if match:
        digits = match.group("digits").lower()
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return f"#{digits}"
    match = _RGB_RE.fullmatch(text)
    if match:
        channels = [int(part) for part in match.groups()]
        if all(0 <= channel <= 255 for channel in channels):
            return "#" + "".join(f"{channel:02x}" for channel in channels)
    raise ValueError(f"Unsupported color value: {value!r}")


def hex_to_latex(color: str) -> str:
    """Named LaTeX colour for ``color``, or the hex string itself."""
    return HEX_TO_LATEX.get(color.lower(), color)


def latex_to_hex(name: str) -> str | None:
    return LATEX_TO_HEX.get(name.strip().lower())
