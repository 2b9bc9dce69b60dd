from __future__ import annotations

from listwrap.config import DEFAULT_TAB_WIDTH


def visual_width(text: str, tab_width: int = DEFAULT_TAB_WIDTH) -> int:
    """Column count of ``text`` with tabs advancing to the next tab stop."""
    column = 0
    for ch in text:
        if ch == "\t":
            column = (column // tab_width + 1) * tab_width
        else:
            column += 1
    return column
