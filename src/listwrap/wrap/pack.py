from __future__ import annotations

from enum import Enum
from typing import Sequence

from listwrap.config import WrapConfig
from listwrap.wrap.model import Item
from listwrap.wrap.width import visual_width


class Layout(str, Enum):
    COLLAPSE = "collapse"
    EXPAND = "expand"


def line_prefix(text: str, offset: int) -> str:
    return text[text.rfind("\n", 0, offset) + 1 : offset]


def leading_indent(prefix: str) -> str:
    return prefix[: len(prefix) - len(prefix.lstrip(" \t"))]


def indent_unit(line_indent: str, config: WrapConfig) -> str:
    if line_indent.startswith("\t"):
        return "\t"
    return config.indent


def render_single_line(
    open_char: str, items: Sequence[str], close_char: str, *, trailing_comma: bool = False
) -> str:
    return open_char + ", ".join(items) + ("," if trailing_comma else "") + close_char


def pack_items(
    items: Sequence[str],
    indent: str,
    config: WrapConfig,
    *,
    newline: str = "\n",
) -> str:
    """Greedily fill lines with items; every line keeps a trailing comma.

    An item wider than the budget still gets a line of its own rather than being
    split.
    """
    indent_width = visual_width(indent, config.tab_width)
    lines: list[list[str]] = []
    current: list[str] = []
    width = indent_width
    for item in items:
        item_width = visual_width(item, config.tab_width)
        # 2 for the ", " separator, 1 for the trailing comma.
        if current and width + 2 + item_width + 1 <= config.max_width:
            current.append(item)
            width += 2 + item_width
            continue
        if current:
            lines.append(current)
        current = [item]
        width = indent_width + item_width
    if current:
        lines.append(current)
    return "".join(indent + ", ".join(line) + "," + newline for line in lines)


def layout_construct(
    text: str,
    open_offset: int,
    close_offset: int,
    items: Sequence[Item],
    config: WrapConfig,
    *,
    newline: str = "\n",
    keeps_comma: bool = False,
) -> tuple[Layout, str]:
    """Pick collapse or expand for one bracket list and render its replacement.

    The replacement covers ``text[open_offset:close_offset + 1]``.
    """
    open_char = text[open_offset]
    close_char = text[close_offset]
    prefix = line_prefix(text, open_offset)
    single_line = render_single_line(
        open_char, [item.text for item in items], close_char, trailing_comma=keeps_comma
    )
    fits = visual_width(prefix + single_line, config.tab_width) <= config.max_width
    if fits and not any(item.multiline for item in items):
        return Layout.COLLAPSE, single_line
    line_indent = leading_indent(prefix)
    packed = pack_items(
        [item.text for item in items],
        line_indent + indent_unit(line_indent, config),
        config,
        newline=newline,
    )
    return Layout.EXPAND, open_char + newline + packed + line_indent + close_char
