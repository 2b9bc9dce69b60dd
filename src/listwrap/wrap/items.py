"""Item slicing and single-line normalization.

Normalization only ever rewrites whitespace between tokens, plus the trailing comma
of a nested list that now closes on the same line where dropping it cannot change
meaning. String literals are copied through untouched.
"""

from __future__ import annotations

import io
import keyword
import re
import tokenize
from dataclasses import dataclass
from typing import Iterable

from listwrap.wrap.model import Item, Span
from listwrap.wrap.source_map import CLOSERS, OPENERS, string_spans

_WHITESPACE_RUN = re.compile(r"[ \t\r\n\f]+")
_AFTER_OPENER = re.compile(r"([(\[{]) ")
_BEFORE_CLOSER = re.compile(r" ([)\]},])")

_GROUP_START = frozenset(
    kind
    for kind in (getattr(tokenize, "FSTRING_START", None), getattr(tokenize, "TSTRING_START", None))
    if kind is not None
)
_GROUP_END = frozenset(
    kind
    for kind in (getattr(tokenize, "FSTRING_END", None), getattr(tokenize, "TSTRING_END", None))
    if kind is not None
)
_SKIPPED = frozenset({tokenize.NL, tokenize.NEWLINE, tokenize.INDENT, tokenize.DEDENT, tokenize.ENDMARKER})


@dataclass
class _OpenBracket:
    char: str
    after_operand: bool
    commas: int = 0


def normalize_item(raw: str) -> str:
    text = raw.strip()
    if not text:
        return ""
    # Parenthesized so multi-line fragments tokenize without INDENT bookkeeping.
    wrapped = f"({text})"
    pieces: list[str] = []
    cursor = 0
    for start, end in string_spans(wrapped):
        pieces.append(_collapse(wrapped[cursor:start]))
        pieces.append(wrapped[start:end])
        cursor = end
    pieces.append(_collapse(wrapped[cursor:]))
    return _drop_inline_trailing_commas("".join(pieces))[1:-1]


def _collapse(segment: str) -> str:
    segment = _WHITESPACE_RUN.sub(" ", segment)
    segment = _AFTER_OPENER.sub(r"\1", segment)
    return _BEFORE_CLOSER.sub(r"\1", segment)


def _follows_operand(previous: tokenize.TokenInfo | None) -> bool:
    if previous is None:
        return False
    if previous.type == tokenize.NAME:
        return not keyword.iskeyword(previous.string)
    if previous.type == tokenize.OP:
        return previous.string in CLOSERS
    return previous.type == tokenize.STRING or previous.type in _GROUP_END


def _drop_inline_trailing_commas(text: str) -> str:
    """Remove ``,`` directly before a closing bracket when it is only decoration.

    Call arguments, lists, sets and dicts never need it; a parenthesized tuple needs
    it only when it has a single element; subscripts are left as written.
    """
    if "\n" in text:
        return text
    removals: list[int] = []
    stack: list[_OpenBracket] = []
    previous: tokenize.TokenInfo | None = None
    group_depth = 0
    for token in tokenize.generate_tokens(io.StringIO(text).readline):
        if token.type in _SKIPPED:
            continue
        if token.type in _GROUP_START:
            group_depth += 1
        elif token.type in _GROUP_END:
            group_depth -= 1
        elif group_depth == 0 and token.type == tokenize.OP:
            if token.string in OPENERS:
                stack.append(_OpenBracket(token.string, _follows_operand(previous)))
            elif token.string in CLOSERS and stack:
                bracket = stack.pop()
                if previous is not None and previous.string == "," and _comma_is_optional(bracket):
                    removals.append(previous.start[1])
            elif token.string == "," and stack:
                stack[-1].commas += 1
        previous = token
    for column in reversed(removals):
        text = text[:column] + text[column + 1 :]
    return text


def _comma_is_optional(bracket: _OpenBracket) -> bool:
    if bracket.char == "{":
        return True
    if bracket.char == "[":
        return not bracket.after_operand
    return bracket.after_operand or bracket.commas >= 2


def extract_items(text: str, spans: Iterable[Span]) -> list[Item]:
    items: list[Item] = []
    for start, end in spans:
        if start < 0 or end > len(text) or start >= end:
            continue
        raw = text[start:end]
        normalized = normalize_item(raw)
        if not normalized:
            continue
        items.append(Item(raw=raw, text=normalized))
    return items
