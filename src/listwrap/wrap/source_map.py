"""Position service over one formatted Python module.

All offsets handed out here are character offsets into ``SourceMap.text``. ``ast``
reports columns as UTF-8 byte offsets and ``tokenize`` reports them as character
offsets within a line; both are translated through ``line_starts``.
"""

from __future__ import annotations

import ast
import io
import tokenize
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Mapping

from listwrap.exceptions import SourceSyntaxError

OPENERS = frozenset("([{")
CLOSERS = frozenset(")]}")

_LAYOUT_TOKENS = frozenset(
    {
        tokenize.NL,
        tokenize.NEWLINE,
        tokenize.INDENT,
        tokenize.DEDENT,
        tokenize.ENDMARKER,
        tokenize.COMMENT,
    }
)
# f-strings (3.12+) and t-strings (3.14+) tokenize as START ... END groups.
_STRING_GROUP_START = frozenset(
    kind
    for kind in (getattr(tokenize, "FSTRING_START", None), getattr(tokenize, "TSTRING_START", None))
    if kind is not None
)
_STRING_GROUP_END = frozenset(
    kind
    for kind in (getattr(tokenize, "FSTRING_END", None), getattr(tokenize, "TSTRING_END", None))
    if kind is not None
)

Span = tuple[int, int]


@dataclass(frozen=True)
class Token:
    type: int
    string: str
    start: int
    end: int


@dataclass(frozen=True)
class SourceMap:
    text: str
    tree: ast.Module
    line_starts: tuple[int, ...]
    tokens: tuple[Token, ...]
    token_starts: tuple[int, ...]
    closers: Mapping[int, int]
    openers: Mapping[int, int]
    opener_offsets: tuple[int, ...]
    guards: tuple[int, ...]

    @classmethod
    def from_source(cls, text: str) -> SourceMap:
        try:
            tree = ast.parse(text)
        except SyntaxError as exc:
            raise SourceSyntaxError.from_syntax_error(exc) from exc
        except ValueError as exc:
            raise SourceSyntaxError(str(exc)) from exc
        line_starts = _line_starts(text)
        scan = _TokenScan(text, line_starts)
        scan.run()
        return cls(
            text=text,
            tree=tree,
            line_starts=line_starts,
            tokens=tuple(scan.tokens),
            token_starts=tuple(token.start for token in scan.tokens),
            closers=dict(scan.closers),
            openers={close: open_ for open_, close in scan.closers.items()},
            opener_offsets=tuple(sorted(scan.closers)),
            guards=tuple(sorted(scan.guards)),
        )

    def offset(self, lineno: int, col_offset: int) -> int:
        """Character offset of an ``ast`` position (1-based line, byte column)."""
        start = self.line_starts[lineno - 1]
        if lineno < len(self.line_starts):
            line = self.text[start : self.line_starts[lineno]]
        else:
            line = self.text[start:]
        if line.isascii():
            return start + col_offset
        prefix = line.encode("utf-8")[:col_offset]
        return start + len(prefix.decode("utf-8", errors="ignore"))

    def node_span(self, node: ast.AST) -> Span:
        start = self.offset(node.lineno, node.col_offset)
        end = self.offset(node.end_lineno, node.end_col_offset)
        return start, end

    def next_opener(self, offset: int) -> int | None:
        index = bisect_left(self.opener_offsets, offset)
        if index >= len(self.opener_offsets):
            return None
        return self.opener_offsets[index]

    def is_guarded(self, open_offset: int, close_offset: int) -> bool:
        """True when the span holds a comment, a multi-line string or a backslash."""
        index = bisect_right(self.guards, open_offset)
        return index < len(self.guards) and self.guards[index] < close_offset

    def split_items(self, open_offset: int, close_offset: int) -> tuple[Span, ...]:
        """Top-level comma separated item ranges strictly inside a bracket pair."""
        items: list[Span] = []
        depth = 0
        pending_lambdas = 0
        first: int | None = None
        last_end = 0
        index = bisect_right(self.token_starts, open_offset)
        for token in self.tokens[index:]:
            if token.start >= close_offset:
                break
            if token.type == tokenize.OP:
                if depth == 0 and token.string == "," and not pending_lambdas:
                    if first is not None:
                        items.append((first, last_end))
                    first = None
                    continue
                if depth == 0 and token.string == ":" and pending_lambdas:
                    pending_lambdas -= 1
                elif token.string in OPENERS:
                    depth += 1
                elif token.string in CLOSERS:
                    depth -= 1
            elif token.type == tokenize.NAME and token.string == "lambda" and depth == 0:
                pending_lambdas += 1
            if token.type in _LAYOUT_TOKENS:
                continue
            if first is None:
                first = token.start
            last_end = token.end
        if first is not None:
            items.append((first, last_end))
        return tuple(items)


def string_spans(text: str) -> tuple[Span, ...]:
    """Regions of ``text`` covered by string, f-string or t-string literals."""
    scan = _TokenScan(text, _line_starts(text))
    scan.run()
    return tuple(scan.string_spans)


def _line_starts(text: str) -> tuple[int, ...]:
    starts = [0]
    index = text.find("\n")
    while index != -1:
        starts.append(index + 1)
        index = text.find("\n", index + 1)
    return tuple(starts)


class _TokenScan:
    def __init__(self, text: str, line_starts: tuple[int, ...]) -> None:
        self.text = text
        self.line_starts = line_starts
        self.tokens: list[Token] = []
        self.closers: dict[int, int] = {}
        self.string_spans: list[Span] = []
        self.guards: list[int] = []

    def _char_offset(self, row: int, col: int) -> int:
        if row - 1 >= len(self.line_starts):
            return len(self.text)
        return min(self.line_starts[row - 1] + col, len(self.text))

    def run(self) -> None:
        stack: list[int] = []
        group_depth = 0
        group_start = 0
        group_row = 0
        prev_end = 0
        readline = io.StringIO(self.text).readline
        try:
            for tok in tokenize.generate_tokens(readline):
                start = self._char_offset(*tok.start)
                end = self._char_offset(*tok.end)
                if group_depth == 0 and start > prev_end and "\\" in self.text[prev_end:start]:
                    self.guards.append(prev_end)
                prev_end = max(prev_end, end)
                if tok.type in _STRING_GROUP_START:
                    if group_depth == 0:
                        group_start = start
                        group_row = tok.start[0]
                    group_depth += 1
                elif tok.type in _STRING_GROUP_END:
                    group_depth -= 1
                    if group_depth == 0:
                        self.string_spans.append((group_start, end))
                        if tok.end[0] != group_row:
                            self.guards.append(group_start)
                elif tok.type == tokenize.STRING:
                    if group_depth == 0:
                        self.string_spans.append((start, end))
                    if tok.start[0] != tok.end[0]:
                        self.guards.append(start)
                elif tok.type == tokenize.COMMENT:
                    self.guards.append(start)
                elif tok.type == tokenize.OP:
                    if tok.string in OPENERS:
                        stack.append(start)
                    elif tok.string in CLOSERS and stack:
                        self.closers[stack.pop()] = start
                self.tokens.append(Token(tok.type, tok.string, start, end))
        except tokenize.TokenError as exc:
            message = exc.args[0] if exc.args else str(exc)
            raise SourceSyntaxError(str(message)) from exc
        except SyntaxError as exc:
            raise SourceSyntaxError.from_syntax_error(exc) from exc
