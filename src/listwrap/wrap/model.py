from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

Span = tuple[int, int]


class ConstructKind(str, Enum):
    CALL = "call"
    LITERAL = "literal"
    PARAMETERS = "parameters"
    RESULTS = "results"

    @property
    def min_items(self) -> int:
        # A lone return annotation has no brackets of its own to wrap.
        if self is ConstructKind.RESULTS:
            return 2
        return 1


@dataclass(frozen=True)
class Wrappable:
    kind: ConstructKind
    open: int
    close: int
    items: tuple[Span, ...]
    # One-element tuples need their comma on a single line too.
    keeps_comma: bool = False


@dataclass(frozen=True)
class Item:
    raw: str
    text: str

    @property
    def multiline(self) -> bool:
        return "\n" in self.text


@dataclass(frozen=True)
class Replacement:
    start: int
    end: int
    text: str


@dataclass(frozen=True)
class WrapResult:
    text: str
    changed: bool
    discovered: int = 0
    collapsed: int = 0
    expanded: int = 0
    skipped: int = 0
