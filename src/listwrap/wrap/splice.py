"""Offset-stable text splicing.

Edits are expressed against the original buffer and applied right to left, so an
edit never disturbs the coordinates of one that starts before it.
"""

from __future__ import annotations

from typing import Iterable

from listwrap.wrap.model import Replacement


def apply_replacements(text: str, replacements: Iterable[Replacement]) -> str:
    """Apply non-overlapping range edits to ``text`` in one pass."""
    ordered = sorted(replacements, key=lambda replacement: replacement.start, reverse=True)
    result = text
    bound = len(text)
    for replacement in ordered:
        if replacement.start < 0 or replacement.start > replacement.end:
            raise ValueError(f"invalid replacement range {replacement.start}:{replacement.end}")
        if replacement.end > bound:
            raise ValueError(
                f"replacement {replacement.start}:{replacement.end} overlaps a later edit at {bound}"
            )
        result = result[: replacement.start] + replacement.text + result[replacement.end :]
        bound = replacement.start
    return result


class Splicer:
    """Single mutable buffer fed with edits in descending start order.

    Coordinates passed in are always those of the original buffer; edits already
    applied inside a later range (nested lists) are accounted for when an enclosing
    range is read or replaced.
    """

    def __init__(self, text: str) -> None:
        self.original = text
        self._text = text
        self._deltas: list[tuple[int, int]] = []
        self._floor = len(text) + 1
        self.changed = False

    @property
    def text(self) -> str:
        return self._text

    def current_offset(self, offset: int) -> int:
        return offset + sum(delta for end, delta in self._deltas if end <= offset)

    def apply(self, replacement: Replacement) -> bool:
        """Splice one edit; returns False when it would not change the buffer."""
        if replacement.start >= self._floor:
            raise ValueError(
                f"edit at {replacement.start} is not left of the previous edit at {self._floor}"
            )
        self._floor = replacement.start
        start = self.current_offset(replacement.start)
        end = self.current_offset(replacement.end)
        if self._text[start:end] == replacement.text:
            return False
        self._text = apply_replacements(self._text, [Replacement(start, end, replacement.text)])
        self._deltas.append((replacement.end, len(replacement.text) - (end - start)))
        self.changed = True
        return True
