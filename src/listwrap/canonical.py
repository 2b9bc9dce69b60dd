"""Canonical formatters run before and after the wrap pass.

The default is a LibCST round trip that also evens out separator spacing inside
calls and collection literals. It only rewrites whitespace that stays on one line,
so the line structure the wrap pass produced survives it.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Protocol, Sequence, TypeVar

import libcst as cst

from listwrap.exceptions import SourceSyntaxError, WrapError

logger = logging.getLogger(__name__)

_ElementT = TypeVar("_ElementT", bound=cst.CSTNode)


class CanonicalFormatter(Protocol):
    def __call__(self, source: str) -> str: ...


class LibcstFormatter:
    def __call__(self, source: str) -> str:
        try:
            module = cst.parse_module(source)
        except cst.ParserSyntaxError as exc:
            raise SourceSyntaxError(
                f"LibCST parse failed: {exc}",
                lineno=exc.raw_line,
                offset=exc.raw_column,
            ) from exc
        return module.visit(_SeparatorSpacing()).code


class CommandFormatter:
    """Pipes source through an external formatter, e.g. ``["ruff", "format", "-"]``."""

    def __init__(self, argv: Sequence[str]) -> None:
        if not argv:
            raise ValueError("formatter command must not be empty")
        self.argv = list(argv)

    def __call__(self, source: str) -> str:
        logger.debug("running formatter %s", " ".join(self.argv))
        try:
            completed = subprocess.run(
                self.argv,
                input=source,
                capture_output=True,
                text=True,
                encoding="utf-8",
                check=False,
            )
        except OSError as exc:
            raise WrapError(f"formatter {self.argv[0]!r} could not be started: {exc}") from exc
        if completed.returncode != 0:
            message = completed.stderr.strip() or f"exit status {completed.returncode}"
            raise SourceSyntaxError(f"{self.argv[0]}: {message}")
        return completed.stdout


def build_formatter(command: Sequence[str] | None = None) -> CanonicalFormatter:
    if command:
        return CommandFormatter(command)
    return LibcstFormatter()


def _tight(whitespace: cst.BaseParenthesizableWhitespace) -> cst.BaseParenthesizableWhitespace:
    if isinstance(whitespace, cst.SimpleWhitespace) and whitespace.value:
        return cst.SimpleWhitespace("")
    return whitespace


def _spaced(
    whitespace: cst.BaseParenthesizableWhitespace, value: str
) -> cst.BaseParenthesizableWhitespace:
    if isinstance(whitespace, cst.SimpleWhitespace) and whitespace.value != value:
        return cst.SimpleWhitespace(value)
    return whitespace


def _space_commas(elements: Sequence[_ElementT]) -> list[_ElementT]:
    last = len(elements) - 1
    spaced: list[_ElementT] = []
    for index, element in enumerate(elements):
        comma = getattr(element, "comma", None)
        if isinstance(comma, cst.Comma):
            after = comma.whitespace_after
            # A line break owned by the argument itself keeps the comma bare.
            if not isinstance(getattr(element, "whitespace_after_arg", None), cst.ParenthesizedWhitespace):
                after = _spaced(after, " " if index < last else "")
            element = element.with_changes(
                comma=comma.with_changes(
                    whitespace_before=_tight(comma.whitespace_before),
                    whitespace_after=after,
                )
            )
        spaced.append(element)
    return spaced


def _drop_trailing_comma(
    elements: Sequence[_ElementT],
    closing: cst.BaseParenthesizableWhitespace | None = None,
) -> list[_ElementT]:
    """Drop the comma after the last element when the list closes on the same line."""
    if not elements:
        return list(elements)
    last = elements[-1]
    comma = getattr(last, "comma", None)
    if not isinstance(comma, cst.Comma):
        return list(elements)
    trailing = [comma.whitespace_after, getattr(last, "whitespace_after_arg", None), closing]
    if all(ws is None or isinstance(ws, cst.SimpleWhitespace) for ws in trailing):
        return [*elements[:-1], last.with_changes(comma=cst.MaybeSentinel.DEFAULT)]
    return list(elements)


class _SeparatorSpacing(cst.CSTTransformer):
    def leave_Call(self, original_node: cst.Call, updated_node: cst.Call) -> cst.BaseExpression:
        args = [
            arg.with_changes(whitespace_after_arg=_tight(arg.whitespace_after_arg))
            for arg in updated_node.args
        ]
        return updated_node.with_changes(
            whitespace_after_func=_tight(updated_node.whitespace_after_func),
            whitespace_before_args=_tight(updated_node.whitespace_before_args),
            args=_drop_trailing_comma(_space_commas(args)),
        )

    def leave_List(self, original_node: cst.List, updated_node: cst.List) -> cst.BaseExpression:
        return updated_node.with_changes(
            lbracket=updated_node.lbracket.with_changes(
                whitespace_after=_tight(updated_node.lbracket.whitespace_after)
            ),
            rbracket=updated_node.rbracket.with_changes(
                whitespace_before=_tight(updated_node.rbracket.whitespace_before)
            ),
            elements=_drop_trailing_comma(
                _space_commas(updated_node.elements), updated_node.rbracket.whitespace_before
            ),
        )

    def leave_Set(self, original_node: cst.Set, updated_node: cst.Set) -> cst.BaseExpression:
        return updated_node.with_changes(
            lbrace=updated_node.lbrace.with_changes(
                whitespace_after=_tight(updated_node.lbrace.whitespace_after)
            ),
            rbrace=updated_node.rbrace.with_changes(
                whitespace_before=_tight(updated_node.rbrace.whitespace_before)
            ),
            elements=_drop_trailing_comma(
                _space_commas(updated_node.elements), updated_node.rbrace.whitespace_before
            ),
        )

    def leave_Dict(self, original_node: cst.Dict, updated_node: cst.Dict) -> cst.BaseExpression:
        elements = [
            element.with_changes(
                whitespace_before_colon=_tight(element.whitespace_before_colon),
                whitespace_after_colon=_spaced(element.whitespace_after_colon, " "),
            )
            if isinstance(element, cst.DictElement)
            else element
            for element in updated_node.elements
        ]
        return updated_node.with_changes(
            lbrace=updated_node.lbrace.with_changes(
                whitespace_after=_tight(updated_node.lbrace.whitespace_after)
            ),
            rbrace=updated_node.rbrace.with_changes(
                whitespace_before=_tight(updated_node.rbrace.whitespace_before)
            ),
            elements=_drop_trailing_comma(_space_commas(elements), updated_node.rbrace.whitespace_before),
        )

    def leave_Tuple(self, original_node: cst.Tuple, updated_node: cst.Tuple) -> cst.BaseExpression:
        if not updated_node.lpar or not updated_node.rpar:
            return updated_node
        lpar = list(updated_node.lpar)
        rpar = list(updated_node.rpar)
        lpar[-1] = lpar[-1].with_changes(whitespace_after=_tight(lpar[-1].whitespace_after))
        rpar[0] = rpar[0].with_changes(whitespace_before=_tight(rpar[0].whitespace_before))
        elements = _space_commas(updated_node.elements)
        if len(elements) > 1:
            elements = _drop_trailing_comma(elements, updated_node.rpar[0].whitespace_before)
        return updated_node.with_changes(lpar=lpar, rpar=rpar, elements=elements)
