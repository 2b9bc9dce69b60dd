from __future__ import annotations

import ast

from listwrap.wrap.model import ConstructKind, Wrappable
from listwrap.wrap.source_map import SourceMap

_LITERAL_DELIMITERS: dict[type[ast.AST], str] = {
    ast.List: "[]",
    ast.Set: "{}",
    ast.Dict: "{}",
    ast.Tuple: "()",
}


def discover_wrappables(source_map: SourceMap) -> list[Wrappable]:
    """Every wrappable bracket list in the module, ordered by opening offset."""
    collector = _WrappableCollector(source_map)
    collector.visit(source_map.tree)
    return sorted(collector.found, key=lambda wrappable: wrappable.open)


class _WrappableCollector(ast.NodeVisitor):
    def __init__(self, source_map: SourceMap) -> None:
        self.source_map = source_map
        self.found: list[Wrappable] = []

    def visit_JoinedStr(self, node: ast.JoinedStr) -> None:
        # Replacement fields live on the string's own line.
        return None

    visit_TemplateStr = visit_JoinedStr

    def visit_Call(self, node: ast.Call) -> None:
        _, end = self.source_map.node_span(node)
        if not self._bare_generator_argument(node, end - 1):
            self._add_closing(ConstructKind.CALL, end - 1, "()")
        self.generic_visit(node)

    def visit_List(self, node: ast.List) -> None:
        self._visit_literal(node)

    def visit_Set(self, node: ast.Set) -> None:
        self._visit_literal(node)

    def visit_Dict(self, node: ast.Dict) -> None:
        self._visit_literal(node)

    def visit_Tuple(self, node: ast.Tuple) -> None:
        self._visit_literal(node)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        self._collect_signature(node)
        self.generic_visit(node)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        self._collect_signature(node)
        self.generic_visit(node)

    def _visit_literal(self, node: ast.expr) -> None:
        start, end = self.source_map.node_span(node)
        # Unparenthesized tuples have no delimiters of their own.
        if self.source_map.closers.get(start) == end - 1:
            self._add(
                ConstructKind.LITERAL,
                start,
                _LITERAL_DELIMITERS[type(node)],
                keeps_comma=isinstance(node, ast.Tuple) and len(node.elts) == 1,
            )
        self.generic_visit(node)

    def _collect_signature(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        source_map = self.source_map
        start = source_map.offset(node.lineno, node.col_offset)
        open_ = source_map.next_opener(start)
        if open_ is not None and source_map.text[open_] == "[":
            # PEP 695 type parameters precede the parameter list.
            open_ = source_map.next_opener(source_map.closers[open_] + 1)
        if open_ is not None:
            self._add(ConstructKind.PARAMETERS, open_, "()")
        if isinstance(node.returns, ast.Subscript):
            _, end = source_map.node_span(node.returns)
            self._add_closing(ConstructKind.RESULTS, end - 1, "[]")

    def _add_closing(self, kind: ConstructKind, close: int, delimiters: str) -> None:
        open_ = self.source_map.openers.get(close)
        if open_ is not None:
            self._add(kind, open_, delimiters)

    def _bare_generator_argument(self, node: ast.Call, close: int) -> bool:
        """True for ``sum(x for x in y)``: the generator borrows the call's parentheses
        and no layout with a trailing comma parses."""
        if len(node.args) != 1 or node.keywords or not isinstance(node.args[0], ast.GeneratorExp):
            return False
        open_ = self.source_map.openers.get(close)
        if open_ is None:
            return False
        items = self.source_map.split_items(open_, close)
        if len(items) != 1:
            return False
        start, end = items[0]
        return self.source_map.closers.get(start) != end - 1

    def _add(self, kind: ConstructKind, open_: int, delimiters: str, *, keeps_comma: bool = False) -> None:
        source_map = self.source_map
        close = source_map.closers.get(open_)
        if close is None:
            return
        if source_map.text[open_] != delimiters[0] or source_map.text[close] != delimiters[1]:
            return
        items = source_map.split_items(open_, close)
        if len(items) < kind.min_items:
            return
        self.found.append(Wrappable(kind=kind, open=open_, close=close, items=items, keeps_comma=keeps_comma))
