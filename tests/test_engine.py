from __future__ import annotations

import ast
import logging
import textwrap

import pytest

from listwrap import WrapConfig, format_source
from listwrap.exceptions import SourceSyntaxError
from listwrap.wrap.engine import WrapEngine

NUMBERS = [str(number) for number in range(100, 123)]


def _src(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")


def _identity(source: str) -> str:
    return source


def test_long_call_wraps_with_greedy_packing() -> None:
    source = _src(
        f"""
        def f():
            print({', '.join(NUMBERS)})
        """
    )
    expected = (
        "def f():\n"
        "    print(\n"
        f"        {', '.join(NUMBERS[:22])},\n"
        "        122,\n"
        "    )\n"
    )
    assert format_source(source, WrapConfig(max_width=120)) == expected


def test_long_literal_wraps_like_a_call() -> None:
    source = _src(
        f"""
        def g():
            values = [{', '.join(NUMBERS)}]
        """
    )
    expected = (
        "def g():\n"
        "    values = [\n"
        f"        {', '.join(NUMBERS[:22])},\n"
        "        122,\n"
        "    ]\n"
    )
    assert format_source(source) == expected


def test_short_call_is_byte_identical() -> None:
    source = _src(
        """
        def f():
            print(100, 101, 102)
        """
    )
    assert format_source(source) == source


def test_code_without_lists_is_unchanged() -> None:
    source = "x = 1\n"
    assert format_source(source) == source


@pytest.mark.parametrize("source", ["f(\n    1, 2, 3,\n)\n", "f(\n\t1, 2, 3,\n)\n"])
def test_wrapped_call_collapses_when_it_fits(source: str) -> None:
    assert format_source(source, WrapConfig(max_width=120)) == "f(1, 2, 3)\n"


def test_nested_lists_collapse_inside_out() -> None:
    source = _src(
        """
        x = f(
            a,
            g(
                b,
                c,
            ),
            d,
        )
        """
    )
    assert format_source(source) == "x = f(a, g(b, c), d)\n"


def test_every_kind_wraps_at_a_narrow_width() -> None:
    source = _src(
        """
        def f():
            print(100, 101, 102, 103, 104, 105)


        def g():
            values = [100, 101, 102, 103, 104, 105]


        def h(p1: int, p2: int, p3: int, p4: int, p5: int, p6: int):
            pass


        def j() -> tuple[int, str, bytes]:
            return 1, "a", b""
        """
    )
    expected = _src(
        """
        def f():
            print(
                100, 101, 102, 103,
                104, 105,
            )


        def g():
            values = [
                100, 101, 102, 103,
                104, 105,
            ]


        def h(
            p1: int, p2: int, p3: int,
            p4: int, p5: int, p6: int,
        ):
            pass


        def j() -> tuple[
            int, str, bytes,
        ]:
            return 1, "a", b""
        """
    )
    assert format_source(source, WrapConfig(max_width=30)) == expected


def test_single_result_annotation_is_left_alone_even_when_long() -> None:
    source = "def k() -> list[int]:\n    return []\n"
    assert format_source(source, WrapConfig(max_width=10)) == source


def test_width_threshold_is_inclusive() -> None:
    source = "x = [1, 2, 3]\n"
    assert format_source(source, WrapConfig(max_width=13)) == source
    assert format_source(source, WrapConfig(max_width=12)) == "x = [\n    1, 2, 3,\n]\n"


def test_tab_indented_source_wraps_with_tabs() -> None:
    source = f"def f():\n\tprint({', '.join(NUMBERS)})\n"
    expected = (
        "def f():\n"
        "\tprint(\n"
        f"\t\t{', '.join(NUMBERS[:22])},\n"
        "\t\t122,\n"
        "\t)\n"
    )
    assert format_source(source, WrapConfig(max_width=120, tab_width=4)) == expected


@pytest.mark.parametrize(
    "source",
    [
        f"def f():\n    print({', '.join(NUMBERS)})\n",
        "x = f(aaaa, bbbb, g(cccc, dddd, eeee), ffff)\n",
        "def h(p1: int, p2: int, p3: int, p4: int, p5: int, p6: int):\n    pass\n",
        "f(\n    1, 2, 3,\n)\n",
        "data = {'alpha': [1, 2, 3], 'beta': (4, 5, 6), 'gamma': call(7, 8, 9)}\n",
        "x = f(\n    a\n    and b,\n    c,\n)\n",
        "pair = (a_rather_long_element_name,)\n",
    ],
)
def test_formatting_is_idempotent(source: str) -> None:
    config = WrapConfig(max_width=30)
    once = format_source(source, config)
    assert format_source(once, config) == once
    ast.parse(once)


def test_nested_expansion_keeps_valid_order_preserving_output() -> None:
    source = "x = f(aaaa, bbbb, g(cccc, dddd, eeee), ffff)\n"
    out = format_source(source, WrapConfig(max_width=30))
    assert out.startswith("x = f(\n")
    assert out.endswith("\n)\n")
    assert ast.dump(ast.parse(out)) == ast.dump(ast.parse(source))
    assert out.index("aaaa") < out.index("bbbb") < out.index("cccc") < out.index("ffff")


def test_items_spread_over_lines_collapse_when_they_fit() -> None:
    source = "x = f(\n    a\n    and b,\n    c,\n)\n"
    assert format_source(source, WrapConfig(max_width=30)) == "x = f(a and b, c)\n"


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("x = (1,)\n", "x = (1,)\n"),
        ("x = (\n    value,\n)\n", "x = (value,)\n"),
        ("x = (*a,)\n", "x = (*a,)\n"),
        ("for v in (\n    a,\n):\n    pass\n", "for v in (a,):\n    pass\n"),
    ],
)
def test_one_element_tuples_keep_their_comma(source: str, expected: str) -> None:
    out = format_source(source)
    assert out == expected
    assert ast.dump(ast.parse(out)) == ast.dump(ast.parse(source))


def test_bare_generator_argument_is_left_alone() -> None:
    source = "total = sum(item.size for item in collection_of_items if item.enabled)\n"
    assert format_source(source, WrapConfig(max_width=40)) == source


@pytest.mark.parametrize(
    "source",
    [
        "def f(a, b, /, c, *, d, **kwargs):\n    pass\n",
        "def g(first_argument, *args, key=None, **kwargs):\n    pass\n",
        "result = call(*positional_args, **keyword_args)\n",
        "pair = (a_rather_long_element_name,)\n",
        "rows = [(first,), (second,), (third,)]\n",
        "total = sum((item.size for item in items), start)\n",
        "total = sum(item.size for item in collection_of_items)\n",
    ],
)
def test_narrow_width_output_parses_to_the_same_tree(source: str) -> None:
    config = WrapConfig(max_width=30)
    out = format_source(source, config)
    assert ast.dump(ast.parse(out)) == ast.dump(ast.parse(source))
    assert format_source(out, config) == out


def test_expanded_signature_keeps_markers_in_place() -> None:
    source = "def f(a, b, /, c, *, d, **kwargs):\n    pass\n"
    expected = "def f(\n    a, b, /, c, *, d,\n    **kwargs,\n):\n    pass\n"
    assert format_source(source, WrapConfig(max_width=30)) == expected


def test_comment_bearing_lists_are_skipped() -> None:
    source = "x = f(\n    1,  # one\n    2,\n)\n"
    engine = WrapEngine(WrapConfig(), formatter=_identity)
    result = engine.wrap(source)
    assert not result.changed
    assert result.skipped == 1
    assert engine.format(source) == source


def test_string_contents_survive_collapse() -> None:
    source = 'x = f(\n    "a  b",\n    c,\n)\n'
    assert format_source(source) == 'x = f("a  b", c)\n'


def test_wrap_result_counts_decisions() -> None:
    engine = WrapEngine(WrapConfig(max_width=20), formatter=_identity)
    result = engine.wrap("a = f(1, 2)\nb = g(\n    3,\n)\nc = [alpha, beta, gamma]\n")
    assert result.changed
    assert result.discovered == 3
    assert result.collapsed == 1
    assert result.expanded == 1
    assert result.text == "a = f(1, 2)\nb = g(3)\nc = [\n    alpha, beta,\n    gamma,\n]\n"


def test_crlf_sources_keep_their_line_endings() -> None:
    engine = WrapEngine(WrapConfig(max_width=12), formatter=_identity)
    result = engine.wrap("x = [1, 2, 3]\r\ny = 1\r\n")
    assert result.text == "x = [\r\n    1, 2, 3,\r\n]\r\ny = 1\r\n"


def test_syntax_errors_propagate() -> None:
    with pytest.raises(SourceSyntaxError):
        format_source("def f(:\n    pass\n")
    with pytest.raises(SourceSyntaxError):
        WrapEngine(formatter=_identity).format("def f(:\n    pass\n")


class _FailsAfterFirstCall:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, source: str) -> str:
        self.calls += 1
        if self.calls > 1:
            raise SourceSyntaxError("formatter rejected the wrapped text")
        return source


def test_post_splice_format_failure_returns_the_spliced_text(caplog: pytest.LogCaptureFixture) -> None:
    formatter = _FailsAfterFirstCall()
    engine = WrapEngine(WrapConfig(max_width=12), formatter=formatter)
    with caplog.at_level(logging.WARNING, logger="listwrap.wrap.engine"):
        out = engine.format("x = [1, 2, 3]\n")
    assert out == "x = [\n    1, 2, 3,\n]\n"
    assert formatter.calls == 2
    assert "re-format after wrapping failed" in caplog.text


def test_formatter_is_not_rerun_without_changes() -> None:
    formatter = _FailsAfterFirstCall()
    assert WrapEngine(formatter=formatter).format("x = [1, 2, 3]\n") == "x = [1, 2, 3]\n"
    assert formatter.calls == 1
