"""
Tests for source and fragment parsing.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import libcst as cst
import pytest

from cst_refactor.core import InvalidReplacementError, SourceParseError
from cst_refactor.core.fragments import (
    is_statement,
    narrow_to_target,
    parse_fragment,
    parse_source,
)


def test_parse_source() -> None:
    assert parse_source("a = 1\n").code == "a = 1\n"
    with pytest.raises(SourceParseError):
        parse_source("a = = 1\n")


def test_is_statement() -> None:
    line = cst.parse_statement("a = 1")
    assert is_statement(line)
    assert is_statement(line.body[0])
    assert is_statement(cst.parse_statement("if a:\n    pass\n"))
    assert not is_statement(cst.Name("a"))
    assert not is_statement("a = 1")


class TestParseFragment:
    """Fragments parsed against the category of the node they replace."""

    def test_expression_target(self):
        node = parse_fragment("  x + 1  ", cst.Name("a"))
        assert isinstance(node, cst.BinaryOperation)

    def test_statement_target(self):
        target = cst.parse_statement("a = 1")
        node = parse_fragment("for i in x:\n    pass\n", target)
        assert isinstance(node, cst.For)

    def test_small_statement_target(self):
        target = cst.parse_statement("a = 1").body[0]
        node = parse_fragment("return 2", target)
        assert isinstance(node, cst.Return)

    def test_small_statement_target_rejects_compound(self):
        target = cst.parse_statement("a = 1").body[0]
        with pytest.raises(InvalidReplacementError):
            parse_fragment("if x:\n    pass\n", target)

    def test_module_target(self):
        node = parse_fragment("a = 1\nb = 2\n", cst.parse_module(""))
        assert isinstance(node, cst.Module)
        assert len(node.body) == 2

    def test_other_targets_rejected(self):
        with pytest.raises(InvalidReplacementError):
            parse_fragment("x", cst.Arg(value=cst.Name("a")))

    def test_syntax_error(self):
        with pytest.raises(SourceParseError):
            parse_fragment("x +", cst.Name("a"))


class TestNarrowToTarget:
    """Category narrowing of replacement nodes."""

    def test_small_statement_wrapped_for_statement_target(self):
        target = cst.parse_statement("a = 1")
        node = narrow_to_target(cst.Pass(), target)
        assert isinstance(node, cst.SimpleStatementLine)
        assert isinstance(node.body[0], cst.Pass)

    def test_expression_statement_unwrapped(self):
        node = narrow_to_target(cst.parse_statement("x"), cst.Name("a"))
        assert isinstance(node, cst.Name)
        assert node.value == "x"

    def test_expression_cannot_replace_statement(self):
        with pytest.raises(InvalidReplacementError):
            narrow_to_target(cst.Name("x"), cst.parse_statement("a = 1"))

    def test_non_categorised_target_passes_through(self):
        arg = cst.Arg(value=cst.Name("b"))
        assert narrow_to_target(arg, cst.Arg(value=cst.Name("a"))) is arg
