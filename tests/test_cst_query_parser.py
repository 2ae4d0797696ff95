"""
Tests for CSTQuery selector parser.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import pytest

from cst_refactor.cst_query import QueryParseError, parse_selector, parse_selector_list
from cst_refactor.cst_query.ast import Combinator, PredicateOp, PseudoKind


def test_parse_simple_type() -> None:
    q = parse_selector("class")
    assert q.first.node_type == "class"
    assert q.rest == ()


def test_parse_predicates_and_pseudos() -> None:
    q = parse_selector('function[name="f"]:nth(0)')
    assert q.first.node_type == "function"
    assert q.first.predicates[0].attr == "name"
    assert q.first.predicates[0].op == PredicateOp.EQ
    assert q.first.predicates[0].value == "f"
    assert q.first.pseudos[0].kind == PseudoKind.NTH
    assert q.first.pseudos[0].index == 0


def test_parse_combinators_child_and_descendant() -> None:
    q = parse_selector('class[name="A"] > method[name="m"] stmt[type="Return"]')
    assert q.first.node_type == "class"
    assert q.rest[0][0] == Combinator.CHILD
    assert q.rest[0][1].node_type == "method"
    assert q.rest[1][0] == Combinator.DESCENDANT
    assert q.rest[1][1].node_type == "stmt"


def test_single_quoted_and_bareword_values() -> None:
    q = parse_selector("Name[value='a'] Name[value^=tmp]")
    assert q.first.predicates[0].value == "a"
    assert q.rest[0][1].predicates[0].op == PredicateOp.PREFIX
    assert q.rest[0][1].predicates[0].value == "tmp"


def test_selector_list_splits_on_comma() -> None:
    queries = parse_selector_list("FunctionDef, ClassDef:first")
    assert [q.first.node_type for q in queries] == ["FunctionDef", "ClassDef"]
    assert queries[1].first.pseudos[0].kind == PseudoKind.FIRST


def test_parse_selector_rejects_list() -> None:
    with pytest.raises(QueryParseError):
        parse_selector("FunctionDef, ClassDef")


def test_parse_unknown_pseudo_fails() -> None:
    with pytest.raises(QueryParseError):
        parse_selector("stmt:unknown")


def test_first_with_argument_fails() -> None:
    with pytest.raises(QueryParseError):
        parse_selector("stmt:first(1)")


@pytest.mark.parametrize("selector", ["", "   ", "[name=", "a >"])
def test_malformed_selector_fails(selector: str) -> None:
    with pytest.raises(QueryParseError):
        parse_selector_list(selector)


def test_query_renders_back_to_selector() -> None:
    q = parse_selector("FunctionDef[name='f'] > Name:first")
    assert str(q) == 'FunctionDef[name="f"] > Name:first'
    assert str(parse_selector("If SimpleStatementLine:nth(2)")) == "If SimpleStatementLine:nth(2)"


def test_predicate_operators_evaluate() -> None:
    assert PredicateOp.EQ.test("abc", "abc")
    assert PredicateOp.NE.test("abc", "abd")
    assert PredicateOp.CONTAINS.test("abc", "b")
    assert PredicateOp.PREFIX.test("abc", "ab")
    assert PredicateOp.SUFFIX.test("abc", "bc")
    assert not PredicateOp.SUFFIX.test("abc", "ab")


def test_pseudos_select_positions() -> None:
    items = ["a", "b", "c"]
    first, last, nth = parse_selector("*:first:last:nth(1)").first.pseudos
    assert first.select(items) == ["a"]
    assert last.select(items) == ["c"]
    assert nth.select(items) == ["b"]
    assert nth.select([]) == []
