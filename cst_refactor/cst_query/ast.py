"""
Parsed selector model.

A selector list is a tuple of Query objects; each Query is a chain of
SelectorStep objects joined by combinators. Predicate operators and pseudos
carry their own evaluation so the executor only walks nodes.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


class Combinator(str, Enum):
    """Relation between two consecutive steps."""

    DESCENDANT = " "
    CHILD = ">"


class PredicateOp(str, Enum):
    """Attribute comparison operator."""

    EQ = "="
    NE = "!="
    CONTAINS = "~="
    PREFIX = "^="
    SUFFIX = "$="

    def test(self, left: str, right: str) -> bool:
        if self is PredicateOp.EQ:
            return left == right
        if self is PredicateOp.NE:
            return left != right
        if self is PredicateOp.CONTAINS:
            return right in left
        if self is PredicateOp.PREFIX:
            return left.startswith(right)
        return left.endswith(right)


@dataclass(frozen=True)
class Predicate:
    """[attr OP value], e.g. [value="a"] or [qualname^="A."]."""

    attr: str
    op: PredicateOp
    value: str

    def __str__(self) -> str:
        return f'[{self.attr}{self.op.value}"{self.value}"]'


class PseudoKind(str, Enum):
    FIRST = "first"
    LAST = "last"
    NTH = "nth"


@dataclass(frozen=True)
class Pseudo:
    """Positional filter applied to the whole match list of a step."""

    kind: PseudoKind
    index: Optional[int] = None

    def select(self, matched: Sequence[T]) -> list[T]:
        if self.kind is PseudoKind.FIRST:
            return list(matched[:1])
        if self.kind is PseudoKind.LAST:
            return list(matched[-1:])
        idx = self.index or 0
        return [matched[idx]] if 0 <= idx < len(matched) else []

    def __str__(self) -> str:
        return f":nth({self.index})" if self.kind is PseudoKind.NTH else f":{self.kind.value}"


@dataclass(frozen=True)
class SelectorStep:
    """
    One step of a selector.

    `node_type` is "*", a kind alias (module, class, function, method, stmt,
    smallstmt, import, expr, node) or a LibCST class name such as Name,
    Assign, or SimpleStatementLine.
    """

    node_type: str
    predicates: Tuple[Predicate, ...] = ()
    pseudos: Tuple[Pseudo, ...] = ()

    def __str__(self) -> str:
        head = "" if self.node_type == "*" and self.predicates else self.node_type
        return head + "".join(map(str, self.predicates)) + "".join(map(str, self.pseudos))


@dataclass(frozen=True)
class Query:
    """A chain of steps, e.g. FunctionDef[name="f"] > SimpleStatementLine Name."""

    first: SelectorStep
    rest: Tuple[Tuple[Combinator, SelectorStep], ...] = ()

    def __str__(self) -> str:
        out = str(self.first)
        for comb, step in self.rest:
            out += f" > {step}" if comb is Combinator.CHILD else f" {step}"
        return out
