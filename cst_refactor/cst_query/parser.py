"""
CSTQuery selector parser (Lark).

Supported features:
- Steps: `TYPE` or `*`
- Combinators: descendant (space) and direct child (`>`)
- Selector lists: `a, b` (union of both)
- Predicates: [attr=value], [attr!=value], [attr~=value], [attr^=value], [attr$=value]
- Pseudos: :first, :last, :nth(N)

Notes:
- Values can be quoted with single or double quotes; unquoted barewords are allowed.
- Whitespace is insignificant except as descendant combinator.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from lark import Lark, Token, Transformer, UnexpectedInput
from lark.exceptions import VisitError

from .ast import (
    Combinator,
    Predicate,
    PredicateOp,
    Pseudo,
    PseudoKind,
    Query,
    SelectorStep,
)


class QueryParseError(ValueError):
    """Raised when a selector cannot be parsed."""


_GRAMMAR = r"""
?start: selector_list

selector_list: selector ("," selector)*

selector: step ((CHILD step) | step)*
CHILD: ">"

step: node_type predicate* pseudo*
    | predicate+ pseudo*
    | pseudo+
node_type: STAR | NAME
STAR: "*"

predicate: "[" NAME OP value "]"
OP: "!=" | "~=" | "^=" | "$=" | "="
?value: STRING | BAREWORD

pseudo: ":" NAME pseudo_args?
pseudo_args: "(" INT ")"

NAME: /[a-zA-Z_][a-zA-Z0-9_]*/
BAREWORD: /[^\]\s\)'"]+/
INT: /[0-9]+/
STRING: /"(\\.|[^"\\])*"/ | /'(\\.|[^'\\])*'/

%import common.WS_INLINE -> WS
%ignore WS
"""


_parser = Lark(_GRAMMAR, parser="lalr", start="start")


@dataclass(frozen=True)
class _ParsedPseudo:
    name: str
    index: Optional[int]


class _ToAst(Transformer):
    def NAME(self, t: Token) -> str:  # noqa: N802
        return str(t)

    def INT(self, t: Token) -> int:  # noqa: N802
        return int(str(t))

    def STAR(self, _t: Token) -> str:  # noqa: N802
        return "*"

    def BAREWORD(self, t: Token) -> str:  # noqa: N802
        return str(t)

    def STRING(self, t: Token) -> str:  # noqa: N802
        raw = str(t)
        if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"'):
            return bytes(raw[1:-1], "utf-8").decode("unicode_escape")
        return raw

    def OP(self, t: Token) -> str:  # noqa: N802
        return str(t)

    def predicate(self, items: list[Any]) -> Predicate:
        return Predicate(attr=str(items[0]), op=PredicateOp(str(items[1])), value=str(items[2]))

    def pseudo_args(self, items: list[Any]) -> int:
        return int(items[0])

    def pseudo(self, items: list[Any]) -> _ParsedPseudo:
        idx: Optional[int] = int(items[1]) if len(items) > 1 else None
        return _ParsedPseudo(name=str(items[0]), index=idx)

    def node_type(self, items: list[Any]) -> str:
        return str(items[0])

    def step(self, items: list[Any]) -> SelectorStep:
        node_type: str = "*"
        predicates: list[Predicate] = []
        pseudos: list[Pseudo] = []

        for it in items:
            if isinstance(it, str):
                node_type = it
            elif isinstance(it, Predicate):
                predicates.append(it)
            elif isinstance(it, _ParsedPseudo):
                pseudos.append(_pseudo_from_parsed(it))
            else:
                raise QueryParseError(f"Unexpected step item: {it!r}")

        return SelectorStep(
            node_type=node_type,
            predicates=tuple(predicates),
            pseudos=tuple(pseudos),
        )

    def selector(self, items: list[Any]) -> Query:
        if not items or not isinstance(items[0], SelectorStep):
            raise QueryParseError("Invalid selector start")

        rest: list[tuple[Combinator, SelectorStep]] = []
        i = 1
        while i < len(items):
            it = items[i]
            if isinstance(it, Token) and it.type == "CHILD":
                step = items[i + 1]
                if not isinstance(step, SelectorStep):
                    raise QueryParseError("Invalid selector sequence")
                rest.append((Combinator.CHILD, step))
                i += 2
                continue
            if isinstance(it, SelectorStep):
                rest.append((Combinator.DESCENDANT, it))
                i += 1
                continue
            raise QueryParseError("Invalid selector sequence")

        return Query(first=items[0], rest=tuple(rest))

    def selector_list(self, items: list[Any]) -> tuple[Query, ...]:
        return tuple(items)


def _pseudo_from_parsed(p: _ParsedPseudo) -> Pseudo:
    name = p.name.lower()
    if name == PseudoKind.FIRST.value:
        if p.index is not None:
            raise QueryParseError(":first does not accept arguments")
        return Pseudo(kind=PseudoKind.FIRST)
    if name == PseudoKind.LAST.value:
        if p.index is not None:
            raise QueryParseError(":last does not accept arguments")
        return Pseudo(kind=PseudoKind.LAST)
    if name == PseudoKind.NTH.value:
        if p.index is None:
            raise QueryParseError(":nth requires an integer argument, e.g. :nth(0)")
        return Pseudo(kind=PseudoKind.NTH, index=p.index)
    raise QueryParseError(f"Unsupported pseudo: {p.name}")


def parse_selector_list(selector: str) -> tuple[Query, ...]:
    """
    Parse a comma-separated selector list.

    Raises:
        QueryParseError
    """
    if not selector or not selector.strip():
        raise QueryParseError("Empty selector")
    try:
        tree = _parser.parse(selector)
        return _ToAst().transform(tree)
    except UnexpectedInput as e:
        raise QueryParseError(f"Invalid selector: {e}") from e
    except VisitError as e:
        if isinstance(e.orig_exc, QueryParseError):
            raise e.orig_exc from e
        raise


def parse_selector(selector: str) -> Query:
    """
    Parse a single selector into a CSTQuery AST.

    Raises:
        QueryParseError
    """
    queries = parse_selector_list(selector)
    if len(queries) != 1:
        raise QueryParseError(
            f"Expected one selector, got {len(queries)}; use parse_selector_list()"
        )
    return queries[0]
