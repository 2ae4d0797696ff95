"""
CSTQuery - jQuery/XPath-like selectors for Python code (LibCST).

Public API:
  - parse_selector(selector: str) -> Query
  - parse_selector_list(selector: str) -> tuple[Query, ...]
  - query_nodes(roots, selector) -> list[CSTNode]
  - QueryParseError

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from .ast import (
    Combinator,
    Predicate,
    PredicateOp,
    Pseudo,
    PseudoKind,
    Query,
    SelectorStep,
)
from .parser import QueryParseError, parse_selector, parse_selector_list
from .executor import query_nodes

__all__ = [
    "QueryParseError",
    "Combinator",
    "Predicate",
    "PredicateOp",
    "Pseudo",
    "PseudoKind",
    "Query",
    "SelectorStep",
    "parse_selector",
    "parse_selector_list",
    "query_nodes",
]
