"""
Parsing of source text and code fragments into nodes of a target category.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import libcst as cst

from .exceptions import InvalidReplacementError, SourceParseError


def parse_source(source: str) -> cst.Module:
    """
    Parse a whole Python module.

    Raises:
        SourceParseError: If the source is not valid Python
    """
    try:
        return cst.parse_module(source)
    except cst.ParserSyntaxError as e:
        raise SourceParseError(f"Could not parse passed source: {e}", source=source) from e


def is_statement(node: object) -> bool:
    """True for statement lines, compound statements, and small statements."""
    return isinstance(node, (cst.BaseStatement, cst.BaseSmallStatement))


def parse_fragment(text: str, target: cst.CSTNode) -> cst.CSTNode:
    """
    Parse `text` into a node that can stand where `target` stands.

    Statement targets get a statement, small-statement targets a single small
    statement, expression targets an expression, and a module target a module.

    Raises:
        SourceParseError: If `text` does not parse
        InvalidReplacementError: If `target` cannot be replaced with source text
    """
    try:
        if isinstance(target, cst.Module):
            return cst.parse_module(text)
        if is_statement(target):
            return narrow_to_target(cst.parse_statement(text), target)
        if isinstance(target, cst.BaseExpression):
            return cst.parse_expression(text.strip())
    except cst.ParserSyntaxError as e:
        raise SourceParseError(
            f"Could not parse fragment for {type(target).__name__}: {e}", source=text
        ) from e
    raise InvalidReplacementError(
        f"Cannot replace {type(target).__name__} with source text", value=text
    )


def narrow_to_target(node: cst.CSTNode, target: cst.CSTNode) -> cst.CSTNode:
    """
    Fit a replacement node to the syntactic category of `target`.

    A one-item simple statement line stands in for a small statement and the
    other way round; anything else of the wrong category is rejected.
    """
    if isinstance(target, cst.BaseSmallStatement):
        if isinstance(node, cst.BaseSmallStatement):
            return node
        if isinstance(node, cst.SimpleStatementLine) and len(node.body) == 1:
            return node.body[0]
        raise InvalidReplacementError(
            f"{type(node).__name__} cannot replace small statement "
            f"{type(target).__name__}",
            value=node,
        )
    if isinstance(target, cst.BaseStatement):
        if isinstance(node, cst.BaseStatement):
            return node
        if isinstance(node, cst.BaseSmallStatement):
            return cst.SimpleStatementLine(body=[node])
        raise InvalidReplacementError(
            f"{type(node).__name__} cannot replace statement {type(target).__name__}",
            value=node,
        )
    if isinstance(target, cst.BaseExpression):
        if isinstance(node, cst.BaseExpression):
            return node
        if (
            isinstance(node, cst.SimpleStatementLine)
            and len(node.body) == 1
            and isinstance(node.body[0], cst.Expr)
        ):
            return node.body[0].value
        raise InvalidReplacementError(
            f"{type(node).__name__} cannot replace expression {type(target).__name__}",
            value=node,
        )
    return node
