"""
CSTQuery executor over live LibCST nodes.

The executor walks the given roots, builds a lightweight parent-linked index,
and evaluates parsed selectors against it. Matches are the tree's own node
objects, so callers can key further work by node identity.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

import libcst as cst

from .ast import Combinator, Predicate, Query, SelectorStep
from .parser import parse_selector_list

logger = logging.getLogger(__name__)

Selector = Union[str, Sequence[str]]

_ALIASES = {
    "module",
    "class",
    "function",
    "method",
    "stmt",
    "smallstmt",
    "import",
    "expr",
    "node",
}


@dataclass(frozen=True)
class _NodeInfo:
    node: cst.CSTNode
    parent: Optional[cst.CSTNode]
    depth: int
    order: int
    kind: str
    name: Optional[str]
    qualname: Optional[str]

    @property
    def node_type(self) -> str:
        return self.node.__class__.__name__


def query_nodes(roots: Iterable[cst.CSTNode], selector: Selector) -> list[cst.CSTNode]:
    """
    Return every node under `roots` (roots included) matching `selector`.

    Args:
        roots: Subtrees to search
        selector: Selector string, comma-separated selector list, or a list of them

    Returns:
        Matched nodes in document order, without duplicates

    Raises:
        QueryParseError: If a selector is malformed
    """
    selectors = [selector] if isinstance(selector, str) else list(selector)
    queries = [q for s in selectors for q in parse_selector_list(s)]
    infos = _build_index(roots)

    matched: dict[cst.CSTNode, int] = {}
    for q in queries:
        for info in _eval_query(infos, q):
            matched.setdefault(info.node, info.order)
    logger.debug(
        f"Selector {', '.join(map(str, queries))!r} matched {len(matched)} of {len(infos)} nodes"
    )
    return sorted(matched, key=matched.__getitem__)


def _build_index(roots: Iterable[cst.CSTNode]) -> list[_NodeInfo]:
    """Build a traversal-ordered node list with parent pointers and basic attributes."""
    infos: list[_NodeInfo] = []
    seen: set[cst.CSTNode] = set()

    class_stack: list[str] = []
    func_stack: list[str] = []

    def visit(node: cst.CSTNode, parent: Optional[cst.CSTNode], depth: int) -> None:
        infos.append(
            _NodeInfo(
                node=node,
                parent=parent,
                depth=depth,
                order=len(infos),
                kind=_node_kind(node, class_stack=class_stack),
                name=_node_name(node),
                qualname=_node_qualname(node, class_stack=class_stack, func_stack=func_stack),
            )
        )

        entered_class = False
        entered_func = False
        if isinstance(node, cst.ClassDef):
            class_stack.append(node.name.value)
            entered_class = True
        elif isinstance(node, cst.FunctionDef):
            func_stack.append(node.name.value)
            entered_func = True

        for child in node.children:
            visit(child, node, depth + 1)

        if entered_func:
            func_stack.pop()
        if entered_class:
            class_stack.pop()

    for root in roots:
        if root in seen:
            continue
        seen.add(root)
        visit(root, None, 0)
    return infos


def _node_name(node: cst.CSTNode) -> Optional[str]:
    if isinstance(node, (cst.FunctionDef, cst.ClassDef, cst.Param)):
        return node.name.value
    if isinstance(node, cst.Name):
        return node.value
    return None


def _node_kind(node: cst.CSTNode, *, class_stack: list[str]) -> str:
    if isinstance(node, cst.Module):
        return "module"
    if isinstance(node, cst.ClassDef):
        return "class"
    if isinstance(node, cst.FunctionDef):
        return "method" if class_stack else "function"
    if isinstance(node, (cst.Import, cst.ImportFrom)):
        return "import"
    if isinstance(node, cst.BaseSmallStatement):
        return "smallstmt"
    if isinstance(node, cst.BaseStatement):
        return "stmt"
    if isinstance(node, cst.BaseExpression):
        return "expr"
    return "node"


def _node_qualname(
    node: cst.CSTNode, *, class_stack: list[str], func_stack: list[str]
) -> Optional[str]:
    if isinstance(node, cst.ClassDef):
        return ".".join(class_stack + [node.name.value]) if class_stack else node.name.value
    if isinstance(node, cst.FunctionDef):
        if class_stack:
            return ".".join(class_stack + [node.name.value])
        # For nested functions, include outer functions if present.
        return ".".join(func_stack + [node.name.value])
    return ".".join(class_stack + func_stack) if (class_stack or func_stack) else None


def _eval_query(nodes: list[_NodeInfo], q: Query) -> list[_NodeInfo]:
    parent_map: dict[cst.CSTNode, Optional[cst.CSTNode]] = {n.node: n.parent for n in nodes}
    current = _apply_step(nodes, q.first)
    for comb, step in q.rest:
        current = _apply_combinator(
            current, _apply_step(nodes, step), comb, parent_map=parent_map
        )
    return current


def _apply_combinator(
    prev: list[_NodeInfo],
    nxt: list[_NodeInfo],
    comb: Combinator,
    *,
    parent_map: dict[cst.CSTNode, Optional[cst.CSTNode]],
) -> list[_NodeInfo]:
    if not prev or not nxt:
        return []
    prev_nodes = {p.node for p in prev}

    if comb == Combinator.CHILD:
        return [n for n in nxt if n.parent in prev_nodes]

    # Descendant: any ancestor match.
    out: list[_NodeInfo] = []
    for n in nxt:
        p = n.parent
        while p is not None:
            if p in prev_nodes:
                out.append(n)
                break
            p = parent_map.get(p)
    return out


def _apply_step(nodes: list[_NodeInfo], step: SelectorStep) -> list[_NodeInfo]:
    matched = [n for n in nodes if _matches_step(n, step)]
    for pseudo in step.pseudos:
        matched = pseudo.select(matched)
    return matched


def _matches_step(node: _NodeInfo, step: SelectorStep) -> bool:
    if not _matches_node_type(node, step.node_type):
        return False
    return all(_matches_predicate(node, pred) for pred in step.predicates)


def _matches_node_type(node: _NodeInfo, node_type: str) -> bool:
    if not node_type or node_type == "*":
        return True
    t = node_type.strip()
    if t.lower() in _ALIASES:
        return node.kind == t.lower()
    # LibCST class name match
    return node.node_type.lower() == t.lower()


def _matches_predicate(node: _NodeInfo, pred: Predicate) -> bool:
    val = _get_attr(node, pred.attr)
    if val is None:
        return False
    return pred.op.test(val, pred.value)


def _get_attr(node: _NodeInfo, attr: str) -> Optional[str]:
    a = attr.lower()
    if a == "type":
        return node.node_type
    if a == "kind":
        return node.kind
    if a == "name":
        return node.name
    if a == "qualname":
        return node.qualname
    if a == "value":
        value = getattr(node.node, "value", None)
        return value if isinstance(value, str) else None
    return None
