"""
Scope resolver - variable table and derived lookups over LibCST scope analysis.

The table is built once per tree generation from ``ScopeProvider`` and is
discarded by the session whenever node identities change (commit, rename).

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

import libcst as cst
from libcst.metadata import (
    Assignment,
    BuiltinScope,
    ClassScope,
    ComprehensionScope,
    FunctionScope,
    GlobalScope,
    ImportAssignment,
    MetadataWrapper,
    ScopeProvider,
)

from .exceptions import AmbiguousVariableError, VariableResolutionError
from .parent_index import ParentIndex

logger = logging.getLogger(__name__)


class ScopeKind(str, Enum):
    """Kind of lexical region."""

    GLOBAL = "global"
    CLASS = "class"
    FUNCTION = "function"
    COMPREHENSION = "comprehension"
    ANNOTATION = "annotation"


@dataclass(eq=False)
class Variable:
    """A resolved binding with its declaration and reference sites."""

    name: str
    declarations: List[cst.CSTNode] = field(default_factory=list)
    references: List[cst.CSTNode] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"Variable(name={self.name!r}, declarations={len(self.declarations)}, "
            f"references={len(self.references)})"
        )


@dataclass(eq=False)
class Scope:
    """A lexical region owning zero or more variables."""

    kind: ScopeKind
    node: cst.CSTNode
    name: Optional[str] = None
    parent: Optional["Scope"] = None
    children: List["Scope"] = field(default_factory=list)
    variables: Dict[str, Variable] = field(default_factory=dict)

    @property
    def variable_list(self) -> List[Variable]:
        return list(self.variables.values())

    def __repr__(self) -> str:
        return f"Scope(kind={self.kind.value}, name={self.name!r}, variables={list(self.variables)})"


IdentifierLike = Union[cst.CSTNode, Sequence[cst.CSTNode]]
VariableLike = Union[Variable, Sequence[Variable], IdentifierLike]


class ScopeTable:
    """
    Variable table for one tree generation.

    Holds the scope tree plus three identity-keyed lookups:
    identifier node -> candidate variables, variable -> home scope,
    scope-owning node -> the scope it introduces.
    """

    def __init__(self, root: Scope) -> None:
        self.root = root
        self.variables: List[Variable] = []
        self.identifiers: Dict[cst.CSTNode, List[Variable]] = {}
        self.variable_scopes: Dict[Variable, Scope] = {}
        self.owner_scopes: Dict[cst.CSTNode, Scope] = {}

    @classmethod
    def build(cls, module: cst.Module, parent_index: ParentIndex) -> "ScopeTable":
        """
        Run scope analysis over `module` and index the result.

        Args:
            module: Session root (must be the tree the parent index covers)
            parent_index: Index used to order sites by document position

        Returns:
            Populated ScopeTable
        """
        wrapper = MetadataWrapper(module, unsafe_skip_copy=True)
        provided = wrapper.resolve(ScopeProvider)

        raw_scopes = {s: None for s in provided.values() if s is not None}
        for raw in list(raw_scopes):
            parent = raw.parent
            while parent is not None and not isinstance(parent, BuiltinScope):
                raw_scopes.setdefault(parent, None)
                if parent is parent.parent:
                    break
                parent = parent.parent

        def owner(raw_scope) -> cst.CSTNode:
            return module if isinstance(raw_scope, GlobalScope) else raw_scope.node

        def rank(node: cst.CSTNode) -> int:
            pos = parent_index.position(node)
            return pos if pos is not None else -1

        ordered = sorted(raw_scopes, key=lambda s: rank(owner(s)))
        wrapped: Dict[object, Scope] = {}
        for raw in ordered:
            wrapped[raw] = Scope(
                kind=_scope_kind(raw),
                node=owner(raw),
                name=getattr(raw, "name", None),
            )

        root: Optional[Scope] = None
        for raw in ordered:
            scope = wrapped[raw]
            parent = wrapped.get(raw.parent)
            if parent is not None and parent is not scope:
                scope.parent = parent
                parent.children.append(scope)
            elif isinstance(raw, GlobalScope):
                root = scope
            _collect_variables(scope, raw, rank)

        if root is None:
            root = Scope(kind=ScopeKind.GLOBAL, node=module)

        table = cls(root)
        table._index(root)
        logger.debug(
            f"Built scope table: {len(table.owner_scopes)} scopes, "
            f"{len(table.variables)} variables"
        )
        return table

    def _index(self, scope: Scope) -> None:
        self.owner_scopes[scope.node] = scope
        for variable in scope.variables.values():
            self.variables.append(variable)
            self.variable_scopes[variable] = scope
            for site in variable.declarations + variable.references:
                bucket = self.identifiers.setdefault(site, [])
                if variable not in bucket:
                    bucket.append(variable)
        for child in scope.children:
            self._index(child)

    def resolve_variable(self, node: IdentifierLike) -> Variable:
        """
        Resolve an identifier or identifier-owning node to its single variable.

        Raises:
            VariableResolutionError: No variable found
            AmbiguousVariableError: More than one candidate variable
        """
        if isinstance(node, (list, tuple)):
            if not node:
                raise VariableResolutionError("Cannot resolve an empty selection")
            node = node[0]
        identifier = binding_identifier_of(node)
        candidates = self.identifiers.get(identifier) if identifier is not None else None
        if not candidates:
            raise VariableResolutionError(
                f"Could not find a variable for {type(node).__name__}. "
                "Pass a Name node or a node that owns one.",
                node_type=type(node).__name__,
            )
        if len(candidates) > 1:
            names = ", ".join(v.name for v in candidates)
            raise AmbiguousVariableError(
                f"{type(node).__name__} resolves to {len(candidates)} variables: {names}",
                candidates=candidates,
            )
        return candidates[0]

    def variables_named(self, name: str) -> List[Variable]:
        return [v for v in self.variables if v.name == name]

    def scope_of(self, target: VariableLike) -> Optional[Scope]:
        """Home scope of a variable; nodes are resolved to their variable first."""
        if isinstance(target, (list, tuple)):
            if not target:
                return None
            target = target[0]
        if isinstance(target, cst.CSTNode):
            target = self.resolve_variable(target)
        return self.variable_scopes.get(target)

    def inner_scope_of(self, node: cst.CSTNode) -> Optional[Scope]:
        """Scope introduced by a function, lambda, class, or comprehension node."""
        return self.owner_scopes.get(node)


def binding_identifier_of(node: cst.CSTNode) -> Optional[cst.CSTNode]:
    """Map an identifier-owning node to the identifier node the table is keyed by."""
    if isinstance(node, (cst.Name, cst.Attribute)):
        return node
    if isinstance(node, cst.Assign):
        return node.targets[0].target if len(node.targets) == 1 else None
    if isinstance(node, (cst.AssignTarget, cst.AnnAssign, cst.AugAssign, cst.NamedExpr)):
        return node.target
    if isinstance(node, (cst.FunctionDef, cst.ClassDef, cst.Param)):
        return node.name
    if isinstance(node, cst.ImportAlias):
        return node.asname.name if node.asname is not None else node.name
    return None


def _scope_kind(raw_scope) -> ScopeKind:
    if isinstance(raw_scope, GlobalScope):
        return ScopeKind.GLOBAL
    if isinstance(raw_scope, ClassScope):
        return ScopeKind.CLASS
    if isinstance(raw_scope, ComprehensionScope):
        return ScopeKind.COMPREHENSION
    if isinstance(raw_scope, FunctionScope):
        return ScopeKind.FUNCTION
    return ScopeKind.ANNOTATION


def _declaration_site(assignment: Assignment) -> Optional[cst.CSTNode]:
    if isinstance(assignment, ImportAssignment):
        return assignment.as_name
    node = assignment.node
    if isinstance(node, (cst.FunctionDef, cst.ClassDef, cst.Param)):
        return node.name
    if isinstance(node, (cst.Name, cst.Attribute)):
        return node
    name = getattr(node, "name", None)
    return name if isinstance(name, cst.Name) else None


def _collect_variables(scope: Scope, raw_scope, rank) -> None:
    grouped: Dict[str, List[Assignment]] = {}
    for assignment in raw_scope.assignments:
        # Builtins live in BuiltinScope and carry no tree node.
        if isinstance(assignment, Assignment):
            grouped.setdefault(assignment.name, []).append(assignment)

    variables: List[Variable] = []
    for name, assignments in grouped.items():
        declarations = {}
        references = {}
        for assignment in assignments:
            site = _declaration_site(assignment)
            if site is not None:
                declarations[site] = None
            for access in assignment.references:
                references[access.node] = None
        variables.append(
            Variable(
                name=name,
                declarations=sorted(declarations, key=rank),
                references=sorted(references, key=rank),
            )
        )

    variables.sort(key=lambda v: min((rank(d) for d in v.declarations), default=-1))
    scope.variables = {v.name: v for v in variables}
