"""
Shared session state: the single owner of the tree, its indices, and the
pending mutation set.

Every session built from the same tree holds a reference to one
SessionState; subsessions never copy any of it. Their selections are
registered here and carried onto the new tree after every commit and rename.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
import weakref
from typing import Dict, Iterable, List, Mapping, Optional

import libcst as cst

from .exceptions import CommitError, InvalidReplacementError, InvalidSelectionError
from .fragments import is_statement, narrow_to_target
from .mutations import Insertion, MergeTransformer, PendingMutations, Placement
from .parent_index import ParentIndex
from .scope import ScopeTable, Variable

logger = logging.getLogger(__name__)


class _RenameTransformer(cst.CSTTransformer):
    """Rewrite identifier leaves and record old -> new node identities."""

    def __init__(
        self,
        names: set[cst.CSTNode],
        aliases: set[cst.CSTNode],
        new_name: str,
    ) -> None:
        super().__init__()
        self.names = names
        self.aliases = aliases
        self.new_name = new_name
        self.lineage: Dict[cst.CSTNode, cst.CSTNode] = {}

    def on_leave(
        self, original_node: cst.CSTNode, updated_node: cst.CSTNode
    ) -> cst.CSTNode:
        if original_node in self.names:
            updated_node = updated_node.with_changes(value=self.new_name)
        elif original_node in self.aliases:
            # `import a` / `from m import a` keep the imported name.
            updated_node = updated_node.with_changes(
                asname=cst.AsName(name=cst.Name(self.new_name))
            )
        self.lineage[original_node] = updated_node
        return updated_node


class Selection:
    """Nodes managed by a subsession, moved onto each new tree generation."""

    def __init__(self, nodes: Iterable[cst.CSTNode]) -> None:
        self.nodes: List[cst.CSTNode] = list(nodes)

    def follow(self, lineage: Mapping[cst.CSTNode, cst.CSTNode], index: ParentIndex) -> None:
        """Swap every node for its successor; nodes that left the tree are dropped."""
        followed: Dict[cst.CSTNode, None] = {}
        for node in self.nodes:
            successor = lineage.get(node, node)
            if successor in index:
                followed.setdefault(successor, None)
        self.nodes = list(followed)

    def __repr__(self) -> str:
        return f"Selection({[type(n).__name__ for n in self.nodes]})"


class SessionState:
    """
    Tree, parent index, scope table cache, pending mutations, and the
    selections of live subsessions.

    The scope table is built lazily and dropped whenever node identities
    change; the parent index is rebuilt synchronously at the same points.
    """

    def __init__(self, module: cst.Module) -> None:
        self.roots: List[cst.Module] = [module]
        self.pending = PendingMutations()
        self.dirty = False
        self.parent_index = ParentIndex.build(module)
        self._scope_table: Optional[ScopeTable] = None
        self._selections: "weakref.WeakSet[Selection]" = weakref.WeakSet()

    @property
    def root(self) -> cst.Module:
        return self.roots[0]

    @property
    def scope_table(self) -> ScopeTable:
        if self._scope_table is None:
            self._scope_table = ScopeTable.build(self.root, self.parent_index)
        return self._scope_table

    def track(self, nodes: Iterable[cst.CSTNode]) -> Selection:
        """Register a subsession selection so it follows later rewrites."""
        selection = Selection(nodes)
        self._selections.add(selection)
        return selection

    def require_live(self, nodes: Iterable[cst.CSTNode]) -> None:
        """
        Raises:
            InvalidSelectionError: A node is not part of the current tree
        """
        for node in nodes:
            if node not in self.parent_index:
                raise InvalidSelectionError(
                    f"{type(node).__name__} is not part of the current tree; "
                    "nodes held across a commit or rename must be queried again",
                    node_type=type(node).__name__,
                )

    def queue_replacement(self, node: cst.CSTNode, replacement: cst.CSTNode) -> None:
        if not isinstance(replacement, cst.CSTNode):
            raise InvalidReplacementError(
                f"Replacement must be a CSTNode, got {type(replacement).__name__}",
                value=replacement,
            )
        self.require_live([node])
        self.dirty = True
        self.pending.replace(node, replacement)

    def queue_deletion(self, node: cst.CSTNode) -> None:
        if node is self.root:
            raise InvalidSelectionError("Cannot delete the session root", node_type="Module")
        self.require_live([node])
        self.dirty = True
        self.pending.delete(node)

    def queue_insertion(
        self, node: cst.CSTNode, placement: Placement, statement: cst.CSTNode
    ) -> None:
        if not is_statement(node):
            raise InvalidSelectionError(
                f"Can only insert before or after statements, not {type(node).__name__}",
                node_type=type(node).__name__,
            )
        if not is_statement(statement):
            raise InvalidReplacementError(
                f"Will not insert anything but a statement, got {type(statement).__name__}",
                value=statement,
            )
        self.require_live([node])
        # A sibling of a small statement must itself be a small statement.
        statement = narrow_to_target(statement, node)
        self.dirty = True
        self.pending.insert(node, Insertion(placement=Placement(placement), statement=statement))

    def commit(self) -> int:
        """
        Apply all pending mutations in one pass.

        Returns:
            Number of mutations applied (0 when the state was clean)

        Raises:
            CommitError: If the rewrite cannot build a valid module; the current
                tree and the pending set are left as they were
        """
        if not self.dirty:
            return 0
        transformer = MergeTransformer(self.pending, self.parent_index)
        try:
            new_root = self.root.visit(transformer)
        except (cst.CSTValidationError, AttributeError, TypeError, ValueError) as e:
            raise CommitError(f"Commit failed: {e}", cause=e) from e
        if not isinstance(new_root, cst.Module):
            raise CommitError(
                f"Commit would turn the module into {type(new_root).__name__}"
            )

        logger.debug(
            f"Committed {transformer.applied} mutations "
            f"({transformer.skipped_insertions} insertions skipped)"
        )
        self._replace_tree(new_root, transformer.lineage)
        self.pending.clear()
        self.dirty = False
        return transformer.applied

    def rename(self, variables: Iterable[Variable], new_name: str) -> int:
        """
        Rename every declaration and reference of `variables` right away.

        Pending mutations are carried over to the renamed nodes.

        Returns:
            Number of identifier sites rewritten
        """
        if not new_name:
            return 0
        names: set[cst.CSTNode] = set()
        aliases: set[cst.CSTNode] = set()
        for variable in variables:
            for site in variable.declarations:
                parent = self.parent_index.parent_of(site)
                if (
                    isinstance(parent, cst.ImportAlias)
                    and parent.asname is None
                    and parent.name is site
                ):
                    aliases.add(parent)
                elif isinstance(site, cst.Name):
                    names.add(site)
                else:
                    logger.debug(f"Not renaming dotted declaration of {variable.name!r}")
            names.update(r for r in variable.references if isinstance(r, cst.Name))
        if not names and not aliases:
            return 0

        transformer = _RenameTransformer(names, aliases, new_name)
        new_root = self.root.visit(transformer)
        self.pending.rekey(transformer.lineage)
        self._replace_tree(new_root, transformer.lineage)
        logger.debug(f"Renamed {len(names) + len(aliases)} sites to {new_name!r}")
        return len(names) + len(aliases)

    def _replace_tree(
        self, new_root: cst.Module, lineage: Mapping[cst.CSTNode, cst.CSTNode]
    ) -> None:
        self.roots = [new_root]
        self.parent_index = ParentIndex.build(new_root)
        self._scope_table = None
        for selection in list(self._selections):
            selection.follow(lineage, self.parent_index)
