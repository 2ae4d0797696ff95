"""
Pending mutation set and the single-pass merge transformer.

Replacements, insertions, and deletions are keyed by node identity and
applied together by one LibCST transform over the managed roots.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional, Set, Union

import libcst as cst

from .parent_index import ParentIndex

logger = logging.getLogger(__name__)


class Placement(str, Enum):
    """Where an inserted statement goes relative to its anchor."""

    BEFORE = "before"
    AFTER = "after"


@dataclass(frozen=True)
class Insertion:
    """A statement queued next to an anchor statement."""

    placement: Placement
    statement: cst.CSTNode


class ActionKind(str, Enum):
    """Tag of the action resolved for one visited node."""

    NO_ACTION = "no_action"
    REPLACE = "replace"
    DELETE = "delete"
    INSERT_AROUND = "insert_around"


@dataclass(frozen=True)
class MergeAction:
    """
    Resolved action for one node.

    `replacement` is set for REPLACE; `insertion` is set for INSERT_AROUND and
    may also accompany REPLACE or DELETE when the anchor carries both.
    """

    kind: ActionKind
    replacement: Optional[cst.CSTNode] = None
    insertion: Optional[Insertion] = None


NO_ACTION = MergeAction(ActionKind.NO_ACTION)


class PendingMutations:
    """Identity-keyed replacement, insertion, and deletion queues."""

    def __init__(self) -> None:
        self.replacements: Dict[cst.CSTNode, cst.CSTNode] = {}
        self.insertions: Dict[cst.CSTNode, Insertion] = {}
        self.deletions: Set[cst.CSTNode] = set()

    def replace(self, node: cst.CSTNode, replacement: cst.CSTNode) -> None:
        self.replacements[node] = replacement

    def delete(self, node: cst.CSTNode) -> None:
        self.deletions.add(node)

    def insert(self, node: cst.CSTNode, insertion: Insertion) -> None:
        self.insertions[node] = insertion

    def action_for(self, node: cst.CSTNode) -> MergeAction:
        """Resolve the queued intents for `node`; deletion beats replacement."""
        insertion = self.insertions.get(node)
        if node in self.deletions:
            return MergeAction(ActionKind.DELETE, insertion=insertion)
        replacement = self.replacements.get(node)
        if replacement is not None:
            return MergeAction(ActionKind.REPLACE, replacement=replacement, insertion=insertion)
        if insertion is not None:
            return MergeAction(ActionKind.INSERT_AROUND, insertion=insertion)
        return NO_ACTION

    def rekey(self, lineage: Mapping[cst.CSTNode, cst.CSTNode]) -> None:
        """Move every pending entry onto the node that replaced its key."""
        self.replacements = {lineage.get(k, k): v for k, v in self.replacements.items()}
        self.insertions = {lineage.get(k, k): v for k, v in self.insertions.items()}
        self.deletions = {lineage.get(k, k) for k in self.deletions}

    def clear(self) -> None:
        self.replacements.clear()
        self.insertions.clear()
        self.deletions.clear()

    def __len__(self) -> int:
        return len(self.replacements) + len(self.insertions) + len(self.deletions)

    def __bool__(self) -> bool:
        return len(self) > 0


_DECLARATOR_FIELDS = {
    cst.Assign: "targets",
    cst.Import: "names",
    cst.ImportFrom: "names",
}
_DECLARATORS = (cst.AssignTarget, cst.ImportAlias)

LeaveResult = Union[cst.CSTNode, cst.RemovalSentinel, cst.FlattenSentinel]


class MergeTransformer(cst.CSTTransformer):
    """
    Apply every pending mutation in one post-order pass.

    Children are resolved before their parent, so a declarator container sees
    which of its declarators were deleted before deciding its own fate.
    """

    def __init__(self, pending: PendingMutations, parent_index: ParentIndex) -> None:
        super().__init__()
        self.pending = pending
        self.parent_index = parent_index
        self.applied = 0
        self.skipped_insertions = 0
        # original node -> the node standing in its place in the new tree
        self.lineage: Dict[cst.CSTNode, cst.CSTNode] = {}

    def on_leave(
        self, original_node: cst.CSTNode, updated_node: cst.CSTNode
    ) -> LeaveResult:
        if isinstance(original_node, _DECLARATORS) and original_node in self.pending.deletions:
            # Left in place; the enclosing container drops it.
            return updated_node

        result: Optional[cst.CSTNode] = updated_node
        if type(original_node) in _DECLARATOR_FIELDS:
            result = self._drop_deleted_declarators(original_node, updated_node)
            if result is None:
                logger.debug(f"Removing {type(original_node).__name__} with no declarators left")

        if isinstance(result, cst.SimpleStatementLine) and not result.body:
            result = None
        elif isinstance(result, cst.SimpleStatementSuite) and not result.body:
            result = result.with_changes(body=[cst.Pass()])

        action = self.pending.action_for(original_node)
        if action.kind is ActionKind.DELETE:
            self.applied += 1
            result = None
        elif action.kind is ActionKind.REPLACE:
            self.applied += 1
            result = action.replacement

        if result is not None:
            self.lineage[original_node] = result

        if action.insertion is not None:
            spliced = self._splice(original_node, result, action.insertion)
            if spliced is not None:
                return spliced

        if result is None:
            return cst.RemovalSentinel.REMOVE
        return result

    def _drop_deleted_declarators(
        self, original_node: cst.CSTNode, updated_node: cst.CSTNode
    ) -> Optional[cst.CSTNode]:
        field_name = _DECLARATOR_FIELDS[type(original_node)]
        original_items = getattr(original_node, field_name)
        updated_items = getattr(updated_node, field_name)
        if isinstance(original_items, cst.ImportStar):
            return updated_node
        # Declarators are never removed individually, so positions line up.
        pairs = [
            (old, new)
            for old, new in zip(original_items, updated_items)
            if old not in self.pending.deletions
        ]
        dropped = len(original_items) - len(pairs)
        if not dropped:
            return updated_node
        self.applied += dropped
        if not pairs:
            return None
        kept = [new for _, new in pairs]
        if field_name == "names":
            # Import statements reject a trailing comma after the last alias.
            kept[-1] = kept[-1].with_changes(comma=cst.MaybeSentinel.DEFAULT)
            self.lineage[pairs[-1][0]] = kept[-1]
        return updated_node.with_changes(**{field_name: kept})

    def _splice(
        self,
        anchor: cst.CSTNode,
        result: Optional[cst.CSTNode],
        insertion: Insertion,
    ) -> Optional[LeaveResult]:
        parent = self.parent_index.parent_of(anchor)
        if not _is_statement_list_for(parent, anchor):
            self.skipped_insertions += 1
            logger.warning(
                f"Skipping insertion next to {type(anchor).__name__}: parent "
                f"{type(parent).__name__ if parent is not None else None} is not a statement list"
            )
            return None
        self.applied += 1
        if result is None:
            return cst.FlattenSentinel([insertion.statement])
        if insertion.placement is Placement.AFTER:
            return cst.FlattenSentinel([result, insertion.statement])
        return cst.FlattenSentinel([insertion.statement, result])


def _is_statement_list_for(parent: Optional[cst.CSTNode], anchor: cst.CSTNode) -> bool:
    if isinstance(anchor, cst.BaseSmallStatement):
        return isinstance(parent, (cst.SimpleStatementLine, cst.SimpleStatementSuite))
    if isinstance(anchor, cst.BaseStatement):
        return isinstance(parent, (cst.Module, cst.IndentedBlock))
    return False
