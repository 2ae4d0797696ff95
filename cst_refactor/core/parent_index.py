"""
Parent index - node to parent association for the session module.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

from typing import Dict, Iterator, Mapping, Optional

import libcst as cst
from libcst.metadata import MetadataWrapper, ParentNodeProvider


class _PreorderVisitor(cst.CSTVisitor):
    """Number nodes in the order LibCST visits them."""

    def __init__(self) -> None:
        super().__init__()
        self.order: Dict[cst.CSTNode, int] = {}

    def on_visit(self, node: cst.CSTNode) -> bool:
        self.order.setdefault(node, len(self.order))
        return True


class ParentIndex:
    """
    Identity-keyed parent links plus pre-order positions.

    Built from ``ParentNodeProvider`` over the whole module; never patched
    incrementally.
    """

    def __init__(
        self,
        parents: Mapping[cst.CSTNode, cst.CSTNode],
        order: Mapping[cst.CSTNode, int],
    ) -> None:
        self._parents = parents
        self._order = order

    @classmethod
    def build(cls, module: cst.Module) -> "ParentIndex":
        wrapper = MetadataWrapper(module, unsafe_skip_copy=True)
        parents = wrapper.resolve(ParentNodeProvider)
        visitor = _PreorderVisitor()
        wrapper.visit(visitor)
        return cls(parents, visitor.order)

    def parent_of(self, node: cst.CSTNode) -> Optional[cst.CSTNode]:
        return self._parents.get(node)

    def position(self, node: cst.CSTNode) -> Optional[int]:
        """Pre-order rank of `node`, or None when it is not in the tree."""
        return self._order.get(node)

    def ancestors(self, node: cst.CSTNode) -> Iterator[cst.CSTNode]:
        parent = self._parents.get(node)
        while parent is not None:
            yield parent
            parent = self._parents.get(parent)

    def __contains__(self, node: object) -> bool:
        return node in self._order

    def __len__(self) -> int:
        return len(self._order)
