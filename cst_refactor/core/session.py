"""
Refactor session - selection, queued edits, and scope queries over a LibCST tree.

A session created from source text (or a ``cst.Module``) is the global
session and owns the shared state. Sessions derived from it by selection are
subsessions: they keep their own selection, which follows the tree across
commits and renames, and forward every mutation to the
shared state, so there is exactly one pending mutation set per tree.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from __future__ import annotations

import inspect
import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Type,
    TypeVar,
    Union,
)

import libcst as cst
from pydantic import ValidationError

from ..cst_query import query_nodes
from .config import RefactorConfig
from .exceptions import (
    AsyncReplacerError,
    ConfigurationError,
    DirtyTreeError,
    InvalidReplacementError,
    InvalidSelectionError,
    SourceParseError,
    VariableResolutionError,
)
from .fragments import is_statement, narrow_to_target, parse_fragment, parse_source
from .mutations import Placement
from .plugin import RefactorPlugin
from .scope import Scope, Variable
from .state import Selection, SessionState

logger = logging.getLogger(__name__)

ReplacementValue = Union[cst.CSTNode, str]
Replacer = Union[ReplacementValue, Callable[[cst.CSTNode], ReplacementValue]]
AsyncReplacer = Callable[[cst.CSTNode], Union[Awaitable[ReplacementValue], ReplacementValue]]
PluginT = TypeVar("PluginT", bound=RefactorPlugin)
SelectorOrNode = Union[str, Sequence[str], cst.CSTNode, Sequence[cst.CSTNode], "RefactorSession"]


class RefactorSession:
    """
    Select nodes, rename bindings, and queue structural edits against a tree.

    Example:
        >>> session = RefactorSession("a = 1\\nb = a + 1\\n")
        >>> _ = session.rename('Name[value="a"]', "x")
        >>> session.generate()
        'x = 1\\nb = x + 1\\n'
    """

    def __init__(
        self,
        source_or_node: Union[str, cst.CSTNode, Sequence[cst.CSTNode]],
        config: Union[RefactorConfig, Mapping[str, Any], None] = None,
        *,
        parent_session: Optional["RefactorSession"] = None,
    ) -> None:
        """
        Create a global session from source or a module, or a subsession.

        Args:
            source_or_node: Python source, a ``cst.Module``, or (for subsessions)
                the selected node(s)
            config: RefactorConfig or mapping of its fields
            parent_session: Session to derive a subsession from

        Raises:
            SourceParseError: Source text does not parse
            InvalidSelectionError: Input cannot seed a session
            ConfigurationError: `config` mapping does not validate
        """
        if parent_session is not None:
            if isinstance(source_or_node, str):
                raise InvalidSelectionError("Cannot initialize a subsession with new source")
            self._state = parent_session._state
            self.global_session: RefactorSession = parent_session.global_session
            self.config = parent_session.config if config is None else _as_config(config)
            if isinstance(source_or_node, cst.CSTNode):
                nodes = [source_or_node]
            else:
                nodes = [n for n in source_or_node if isinstance(n, cst.CSTNode)]
            self._state.require_live(nodes)
            self._selection: Optional[Selection] = self._state.track(nodes)
        else:
            if isinstance(source_or_node, str):
                module = parse_source(source_or_node)
            elif isinstance(source_or_node, cst.Module):
                module = source_or_node
            else:
                raise InvalidSelectionError(
                    "A global session needs Python source or a cst.Module, got "
                    f"{type(source_or_node).__name__}; scope analysis runs over a whole "
                    "module. Parse the enclosing module and select the node from it.",
                    node_type=type(source_or_node).__name__,
                )
            self._state = SessionState(module)
            self.global_session = self
            self.config = _as_config(config)
            self._selection = None
        self.auto_cleanup = self.config.auto_cleanup

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> List[cst.CSTNode]:
        """
        Nodes this session manages.

        The global session tracks the live root; a subsession's nodes are
        carried onto the new tree after each commit and rename, and drop out
        once deleted.
        """
        if self._selection is None:
            return list(self._state.roots)
        return list(self._selection.nodes)

    @property
    def root(self) -> cst.Module:
        return self._state.root

    @property
    def is_dirty(self) -> bool:
        return self._state.dirty

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[cst.CSTNode]:
        return iter(self.nodes)

    def first(self) -> Optional[cst.CSTNode]:
        nodes = self.nodes
        return nodes[0] if nodes else None

    def sub_session(self, selection: SelectorOrNode) -> "RefactorSession":
        """Derive a subsession from a selector, node(s), or another session."""
        if isinstance(selection, RefactorSession):
            nodes = selection.nodes
        else:
            nodes = self._find(selection)
        return RefactorSession(nodes, parent_session=self)

    __call__ = sub_session

    def use(self, plugin_cls: Type[PluginT]) -> PluginT:
        """
        Build `plugin_cls` with this session and register it.

        Returns:
            The registered plugin instance
        """
        plugin = plugin_cls(self)
        plugin.register()
        logger.debug(f"Registered plugin {plugin_cls.__name__}")
        return plugin

    def query(self, selector: Union[str, Sequence[str]]) -> List[cst.CSTNode]:
        return query_nodes(self.nodes, selector)

    find = query

    def find_one(self, selector: str) -> cst.CSTNode:
        nodes = self.query(selector)
        if len(nodes) != 1:
            raise InvalidSelectionError(
                f"find_one({selector!r}) found {len(nodes)} nodes. "
                "If this is intentional, use find()"
            )
        return nodes[0]

    def query_from(
        self, nodes: Union[cst.CSTNode, Sequence[cst.CSTNode]], selector: str
    ) -> List[cst.CSTNode]:
        roots = [nodes] if isinstance(nodes, cst.CSTNode) else list(nodes)
        return query_nodes(roots, selector)

    def find_matching_expression(self, sample_src: str) -> List[cst.BaseExpression]:
        """Expressions structurally equal to the parsed sample."""
        try:
            sample = cst.parse_expression(sample_src.strip())
        except cst.ParserSyntaxError as e:
            raise SourceParseError(f"Could not parse sample: {e}", source=sample_src) from e
        candidates = self.query(type(sample).__name__)
        return [c for c in candidates if c.deep_equals(sample)]

    def find_matching_statement(self, sample_src: str) -> List[cst.BaseStatement]:
        """Statements structurally equal to the parsed sample, ignoring leading lines."""
        try:
            sample = _strip_leading_lines(cst.parse_statement(sample_src))
        except cst.ParserSyntaxError as e:
            raise SourceParseError(f"Could not parse sample: {e}", source=sample_src) from e
        candidates = self.query(type(sample).__name__)
        return [c for c in candidates if _strip_leading_lines(c).deep_equals(sample)]

    def find_parents(self, selection: SelectorOrNode) -> List[cst.CSTNode]:
        index = self._state.parent_index
        parents = [index.parent_of(node) for node in self._find(selection)]
        return [p for p in parents if p is not None]

    def closest(self, origin: SelectorOrNode, selector: str) -> List[cst.CSTNode]:
        """
        For each origin, walk up the ancestors and return the matches found
        under the first ancestor whose subtree matches `selector`.
        """
        out: List[cst.CSTNode] = []
        for node in self._find(origin):
            for ancestor in self._state.parent_index.ancestors(node):
                matches = query_nodes([ancestor], selector)
                if matches:
                    out.extend(matches)
                    break
        return out

    # ------------------------------------------------------------------
    # Scope queries
    # ------------------------------------------------------------------

    def lookup_variable(self, node: Union[cst.CSTNode, Sequence[cst.CSTNode]]) -> Variable:
        return self._state.scope_table.resolve_variable(node)

    def lookup_variable_by_name(self, name: str) -> List[Variable]:
        return self._state.scope_table.variables_named(name)

    def lookup_scope(self, target: Any) -> Optional[Scope]:
        return self._state.scope_table.scope_of(target)

    def get_inner_scope(self, node: cst.CSTNode) -> Optional[Scope]:
        return self._state.scope_table.inner_scope_of(node)

    def find_references(self, node: cst.CSTNode) -> List[cst.CSTNode]:
        return list(self.lookup_variable(node).references)

    def find_declarations(self, node: cst.CSTNode) -> List[cst.CSTNode]:
        return list(self.lookup_variable(node).declarations)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def rename(self, selection: SelectorOrNode, new_name: str) -> "RefactorSession":
        """
        Rename the variables behind the selected identifiers, immediately.

        Selected nodes that do not resolve to a variable are skipped.
        """
        if not new_name:
            return self
        table = self._state.scope_table
        variables: dict[Variable, None] = {}
        for node in self._find(selection):
            try:
                variables.setdefault(table.resolve_variable(node), None)
            except VariableResolutionError as e:
                logger.debug(f"Skipping rename of {type(node).__name__}: {e}")
        self._state.rename(variables, new_name)
        return self

    def rename_variable(self, variable: Optional[Variable], new_name: str) -> "RefactorSession":
        if variable is None or not new_name:
            return self
        self._state.rename([variable], new_name)
        return self

    def delete(self, selection: Optional[SelectorOrNode] = None) -> "RefactorSession":
        for node in self._find(selection):
            self.queue_deletion(node)
        return self._conditional_cleanup()

    def replace(self, selection: SelectorOrNode, replacer: Replacer) -> int:
        """
        Queue a replacement for every selected node.

        `replacer` may be a node (cloned per target), source text (parsed to
        the target's category), or a function returning either.

        Returns:
            Number of nodes queued for replacement

        Raises:
            AsyncReplacerError: The replacer returned an awaitable
            InvalidReplacementError: The replacer produced an unusable value
        """
        queued = self._replace_nodes(self._find(selection), replacer)
        self._conditional_cleanup()
        return queued

    async def replace_async(self, selection: SelectorOrNode, replacer: AsyncReplacer) -> int:
        """
        Like replace(), with a replacer that may return awaitables.

        Nodes are processed one at a time, in selection order.
        """
        if not callable(replacer) or isinstance(replacer, cst.CSTNode):
            raise InvalidReplacementError(
                "Invalid replacer type for replace_async(). Pass a function or use replace() instead.",
                value=replacer,
            )
        queued = 0
        for node in self._find(selection):
            value = replacer(node)
            if inspect.isawaitable(value):
                value = await value
            replacement = _coerce_replacement(node, value)
            if replacement is node:
                continue
            self.queue_replacement(node, replacement)
            queued += 1
        self._conditional_cleanup()
        return queued

    def replace_recursive(self, selection: SelectorOrNode, replacer: Replacer) -> "RefactorSession":
        """
        Replace and commit until a pass queues or applies nothing.

        Explicit nodes are tracked like a subsession so each pass sees their
        replacements.
        """
        if not _follows_tree(selection):
            selection = self.sub_session(selection)
        while True:
            queued = self._replace_nodes(self._find(selection), replacer)
            applied = self._state.commit()
            if not queued or not applied:
                return self

    def prepend(self, selection: SelectorOrNode, replacer: Replacer) -> "RefactorSession":
        return self._insert(selection, replacer, Placement.BEFORE)

    def append(self, selection: SelectorOrNode, replacer: Replacer) -> "RefactorSession":
        return self._insert(selection, replacer, Placement.AFTER)

    def queue_replacement(self, node: cst.CSTNode, replacement: cst.CSTNode) -> None:
        self._state.queue_replacement(node, replacement)

    def queue_deletion(self, node: cst.CSTNode) -> None:
        self._state.queue_deletion(node)

    def queue_insertion(
        self, node: cst.CSTNode, placement: Union[Placement, str], statement: cst.CSTNode
    ) -> None:
        self._state.queue_insertion(node, Placement(placement), statement)

    def commit(self) -> "RefactorSession":
        self._state.commit()
        return self

    cleanup = commit

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def validate(self) -> bool:
        """Type-check the managed nodes and re-parse the generated module."""
        try:
            for node in self.nodes:
                node.validate_types_deep()
            cst.parse_module(self._state.root.code)
        except (TypeError, cst.ParserSyntaxError) as e:
            logger.warning(f"Tree failed validation: {e}")
            return False
        return True

    def generate(self, node: Optional[cst.CSTNode] = None) -> str:
        """
        Render code for `node` (default: the first managed node).

        Raises:
            DirtyTreeError: Mutations are pending; call commit() first
        """
        if self._state.dirty:
            raise DirtyTreeError(
                "generate() called with pending mutations. This is almost always a bug. "
                "Call commit() before printing."
            )
        target = node if node is not None else self.first()
        if target is None:
            return ""
        if isinstance(target, cst.Module):
            return target.code
        return self._state.root.code_for_node(target)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find(self, selection: Optional[SelectorOrNode]) -> List[cst.CSTNode]:
        """
        Resolve a selector, node(s), or session to nodes of the current tree.

        Raises:
            InvalidSelectionError: A passed node was left behind by a commit
                or rename
        """
        if selection is None:
            return self.nodes
        if isinstance(selection, RefactorSession):
            return selection.nodes
        if isinstance(selection, str):
            return query_nodes(self.nodes, selection)
        if isinstance(selection, cst.CSTNode):
            nodes = [selection]
        else:
            items = list(selection)
            if items and all(isinstance(i, str) for i in items):
                return query_nodes(self.nodes, items)
            nodes = [i for i in items if isinstance(i, cst.CSTNode)]
        self._state.require_live(nodes)
        return nodes

    def _conditional_cleanup(self) -> "RefactorSession":
        if self.auto_cleanup:
            self.commit()
        return self

    def _replace_nodes(self, nodes: Sequence[cst.CSTNode], replacer: Replacer) -> int:
        queued = 0
        for node in nodes:
            replacement = _resolve_replacement(node, replacer)
            if replacement is node:
                continue
            self.queue_replacement(node, replacement)
            queued += 1
        return queued

    def _insert(
        self, selection: SelectorOrNode, replacer: Replacer, placement: Placement
    ) -> "RefactorSession":
        anchors = self._find(selection)
        for node in anchors:
            if not is_statement(node):
                raise InvalidSelectionError(
                    f"Can only insert before or after statements, not {type(node).__name__}",
                    node_type=type(node).__name__,
                )
        for node in anchors:
            statement = _resolve_replacement(node, replacer)
            if statement is node:
                statement = node.deep_clone()
            self.queue_insertion(node, placement, statement)
        return self._conditional_cleanup()


def _as_config(config: Union[RefactorConfig, Mapping[str, Any], None]) -> RefactorConfig:
    if config is None:
        return RefactorConfig()
    if isinstance(config, RefactorConfig):
        return config
    try:
        return RefactorConfig(**config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid session config: {e}") from e


def _follows_tree(selection: Optional[SelectorOrNode]) -> bool:
    """True when `selection` re-resolves against the live tree on every use."""
    if selection is None or isinstance(selection, (str, RefactorSession)):
        return True
    if isinstance(selection, cst.CSTNode):
        return False
    items = list(selection)
    return bool(items) and all(isinstance(i, str) for i in items)


def _strip_leading_lines(node: cst.CSTNode) -> cst.CSTNode:
    if hasattr(node, "leading_lines"):
        return node.with_changes(leading_lines=())
    return node


def _resolve_replacement(node: cst.CSTNode, replacer: Replacer) -> cst.CSTNode:
    if isinstance(replacer, cst.CSTNode):
        return narrow_to_target(replacer.deep_clone(), node)
    if isinstance(replacer, str):
        return parse_fragment(replacer, node)
    if callable(replacer):
        value = replacer(node)
        if inspect.isawaitable(value):
            if inspect.iscoroutine(value):
                value.close()
            raise AsyncReplacerError(
                "Awaitable returned from replacer function, use replace_async() instead."
            )
        return _coerce_replacement(node, value)
    raise InvalidReplacementError(
        f"Invalid replacer type: {type(replacer).__name__}", value=replacer
    )


def _coerce_replacement(node: cst.CSTNode, value: object) -> cst.CSTNode:
    if value is node:
        return node
    if isinstance(value, cst.CSTNode):
        return narrow_to_target(value, node)
    if isinstance(value, str):
        return parse_fragment(value, node)
    raise InvalidReplacementError(
        f"Invalid return type from replacement function: {value!r}", value=value
    )
