"""
CST Refactor

Programmatic refactoring sessions over Python source: select nodes with
CSS-like selectors, rename bindings, queue replacements, insertions, and
deletions, then commit them in one consistent pass.

Can be used as a library or via the `cst-refactor` CLI.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

__version__ = "1.0.0"
__author__ = "Vasiliy Zdanovskiy"
__email__ = "vasilyvz@gmail.com"

from .core import (
    AmbiguousVariableError,
    AsyncReplacerError,
    CommitError,
    ConfigurationError,
    DirtyTreeError,
    InvalidReplacementError,
    InvalidSelectionError,
    Placement,
    RefactorConfig,
    RefactorError,
    RefactorPlugin,
    RefactorSession,
    Scope,
    ScopeKind,
    SourceParseError,
    Variable,
    VariableResolutionError,
    load_config,
)
from .core.fragments import parse_source as parse
from .cst_query import QueryParseError, query_nodes

__all__ = [
    "RefactorSession",
    "RefactorConfig",
    "RefactorPlugin",
    "load_config",
    "parse",
    "query_nodes",
    "Placement",
    "Scope",
    "ScopeKind",
    "Variable",
    # Errors
    "RefactorError",
    "SourceParseError",
    "InvalidSelectionError",
    "InvalidReplacementError",
    "VariableResolutionError",
    "AmbiguousVariableError",
    "DirtyTreeError",
    "AsyncReplacerError",
    "CommitError",
    "ConfigurationError",
    "QueryParseError",
]
