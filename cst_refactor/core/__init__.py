"""
Core refactoring session components.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from .config import RefactorConfig, load_config
from .exceptions import (
    AmbiguousVariableError,
    AsyncReplacerError,
    CommitError,
    ConfigurationError,
    DirtyTreeError,
    InvalidReplacementError,
    InvalidSelectionError,
    RefactorError,
    SourceParseError,
    VariableResolutionError,
)
from .mutations import Insertion, PendingMutations, Placement
from .parent_index import ParentIndex
from .plugin import RefactorPlugin
from .scope import Scope, ScopeKind, ScopeTable, Variable
from .session import RefactorSession

__all__ = [
    "RefactorConfig",
    "load_config",
    "AmbiguousVariableError",
    "AsyncReplacerError",
    "CommitError",
    "ConfigurationError",
    "DirtyTreeError",
    "InvalidReplacementError",
    "InvalidSelectionError",
    "RefactorError",
    "SourceParseError",
    "VariableResolutionError",
    "Insertion",
    "PendingMutations",
    "Placement",
    "ParentIndex",
    "RefactorPlugin",
    "Scope",
    "ScopeKind",
    "ScopeTable",
    "Variable",
    "RefactorSession",
]
