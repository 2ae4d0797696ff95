"""
Exception hierarchy for refactoring sessions.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""


class RefactorError(Exception):
    """Base exception for refactoring session operations."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            code: Optional error code for programmatic handling
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.code = code or "REFACTOR_ERROR"
        self.details = details or {}


class SourceParseError(RefactorError):
    """Raised when source text or a code fragment cannot be parsed."""

    def __init__(self, message: str, source: str = None, details: dict = None):
        super().__init__(message, code="PARSE_ERROR", details=details)
        self.source = source


class InvalidSelectionError(RefactorError):
    """Raised when an operation targets a node it cannot work on."""

    def __init__(self, message: str, node_type: str = None, details: dict = None):
        super().__init__(message, code="INVALID_SELECTION", details=details)
        self.node_type = node_type


class InvalidReplacementError(RefactorError):
    """Raised when a replacer yields something that is not a usable node."""

    def __init__(self, message: str, value: object = None, details: dict = None):
        super().__init__(message, code="INVALID_REPLACEMENT", details=details)
        self.value = value


class VariableResolutionError(RefactorError):
    """Raised when a node does not resolve to any variable."""

    def __init__(self, message: str, node_type: str = None, details: dict = None):
        super().__init__(message, code="RESOLUTION_ERROR", details=details)
        self.node_type = node_type


class AmbiguousVariableError(VariableResolutionError):
    """Raised when a node resolves to more than one variable."""

    def __init__(self, message: str, candidates: list = None, details: dict = None):
        super().__init__(message, details=details)
        self.code = "AMBIGUOUS_VARIABLE"
        self.candidates = list(candidates or [])


class DirtyTreeError(RefactorError):
    """Raised when code is generated while mutations are still pending."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, code="DIRTY_TREE", details=details)


class AsyncReplacerError(RefactorError):
    """Raised when the synchronous replace path receives an awaitable."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, code="ASYNC_MISUSE", details=details)


class CommitError(RefactorError):
    """Raised when the merge pass cannot rebuild the tree."""

    def __init__(self, message: str, cause: Exception = None, details: dict = None):
        super().__init__(message, code="COMMIT_ERROR", details=details)
        self.cause = cause


class ConfigurationError(RefactorError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, config_key: str = None, details: dict = None):
        """
        Initialize configuration error.

        Args:
            message: Error message
            config_key: Optional configuration key that is invalid
            details: Optional additional details
        """
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)
        self.config_key = config_key
