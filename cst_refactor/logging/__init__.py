"""
Unified logging package: format with importance (0-10) for project log output.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

from cst_refactor.logging.unified_logging import (
    LEVEL_TO_IMPORTANCE,
    UNIFIED_DATE_FMT,
    UNIFIED_FORMAT_STR,
    UnifiedFormatter,
    configure_logging,
    importance_from_level,
)

__all__ = [
    "LEVEL_TO_IMPORTANCE",
    "UNIFIED_DATE_FMT",
    "UNIFIED_FORMAT_STR",
    "UnifiedFormatter",
    "configure_logging",
    "importance_from_level",
]
