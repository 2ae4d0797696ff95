"""
Pytest fixtures for refactoring session tests.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import logging

import pytest

from cst_refactor import RefactorSession


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by configure_logging() between tests."""
    yield
    logger = logging.getLogger("cst_refactor")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def manual_session():
    """Factory for sessions that only apply mutations on commit()."""

    def _make(source: str) -> RefactorSession:
        return RefactorSession(source, {"auto_cleanup": False})

    return _make


@pytest.fixture
def source_file(tmp_path):
    """Write a small module to disk for CLI tests."""
    path = tmp_path / "sample.py"
    path.write_text(
        "import os, sys\n"
        "\n"
        "count = 1\n"
        "total = count + 1\n"
        "\n"
        "def show(value):\n"
        "    print(value, count)\n",
        encoding="utf-8",
    )
    return path
