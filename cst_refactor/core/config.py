"""
Configuration for refactoring sessions.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import json
from pathlib import Path
from typing import Union

from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigurationError


class RefactorConfig(BaseModel):
    """Session behaviour switches."""

    model_config = {"extra": "forbid"}  # Reject unknown fields

    auto_cleanup: bool = Field(
        default=True,
        description="Commit pending mutations after every mutating call",
    )


def load_config(path: Union[str, Path]) -> RefactorConfig:
    """
    Load and validate a JSON configuration file.

    Args:
        path: Path to JSON file

    Returns:
        Validated RefactorConfig

    Raises:
        ConfigurationError: If the file is unreadable or does not validate
    """
    config_path = Path(path)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read config {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config root must be an object: {config_path}")
    try:
        return RefactorConfig(**data)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        key = ".".join(str(p) for p in first.get("loc", ()))
        raise ConfigurationError(
            f"Invalid config {config_path}: {e}", config_key=key or None
        ) from e
