"""
Tests for RefactorConfig and load_config.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import json

import pytest
from pydantic import ValidationError

from cst_refactor import ConfigurationError, RefactorConfig, load_config


def test_defaults() -> None:
    assert RefactorConfig().auto_cleanup is True


def test_unknown_fields_rejected() -> None:
    with pytest.raises(ValidationError):
        RefactorConfig(auto_commit=False)


def test_load_config(tmp_path) -> None:
    path = tmp_path / "refactor.json"
    path.write_text(json.dumps({"auto_cleanup": False}), encoding="utf-8")
    assert load_config(path).auto_cleanup is False
    assert load_config(str(path)).auto_cleanup is False


def test_load_config_missing_file(tmp_path) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(tmp_path / "missing.json")
    assert exc_info.value.code == "CONFIGURATION_ERROR"


def test_load_config_bad_json(tmp_path) -> None:
    path = tmp_path / "refactor.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_load_config_non_object_root(tmp_path) -> None:
    path = tmp_path / "refactor.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_load_config_reports_bad_key(tmp_path) -> None:
    path = tmp_path / "refactor.json"
    path.write_text(json.dumps({"auto_cleanup": "sometimes"}), encoding="utf-8")
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(path)
    assert exc_info.value.config_key == "auto_cleanup"
