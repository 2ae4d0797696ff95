"""
Tests for cst-refactor CLI commands.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import json

from click.testing import CliRunner

from cst_refactor.cli.main import cli


class TestQueryCommand:
    """Tests for query command."""

    def test_query_lists_matches(self, source_file):
        runner = CliRunner()
        result = runner.invoke(cli, ["query", str(source_file), "FunctionDef"])
        assert result.exit_code == 0
        assert "FunctionDef: def show(value):" in result.output
        assert "1 match(es)" in result.output

    def test_query_bad_selector(self, source_file):
        runner = CliRunner()
        result = runner.invoke(cli, ["query", str(source_file), "FunctionDef["])
        assert result.exit_code != 0
        assert "Invalid selector" in result.output

    def test_query_unparseable_file(self, tmp_path):
        path = tmp_path / "broken.py"
        path.write_text("def (:\n", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(cli, ["query", str(path), "Name"])
        assert result.exit_code != 0
        assert "Could not parse" in result.output


class TestRenameCommand:
    """Tests for rename command."""

    def test_rename_prints_result(self, source_file):
        runner = CliRunner()
        result = runner.invoke(cli, ["rename", str(source_file), "Name[value=count]", "n"])
        assert result.exit_code == 0
        assert "n = 1\n" in result.output
        assert "total = n + 1\n" in result.output
        assert "print(value, n)" in result.output
        assert "count" not in result.output

    def test_rename_rejects_bad_identifier(self, source_file):
        runner = CliRunner()
        result = runner.invoke(cli, ["rename", str(source_file), "Name[value=count]", "1x"])
        assert result.exit_code != 0
        assert "Not a valid identifier" in result.output

    def test_rename_write(self, source_file):
        runner = CliRunner()
        result = runner.invoke(
            cli, ["rename", str(source_file), "Param", "item", "--write"]
        )
        assert result.exit_code == 0
        assert "Updated" in result.output
        assert "def show(item):\n    print(item, count)\n" in source_file.read_text()


class TestEditCommands:
    """Tests for delete, replace, and insert commands."""

    def test_delete(self, source_file):
        runner = CliRunner()
        result = runner.invoke(cli, ["delete", str(source_file), "ImportAlias:last"])
        assert result.exit_code == 0
        assert result.output.startswith("import os\n")

    def test_replace(self, source_file):
        runner = CliRunner()
        result = runner.invoke(cli, ["-v", "replace", str(source_file), "Integer", "42"])
        assert result.exit_code == 0
        assert "count = 42\n" in result.output
        assert "total = count + 42\n" in result.output

    def test_replace_recursive(self, tmp_path):
        path = tmp_path / "nested.py"
        path.write_text("x = 1 + 2 + 3\n", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(
            cli, ["replace", str(path), "BinaryOperation", "0", "--recursive"]
        )
        assert result.exit_code == 0
        assert result.output == "x = 0\n"

    def test_insert_after(self, source_file):
        runner = CliRunner()
        result = runner.invoke(
            cli, ["insert", str(source_file), "FunctionDef", "x = 0", "--after"]
        )
        assert result.exit_code == 0
        assert result.output.endswith("    print(value, count)\nx = 0\n")

    def test_insert_before(self, source_file):
        runner = CliRunner()
        result = runner.invoke(
            cli, ["insert", str(source_file), "SimpleStatementLine:first", "import re"]
        )
        assert result.exit_code == 0
        assert result.output.startswith("import re\nimport os, sys\n")

    def test_insert_rejects_expression_anchor(self, source_file):
        runner = CliRunner()
        result = runner.invoke(cli, ["insert", str(source_file), "Integer", "x = 0"])
        assert result.exit_code != 0
        assert "Can only insert" in result.output


class TestConfigOption:
    """Tests for the --config group option."""

    def test_valid_config(self, source_file, tmp_path):
        config = tmp_path / "refactor.json"
        config.write_text(json.dumps({"auto_cleanup": False}), encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(
            cli, ["--config", str(config), "delete", str(source_file), "ImportAlias:first"]
        )
        assert result.exit_code == 0
        assert result.output.startswith("import sys\n")

    def test_invalid_config(self, source_file, tmp_path):
        config = tmp_path / "refactor.json"
        config.write_text(json.dumps({"bogus": 1}), encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(
            cli, ["--config", str(config), "query", str(source_file), "Name"]
        )
        assert result.exit_code != 0
        assert "Invalid config" in result.output
