"""
Tests for the commit pass: merging replacements, insertions, and deletions.

Author: Vasiliy Zdanovskiy
email: vasilyvz@gmail.com
"""

import logging

import libcst as cst
import pytest

from cst_refactor import (
    CommitError,
    DirtyTreeError,
    InvalidReplacementError,
    InvalidSelectionError,
)


class TestCommitBasics:
    """Commit lifecycle."""

    def test_commit_is_idempotent(self, manual_session):
        session = manual_session("a = 1\n")
        session.commit()
        session.commit()
        assert session.generate() == "a = 1\n"
        assert not session.is_dirty

    def test_queued_mutations_wait_for_commit(self, manual_session):
        session = manual_session("a = 1\nb = 2\n")
        session.delete("SimpleStatementLine:first")
        assert session.is_dirty
        with pytest.raises(DirtyTreeError):
            session.generate()
        session.commit()
        assert session.generate() == "b = 2\n"

    def test_root_cannot_be_deleted(self, manual_session):
        session = manual_session("a = 1\n")
        with pytest.raises(InvalidSelectionError):
            session.queue_deletion(session.root)
        with pytest.raises(InvalidSelectionError):
            session.delete()
        assert not session.is_dirty
        assert session.generate() == "a = 1\n"

    def test_commit_error_leaves_state_untouched(self, manual_session):
        session = manual_session("a = 1\n")
        root = session.root
        session.queue_replacement(root, cst.Name("x"))
        with pytest.raises(CommitError):
            session.commit()
        assert session.root is root
        assert session.is_dirty

    def test_stale_node_is_rejected(self, manual_session):
        session = manual_session("x = 1\n")
        held = session.query("Integer")
        session.replace(held, "2")
        session.commit()
        with pytest.raises(InvalidSelectionError):
            session.replace(held, "3")
        with pytest.raises(InvalidSelectionError):
            session.queue_deletion(held[0])
        assert not session.is_dirty
        assert session.generate() == "x = 2\n"


class TestDeletion:
    """Deletion and declarator cleanup."""

    def test_delete_beats_replace(self, manual_session):
        session = manual_session("a = 1\nb = 2\n")
        line = session.query("SimpleStatementLine:first")[0]
        session.replace(line, "c = 3")
        session.delete(line)
        session.commit()
        assert session.generate() == "b = 2\n"

    def test_deleting_only_target_removes_statement(self, manual_session):
        session = manual_session("a = 1\nb = 2\n")
        session.delete("AssignTarget:first")
        session.commit()
        assert session.generate() == "b = 2\n"

    def test_deleting_one_of_several_targets(self, manual_session):
        session = manual_session("a = b = 1\n")
        session.delete("AssignTarget:first")
        session.commit()
        assert session.generate() == "b = 1\n"

    def test_deleting_last_import_alias_drops_comma(self, manual_session):
        session = manual_session("import os, sys\n")
        session.delete("ImportAlias:last")
        session.commit()
        assert session.generate() == "import os\n"

    def test_deleting_every_alias_removes_import(self, manual_session):
        session = manual_session("from m import a, b\nx = 1\n")
        session.delete("ImportAlias")
        session.commit()
        assert session.generate() == "x = 1\n"

    def test_deleting_small_statement_keeps_siblings(self, manual_session):
        session = manual_session("a = 1; b = 2\n")
        session.delete("Assign:first")
        session.commit()
        assert session.generate() == "b = 2\n"

    def test_emptied_block_gets_pass(self, manual_session):
        session = manual_session("def f():\n    return 1\n")
        session.delete("SimpleStatementLine")
        session.commit()
        assert session.generate() == "def f():\n    pass\n"


class TestInsertion:
    """Insertion ordering and placement."""

    def test_append_goes_after_anchor(self, manual_session):
        session = manual_session("a\nb\nc\n")
        session.append("SimpleStatementLine:nth(1)", "x")
        session.commit()
        assert session.generate() == "a\nb\nx\nc\n"

    def test_prepend_goes_before_anchor(self, manual_session):
        session = manual_session("a\nb\nc\n")
        session.prepend("SimpleStatementLine:nth(1)", "y")
        session.commit()
        assert session.generate() == "a\ny\nb\nc\n"

    def test_insertion_next_to_replacement(self, manual_session):
        session = manual_session("a\nb\nc\n")
        session.replace("SimpleStatementLine:nth(1)", "z")
        session.append("SimpleStatementLine:nth(1)", "x")
        session.commit()
        assert session.generate() == "a\nz\nx\nc\n"

    def test_insertion_survives_anchor_deletion(self, manual_session):
        session = manual_session("a\nb\nc\n")
        session.delete("SimpleStatementLine:nth(1)")
        session.prepend("SimpleStatementLine:nth(1)", "y")
        session.commit()
        assert session.generate() == "a\ny\nc\n"

    def test_insertion_takes_place_of_emptied_statement(self, manual_session):
        session = manual_session("a = 1\nb = 2\n")
        session.append("SimpleStatementLine:first", "x = 0")
        session.delete("AssignTarget:first")
        session.commit()
        assert session.generate() == "x = 0\nb = 2\n"

    def test_insertion_takes_place_of_emptied_small_statement(self, manual_session):
        session = manual_session("a = 1; b = 2\n")
        session.prepend("Assign:first", "x = 0")
        session.delete("AssignTarget:first")
        session.commit()
        assert session.generate() == "x = 0; b = 2\n"

    def test_queue_insertion_narrows_line_next_to_small_statement(self, manual_session):
        session = manual_session("a = 1; b = 2\n")
        anchor = session.query("Assign:first")[0]
        session.queue_insertion(anchor, "after", cst.parse_statement("x = 0"))
        session.commit()
        assert session.generate() == "a = 1; x = 0; b = 2\n"

    def test_queue_insertion_rejects_compound_next_to_small_statement(self, manual_session):
        session = manual_session("a = 1; b = 2\n")
        anchor = session.query("Assign:first")[0]
        with pytest.raises(InvalidReplacementError):
            session.queue_insertion(anchor, "after", cst.parse_statement("if a:\n    pass\n"))
        with pytest.raises(InvalidReplacementError):
            session.queue_insertion(anchor, "before", cst.parse_statement("x = 0; y = 1"))
        assert not session.is_dirty

    def test_insertion_inside_function_body(self, manual_session):
        session = manual_session("def f():\n    return 1\n")
        session.prepend("Return", "x = 0")
        session.commit()
        assert session.generate() == "def f():\n    x = 0; return 1\n"

    def test_insertion_next_to_elif_is_skipped(self, manual_session, caplog):
        src = "if a:\n    pass\nelif b:\n    pass\n"
        session = manual_session(src)
        session.prepend("If:nth(1)", "x = 1")
        with caplog.at_level(logging.WARNING, logger="cst_refactor"):
            session.commit()
        assert session.generate() == src
        assert not session.is_dirty
        assert "Skipping insertion" in caplog.text

    def test_queue_insertion_rejects_expression_payload(self, manual_session):
        session = manual_session("a = 1\n")
        line = session.query("SimpleStatementLine")[0]
        with pytest.raises(InvalidReplacementError):
            session.queue_insertion(line, "after", cst.Name("x"))
