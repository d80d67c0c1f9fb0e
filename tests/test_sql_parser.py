"""
Tests for SQLParser and its error listeners.
"""

import pytest
from lark import Tree

from column_lineage.ast.nodes import DeleteStmt, InsertStmt, SelectStmt, UpdateStmt
from column_lineage.exceptions import LineageError, SyntaxIssue, UnsupportedSQLError
from column_lineage.parser.sql_parser import SQLParser, SyntaxErrorCollector, get_grammar


class RecordingListener:
    """Listener used to check that custom listeners are notified."""

    def __init__(self):
        self.calls = []

    def syntax_error(self, line, column, message):
        self.calls.append((line, column, message))


class TestSQLParser:
    """Test cases for SQLParser class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.parser = SQLParser()

    def test_grammar_is_loaded_once(self):
        assert get_grammar() is get_grammar()

    def test_parse_tree_root(self):
        tree = self.parser.parse_tree("SELECT id FROM users")

        assert isinstance(tree, Tree)
        assert tree.data == "start"

    @pytest.mark.parametrize(
        "sql, statement_type",
        [
            ("SELECT id FROM users", SelectStmt),
            ("select id from users;", SelectStmt),
            ("INSERT INTO t SELECT a FROM s", InsertStmt),
            ("UPDATE t SET a = 1", UpdateStmt),
            ("DELETE FROM t", DeleteStmt),
        ],
    )
    def test_statement_types(self, sql, statement_type):
        assert isinstance(self.parser.parse(sql), statement_type)

    def test_keywords_are_case_insensitive(self):
        stmt = self.parser.parse("sElEcT a AS b FrOm t WhErE a > 1")

        assert stmt.select_list[0].alias == "b"
        assert stmt.where is not None

    def test_syntax_error_raises_unsupported(self):
        """Test 1: A syntax error is reported with its position."""
        with pytest.raises(UnsupportedSQLError) as exc_info:
            self.parser.parse("SELECT id FROM users WHERE")

        error = exc_info.value
        assert error.sql == "SELECT id FROM users WHERE"
        assert len(error.issues) == 1
        assert isinstance(error.issues[0], SyntaxIssue)
        assert "Unsupported SQL" in str(error)

    def test_syntax_error_position(self):
        with pytest.raises(UnsupportedSQLError) as exc_info:
            self.parser.parse("SELECT id\nFROM users )")

        issue = exc_info.value.issues[0]
        assert issue.line == 2
        assert issue.column > 0

    def test_unexpected_character(self):
        with pytest.raises(UnsupportedSQLError) as exc_info:
            self.parser.parse("SELECT id FROM users WHERE id = ?")

        assert "'?'" in exc_info.value.issues[0].message

    def test_unsupported_is_lineage_error(self):
        with pytest.raises(LineageError):
            self.parser.parse("DROP TABLE users")

    def test_custom_listener_is_notified(self):
        """Test 2: Registered listeners see every syntax error."""
        listener = RecordingListener()
        self.parser.add_error_listener(listener)

        with pytest.raises(UnsupportedSQLError):
            self.parser.parse("SELECT FROM")

        assert len(listener.calls) == 1
        line, column, message = listener.calls[0]
        assert line == 1
        assert message

    def test_remove_error_listeners(self):
        listener = RecordingListener()
        self.parser.add_error_listener(listener)
        self.parser.remove_error_listeners()

        with pytest.raises(UnsupportedSQLError):
            self.parser.parse("SELECT FROM")

        assert listener.calls == []

    def test_listener_not_called_on_success(self):
        listener = RecordingListener()
        self.parser.add_error_listener(listener)

        self.parser.parse("SELECT 1")

        assert listener.calls == []

    @pytest.mark.parametrize("sql", ["", "   ", "\n\t"])
    def test_empty_sql(self, sql):
        """Test 3: Empty input is rejected before parsing."""
        with pytest.raises(UnsupportedSQLError) as exc_info:
            self.parser.parse(sql)

        assert "empty" in str(exc_info.value)
        assert exc_info.value.issues == []


class TestSyntaxErrorCollector:
    """Test cases for SyntaxErrorCollector class."""

    def test_collects_issues(self):
        collector = SyntaxErrorCollector()
        assert not collector.has_errors()

        collector.syntax_error(3, 7, "unexpected token 'FROM'")

        assert collector.has_errors()
        assert collector.issues == [SyntaxIssue(3, 7, "unexpected token 'FROM'")]
        assert str(collector.issues[0]) == "line 3:7 unexpected token 'FROM'"
