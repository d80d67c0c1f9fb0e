"""
Tests for ScriptSplitter.
"""

import pytest

from column_lineage.exceptions import LineageError
from column_lineage.parser.script_splitter import ScriptSplitter


class TestScriptSplitter:
    """Test cases for ScriptSplitter class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.splitter = ScriptSplitter()

    def test_split_statements(self):
        statements = self.splitter.split("SELECT 1; SELECT 2;\nSELECT 3")

        assert statements == ["SELECT 1", "SELECT 2", "SELECT 3"]

    def test_semicolon_in_string_and_identifier(self):
        statements = self.splitter.split("SELECT 'a;b' AS \"c;d\" FROM t; SELECT 2")

        assert statements == ["SELECT 'a;b' AS \"c;d\" FROM t", "SELECT 2"]

    def test_semicolon_in_comment(self):
        statements = self.splitter.split("SELECT 1 -- first; still first\n; SELECT 2")

        assert len(statements) == 2
        assert statements[0].startswith("SELECT 1")

    def test_empty_chunks_are_dropped(self):
        assert self.splitter.split(";;  ; -- note\n;SELECT 1;;") == ["SELECT 1"]

    @pytest.mark.parametrize("script", ["", "   ", "-- only a comment"])
    def test_empty_script(self, script):
        assert self.splitter.split(script) == []

    def test_dialect_quoting(self):
        statements = ScriptSplitter(dialect="mysql").split("SELECT `a;b` FROM t; SELECT 2")

        assert statements == ["SELECT `a;b` FROM t", "SELECT 2"]

    def test_unterminated_string(self):
        with pytest.raises(LineageError):
            self.splitter.split("SELECT 'abc")
