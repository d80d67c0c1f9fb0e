"""
Script splitter for SQL scripts.

This module defines the ScriptSplitter class, which splits SQL scripts
containing multiple statements into individual statements while preserving
each statement's original text.
"""

from __future__ import annotations

from typing import Optional

from sqlglot.dialects.dialect import Dialect
from sqlglot.errors import TokenError
from sqlglot.tokens import TokenType

from column_lineage.exceptions import LineageError


class ScriptSplitter:
    """SQL script splitter.

    Statements are separated on semicolon tokens produced by the sqlglot
    tokenizer, so semicolons inside string literals, quoted identifiers and
    comments do not split. Chunks that contain no tokens (blank lines or
    comments only) are dropped.

    Usage:
        splitter = ScriptSplitter()
        statements = splitter.split("SELECT 1; -- done\\nSELECT 2;")
        # Returns: ["SELECT 1", "-- done\\nSELECT 2"]
    """

    def __init__(self, dialect: Optional[str] = None) -> None:
        """Initialize a ScriptSplitter.

        Args:
            dialect: sqlglot dialect name used for tokenizing (None for the
                generic dialect).
        """
        self.dialect = dialect

    def split(self, script: str) -> list[str]:
        """Split a SQL script into statement texts.

        Args:
            script: SQL script text (may contain multiple statements).

        Returns:
            Statement texts in script order, stripped of surrounding
            whitespace, without their terminating semicolons.

        Raises:
            LineageError: If the script cannot be tokenized.
        """
        if not script or not script.strip():
            return []

        try:
            tokens = Dialect.get_or_raise(self.dialect).tokenize(script)
        except TokenError as e:
            raise LineageError(f"Failed to tokenize SQL script: {e}") from e

        statements: list[str] = []
        begin = 0
        token_count = 0
        for token in tokens:
            if token.token_type == TokenType.SEMICOLON:
                if token_count:
                    statements.append(script[begin:token.start].strip())
                begin = token.end + 1
                token_count = 0
            else:
                token_count += 1

        if token_count:
            statements.append(script[begin:].strip())
        return statements
