"""
SQL parser front end.

This module loads the bundled lark grammar (``sql.lark``) once per process
and exposes SQLParser, which produces either the raw parse tree or the typed
syntax tree. The grammar is LALR(1), so parse time is linear in the length
of the statement. Syntax errors are delivered to registered error listeners and
then raised as UnsupportedSQLError.
"""

from __future__ import annotations

import functools
import logging
from typing import Protocol

from lark import Lark, Tree
from lark.exceptions import (
    UnexpectedCharacters,
    UnexpectedEOF,
    UnexpectedInput,
    UnexpectedToken,
)

from column_lineage.ast.nodes import Statement
from column_lineage.exceptions import SyntaxIssue, UnsupportedSQLError
from column_lineage.parser.tree_builder import TreeBuilder

logger = logging.getLogger(__name__)

GRAMMAR_FILE = "sql.lark"


@functools.lru_cache(maxsize=1)
def get_grammar() -> Lark:
    """Return the shared Lark instance for the bundled grammar."""
    return Lark.open(
        GRAMMAR_FILE,
        rel_to=__file__,
        parser="lalr",
        lexer="contextual",
        propagate_positions=True,
        maybe_placeholders=True,
    )


class ErrorListener(Protocol):
    """Receiver of syntax errors reported during parsing."""

    def syntax_error(self, line: int, column: int, message: str) -> None:
        ...


class SyntaxErrorCollector:
    """Error listener that records every reported syntax error."""

    def __init__(self) -> None:
        self.issues: list[SyntaxIssue] = []

    def syntax_error(self, line: int, column: int, message: str) -> None:
        self.issues.append(SyntaxIssue(line=line, column=column, message=message))

    def has_errors(self) -> bool:
        return bool(self.issues)


class SQLParser:
    """Parses single SQL statements with the bundled grammar.

    Example:
        >>> parser = SQLParser()
        >>> stmt = parser.parse("SELECT id FROM users")
        >>> stmt.from_clause.tables[0].table.table
        'users'
    """

    def __init__(self) -> None:
        self._listeners: list[ErrorListener] = []

    def add_error_listener(self, listener: ErrorListener) -> None:
        """Register a listener notified of every syntax error."""
        self._listeners.append(listener)

    def remove_error_listeners(self) -> None:
        self._listeners.clear()

    def parse_tree(self, sql: str) -> Tree:
        """Parse SQL into a lark parse tree.

        Args:
            sql: A single SQL statement, optionally terminated by ``;``.

        Returns:
            The parse tree rooted at ``start``.

        Raises:
            UnsupportedSQLError: If the text is empty or does not match the
                grammar. The error's ``issues`` list the reported positions.
        """
        if not sql or not sql.strip():
            raise UnsupportedSQLError("SQL string cannot be empty", sql=sql)

        collector = SyntaxErrorCollector()
        listeners: list[ErrorListener] = [collector, *self._listeners]
        try:
            return get_grammar().parse(sql)
        except UnexpectedInput as e:
            line = max(getattr(e, "line", 0) or 0, 0)
            column = max(getattr(e, "column", 0) or 0, 0)
            message = _describe(e)
            logger.debug("Syntax error at %d:%d: %s", line, column, message)
            for listener in listeners:
                listener.syntax_error(line, column, message)
            raise UnsupportedSQLError(
                "Unsupported SQL", sql=sql, issues=collector.issues
            ) from e

    def parse(self, sql: str) -> Statement:
        """Parse SQL and build its typed syntax tree.

        Raises:
            UnsupportedSQLError: On syntax errors.
            TreeBuilderError: If the parse tree cannot be assembled.
        """
        tree = self.parse_tree(sql)
        return TreeBuilder().build(tree, sql)


def _describe(error: UnexpectedInput) -> str:
    if isinstance(error, UnexpectedCharacters):
        return f"unexpected character {error.char!r}"
    if isinstance(error, UnexpectedToken):
        token = error.token
        if token.type == "$END":
            return "unexpected end of input"
        return f"unexpected token {token.value!r}"
    if isinstance(error, UnexpectedEOF):
        return "unexpected end of input"
    return str(error).splitlines()[0]
