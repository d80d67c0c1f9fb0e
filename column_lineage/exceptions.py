"""
Custom exception classes for column lineage extraction.

Every error raised by this package derives from LineageError, so callers can
catch one type at the boundary. Missing tables or columns are never errors by
default; they degrade the result and are reported through the warning
collector instead (see column_lineage.utils.warnings).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class LineageError(Exception):
    """Base exception class for all lineage errors.

    Attributes:
        message: Human-readable error message describing the error.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


@dataclass(frozen=True)
class SyntaxIssue:
    """A single syntax error reported by the SQL parser.

    Attributes:
        line: 1-based line of the offending token (0 when unknown).
        column: 1-based column of the offending token (0 when unknown).
        message: Parser message.
    """

    line: int
    column: int
    message: str

    def __str__(self) -> str:
        return f"line {self.line}:{self.column} {self.message}"


class UnsupportedSQLError(LineageError):
    """Raised when SQL text cannot be parsed by the bundled grammar.

    The tree builder never runs for such input, so no partial AST exists.

    Attributes:
        message: Error message.
        sql: The SQL text that failed to parse.
        issues: Syntax errors collected by the parser's error listeners.

    Example:
        >>> try:
        ...     parser.parse("SELEC id FROM users")
        ... except UnsupportedSQLError as e:
        ...     print(e.issues[0].line)
        1
    """

    def __init__(
        self,
        message: str,
        sql: Optional[str] = None,
        issues: Optional[list[SyntaxIssue]] = None,
    ) -> None:
        self.sql = sql
        self.issues = issues or []
        if self.issues:
            details = "; ".join(str(issue) for issue in self.issues)
            message = f"{message}: {details}"
        super().__init__(message)


class TreeBuilderError(LineageError):
    """Raised when the tree builder finds a structurally inconsistent stack.

    This always indicates a defect in the grammar/builder pairing, never a
    problem with the user's SQL: an empty pop, an unexpected fragment kind,
    or fragments left over once the statement is assembled.

    Attributes:
        message: Error message.
        rule: Name of the grammar rule being assembled, if known.
    """

    def __init__(self, message: str, rule: Optional[str] = None) -> None:
        self.rule = rule
        if rule:
            message = f"[{rule}] {message}"
        super().__init__(message)


class UnresolvedReferenceError(LineageError):
    """Raised when a table qualifier does not name any visible source.

    Only raised when ``LineageConfig.on_unresolved`` is ``ErrorMode.FAIL``;
    otherwise the qualifier is used verbatim as the table name.

    Attributes:
        message: Error message.
        reference: The unresolved qualifier, e.g. ``"x"`` in ``x.id``.
        available_tables: Aliases visible at the point of the reference.
    """

    def __init__(
        self,
        message: str,
        reference: str,
        available_tables: Optional[list[str]] = None,
    ) -> None:
        self.reference = reference
        self.available_tables = available_tables or []
        super().__init__(message)


class ColumnCountMismatchError(LineageError):
    """Raised when an INSERT column list and its SELECT disagree in arity.

    Only raised when ``LineageConfig.on_column_mismatch`` is
    ``ErrorMode.FAIL``.

    Attributes:
        message: Error message.
        target_table: Table named in the INSERT.
        expected: Number of columns in the explicit column list.
        actual: Number of columns produced by the SELECT.
    """

    def __init__(
        self, message: str, target_table: str, expected: int, actual: int
    ) -> None:
        self.target_table = target_table
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class QueryDepthExceededError(LineageError):
    """Raised when query nesting exceeds the configured limit.

    Also raised when a single expression is nested too deeply for the
    interpreter to walk.

    Attributes:
        message: Error message.
        max_depth: The limit that was exceeded.
    """

    def __init__(self, message: str, max_depth: int) -> None:
        self.max_depth = max_depth
        super().__init__(message)


class TableNotFoundError(LineageError):
    """Raised by metadata providers when a table is not registered.

    Attributes:
        message: Error message.
        table: The requested table name.
        database: The requested database, if any.
    """

    def __init__(
        self, message: str, table: str, database: Optional[str] = None
    ) -> None:
        self.table = table
        self.database = database
        super().__init__(message)


class DDLParseError(LineageError):
    """Raised when a DDL statement cannot be turned into table metadata.

    Attributes:
        message: Error message.
        statement: The DDL text that failed.
        line: Line reported by the DDL parser, if available.
        column: Column reported by the DDL parser, if available.
    """

    def __init__(
        self,
        message: str,
        statement: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.statement = statement
        self.line = line
        self.column = column
        super().__init__(message)
