"""
DDL-to-metadata parsing.

This module turns ``CREATE TABLE`` and ``CREATE VIEW`` statements into
TableMetadata using sqlglot's parser, so a catalog can be bootstrapped from a
schema dump instead of a live connection. Batch parsing returns one
DDLOutcome per statement; failed statements are reported, not dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import sqlglot
from sqlglot import expressions as exp
from sqlglot.errors import ParseError, SqlglotError

from column_lineage.exceptions import DDLParseError, LineageError
from column_lineage.metadata.schema import ColumnMetadata, TableMetadata
from column_lineage.parser.script_splitter import ScriptSplitter

logger = logging.getLogger(__name__)


@dataclass
class DDLOutcome:
    """Outcome of parsing one statement of a DDL script.

    Attributes:
        statement: The statement text as it appeared in the script.
        schema: Extracted metadata, or None if the statement failed or is not
            a CREATE TABLE / CREATE VIEW.
        error: The parse error, if the statement failed.
    """

    statement: str
    schema: Optional[TableMetadata] = None
    error: Optional[LineageError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def skipped(self) -> bool:
        """True for statements that parsed but define no table or view."""
        return self.error is None and self.schema is None


class DDLParser:
    """Parser for CREATE TABLE / CREATE VIEW statements.

    Supported: database-qualified names, ``TEMPORARY`` and ``EXTERNAL``
    tables, column types, ``NOT NULL``, column and table level
    ``PRIMARY KEY``, ``DEFAULT``, column and table ``COMMENT``, views with an
    explicit column list, and views or ``CREATE TABLE ... AS SELECT`` whose
    columns come from the query's output names.

    Attributes:
        dialect: sqlglot dialect name (None for the generic dialect).

    Example:
        >>> parser = DDLParser(dialect="mysql")
        >>> schema = parser.parse_ddl(
        ...     "CREATE TABLE shop.orders (id INT PRIMARY KEY, amount DECIMAL(10,2))"
        ... )
        >>> schema.database, schema.table, schema.primary_key
        ('shop', 'orders', ['id'])
    """

    def __init__(self, dialect: Optional[str] = None) -> None:
        self.dialect = dialect

    def parse_ddl(self, sql: str) -> Optional[TableMetadata]:
        """Parse one DDL statement.

        Args:
            sql: A single statement.

        Returns:
            The table or view metadata, or None if the statement is not a
            CREATE TABLE / CREATE VIEW.

        Raises:
            DDLParseError: If sqlglot cannot parse the statement.
        """
        try:
            tree = sqlglot.parse_one(sql, read=self.dialect)
        except ParseError as e:
            first = e.errors[0] if e.errors else {}
            raise DDLParseError(
                f"Failed to parse DDL: {first.get('description') or e}",
                statement=sql,
                line=first.get("line"),
                column=first.get("col"),
            ) from e
        except SqlglotError as e:
            raise DDLParseError(f"Failed to parse DDL: {e}", statement=sql) from e

        if not isinstance(tree, exp.Create):
            return None
        kind = (tree.args.get("kind") or "").upper()
        if kind not in ("TABLE", "VIEW"):
            return None
        return self._extract(tree, kind)

    def parse_many(self, script: str) -> list[DDLOutcome]:
        """Parse every statement of a DDL script.

        Returns:
            One DDLOutcome per non-empty statement, in script order. If the
            script itself cannot be tokenized, a single failed outcome for
            the whole script is returned.
        """
        try:
            statements = ScriptSplitter(self.dialect).split(script)
        except LineageError as e:
            return [DDLOutcome(statement=script, error=e)]

        outcomes: list[DDLOutcome] = []
        for statement in statements:
            try:
                outcomes.append(DDLOutcome(statement=statement, schema=self.parse_ddl(statement)))
            except DDLParseError as e:
                logger.debug("DDL statement failed: %s", e.message)
                outcomes.append(DDLOutcome(statement=statement, error=e))
        return outcomes

    def _extract(self, create: exp.Create, kind: str) -> TableMetadata:
        target = create.this
        definitions: list[exp.Expression] = []
        if isinstance(target, exp.Schema):
            definitions = list(target.expressions)
            target = target.this

        schema = TableMetadata(
            table=target.name,
            database=target.text("db"),
            table_type=kind,
        )

        properties = create.args.get("properties")
        for prop in properties.expressions if properties else []:
            if isinstance(prop, exp.SchemaCommentProperty):
                schema.comment = prop.this.name
            elif kind == "TABLE" and isinstance(prop, exp.ExternalProperty):
                schema.table_type = "EXTERNAL"
            elif kind == "TABLE" and isinstance(prop, exp.TemporaryProperty):
                schema.table_type = "TEMPORARY"

        for definition in definitions:
            if isinstance(definition, exp.ColumnDef):
                schema.columns.append(self._column(definition))
            elif isinstance(definition, exp.Identifier):
                schema.columns.append(ColumnMetadata(name=definition.name))
            elif isinstance(definition, exp.PrimaryKey):
                schema.primary_key.extend(_key_name(key) for key in definition.expressions)

        query = create.expression
        if not schema.columns and query is not None:
            for name in getattr(query, "named_selects", []):
                if name and name != "*":
                    schema.columns.append(ColumnMetadata(name=name))

        for column in schema.columns:
            if column.primary_key and column.name not in schema.primary_key:
                schema.primary_key.append(column.name)
            elif column.name in schema.primary_key:
                column.primary_key = True
                column.nullable = False
        return schema

    def _column(self, definition: exp.ColumnDef) -> ColumnMetadata:
        column = ColumnMetadata(name=definition.name)
        data_type = definition.args.get("kind")
        if data_type is not None:
            column.data_type = data_type.sql(dialect=self.dialect)

        for constraint in definition.args.get("constraints") or []:
            kind = constraint.args.get("kind")
            if isinstance(kind, exp.NotNullColumnConstraint):
                if not kind.args.get("allow_null"):
                    column.nullable = False
            elif isinstance(kind, exp.PrimaryKeyColumnConstraint):
                column.primary_key = True
                column.nullable = False
            elif isinstance(kind, exp.DefaultColumnConstraint):
                column.default_expr = kind.this.sql(dialect=self.dialect)
            elif isinstance(kind, exp.CommentColumnConstraint):
                column.comment = kind.this.name
        return column


def _key_name(key: exp.Expression) -> str:
    while isinstance(key, exp.Ordered):
        key = key.this
    return key.name
