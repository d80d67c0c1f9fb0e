"""
Metadata providers.

This module defines the MetadataProvider interface and MemoryProvider, an
in-memory store of TableMetadata grouped by database. MemoryProvider can be
filled programmatically, from JSON, or (through MetadataBuilder) from DDL.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional, Union

from column_lineage.exceptions import LineageError, TableNotFoundError
from column_lineage.metadata.schema import (
    ColumnMetadata,
    DatabaseMetadata,
    TableMetadata,
)

logger = logging.getLogger(__name__)


class MetadataProvider(ABC):
    """Abstract interface for rich table metadata sources."""

    @abstractmethod
    def get_table_schema(self, database: Optional[str], table: str) -> TableMetadata:
        """Return metadata for a table.

        Raises:
            TableNotFoundError: If the table is not registered.
        """

    @abstractmethod
    def list_tables(self, database: Optional[str] = None) -> list[str]:
        """Return the table names registered in a database."""

    @abstractmethod
    def add_table_schema(self, schema: TableMetadata) -> None:
        """Add or replace a table's metadata."""


class MemoryProvider(MetadataProvider):
    """In-memory metadata provider.

    Table names are stored lower-cased. Tables without a database go to the
    default database (``"default"`` unless changed). A lookup whose database
    is unknown falls back to searching every database for the table.

    Attributes:
        default_database: Database used when none is given.

    Example:
        >>> provider = MemoryProvider()
        >>> provider.add_table(None, "Orders", ["id", "amount"])
        >>> provider.get_table_schema(None, "ORDERS").get_column_names()
        ['id', 'amount']
        >>> provider.list_tables()
        ['orders']
    """

    def __init__(self, default_database: str = "default") -> None:
        self.default_database = default_database
        self._databases: dict[str, DatabaseMetadata] = {}

    def get_table_schema(self, database: Optional[str], table: str) -> TableMetadata:
        database = database or self.default_database
        name = table.lower()

        db = self._databases.get(database)
        if db is None:
            for candidate in self._databases.values():
                schema = candidate.get_table(name)
                if schema is not None:
                    return schema
            raise TableNotFoundError(
                f"Table not found: {database}.{name}", table=name, database=database
            )

        schema = db.get_table(name)
        if schema is None:
            raise TableNotFoundError(
                f"Table not found: {database}.{name}", table=name, database=database
            )
        return schema

    def list_tables(self, database: Optional[str] = None) -> list[str]:
        """Return table names of a database in registration order.

        Raises:
            LineageError: If the database is unknown.
        """
        database = database or self.default_database
        db = self._databases.get(database)
        if db is None:
            raise LineageError(f"Database not found: {database}")
        return list(db.tables)

    def list_databases(self) -> list[str]:
        return list(self._databases)

    def add_table_schema(self, schema: TableMetadata) -> None:
        database = schema.database or self.default_database
        stored = replace(schema, table=schema.table.lower())
        db = self._databases.get(database)
        if db is None:
            db = DatabaseMetadata(name=database)
            self._databases[database] = db
        db.add_table(stored)
        logger.debug("Registered table %s.%s", database, stored.table)

    def add_table(
        self, database: Optional[str], table: str, columns: list[str]
    ) -> None:
        """Add a table described by column names only."""
        self.add_table_schema(
            TableMetadata(
                table=table,
                database=database or "",
                columns=[ColumnMetadata(name=name) for name in columns],
            )
        )

    def load_from_json(self, path: Union[str, Path]) -> None:
        """Load table metadata from a JSON file.

        The file holds either a list of table objects or a single one.

        Raises:
            LineageError: If the file cannot be read or parsed.
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise LineageError(f"Failed to read metadata file {path}: {e}") from e
        self.load_from_json_string(text)

    def load_from_json_string(self, text: str) -> None:
        """Load table metadata from JSON text.

        Raises:
            LineageError: If the text is not valid JSON or an entry is invalid.
        """
        try:
            data: Any = json.loads(text)
        except json.JSONDecodeError as e:
            raise LineageError(f"Failed to parse metadata JSON: {e}") from e

        entries = data if isinstance(data, list) else [data]
        for entry in entries:
            if not isinstance(entry, dict):
                raise LineageError("Metadata JSON entries must be objects")
            try:
                self.add_table_schema(TableMetadata.from_dict(entry))
            except ValueError as e:
                raise LineageError(f"Invalid metadata entry: {e}") from e

    def export_to_json(self, indent: Optional[int] = 2) -> str:
        """Export every table as a JSON list, database by database."""
        tables = [
            schema.to_dict()
            for db in self._databases.values()
            for schema in db.tables.values()
        ]
        return json.dumps(tables, indent=indent, ensure_ascii=False)

    def clear(self) -> None:
        self._databases.clear()
