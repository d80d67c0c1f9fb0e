"""
Abstract catalog interface.

This module defines the Catalog abstract base class and the TableSchema value
it returns. A Catalog is the read-only source of table column lists the
extractor consults for star expansion and for attributing unqualified
columns. The extractor never writes to a Catalog, so one instance may be
shared by concurrent analyses as long as its reads are thread-safe.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TableSchema:
    """Column list of one table, as seen by the extractor.

    Attributes:
        table: Table name.
        columns: Column names in table order.
        database: Database the table belongs to, or empty.

    Example:
        >>> schema = TableSchema(table="orders", columns=("id", "amount"))
        >>> schema.has_column("AMOUNT")
        True
    """

    table: str
    columns: tuple[str, ...] = ()
    database: str = ""

    def has_column(self, column: str) -> bool:
        wanted = column.lower()
        return any(name.lower() == wanted for name in self.columns)


class Catalog(ABC):
    """Abstract interface for table metadata lookup.

    Implementations may be backed by a dictionary (DictCatalog), a metadata
    provider (CatalogAdapter), or anything else that can answer
    ``get_table_schema``. Callers pass table names already case-normalized;
    a Catalog does not have to normalize.

    Example:
        >>> class StaticCatalog(Catalog):
        ...     def get_table_schema(self, database, table):
        ...         if table == "orders":
        ...             return TableSchema(table="orders", columns=("id",))
        ...         return None
        >>> StaticCatalog().get_table_columns(None, "orders")
        ['id']
    """

    @abstractmethod
    def get_table_schema(
        self, database: Optional[str], table: str
    ) -> Optional[TableSchema]:
        """Return the schema of a table.

        Args:
            database: Database qualifier as written in the SQL, or None.
            table: Table name.

        Returns:
            The TableSchema, or None if the table is unknown.
        """

    def get_table_columns(self, database: Optional[str], table: str) -> list[str]:
        """Return the column names of a table, or an empty list if unknown."""
        schema = self.get_table_schema(database, table)
        if schema is None:
            return []
        return list(schema.columns)

    def column_exists(self, database: Optional[str], table: str, column: str) -> bool:
        """Check if a column exists in a table."""
        schema = self.get_table_schema(database, table)
        return schema is not None and schema.has_column(column)
