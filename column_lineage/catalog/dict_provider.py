"""
Dictionary-based catalog implementation.

This module defines DictCatalog, a Catalog backed by a plain mapping of table
names to column lists. It is what tests, the CLI ``--catalog`` option and
small applications use when no richer metadata is available.
"""

from __future__ import annotations

from typing import Optional

from column_lineage.catalog.provider import Catalog, TableSchema


class DictCatalog(Catalog):
    """Catalog that reads table columns from a dictionary.

    Keys are ``"table"`` or ``"database.table"``; they are lower-cased on
    construction. A lookup with a database first tries the qualified key,
    then the bare table name.

    Attributes:
        tables: Lower-cased key -> column names.

    Example:
        >>> catalog = DictCatalog({
        ...     "orders": ["id", "user_id", "amount"],
        ...     "crm.users": ["id", "name"],
        ... })
        >>> catalog.get_table_columns(None, "orders")
        ['id', 'user_id', 'amount']
        >>> catalog.get_table_schema("crm", "users").database
        'crm'
        >>> catalog.get_table_schema(None, "missing") is None
        True
    """

    def __init__(self, schema_dict: dict[str, list[str]]) -> None:
        """Initialize a DictCatalog.

        Args:
            schema_dict: Mapping of table keys to column name lists.

        Raises:
            ValueError: If schema_dict is None.
            TypeError: If schema_dict is not a dictionary.
        """
        if schema_dict is None:
            raise ValueError("schema_dict cannot be None")
        if not isinstance(schema_dict, dict):
            raise TypeError("schema_dict must be a dictionary")

        self.tables: dict[str, list[str]] = {
            key.lower(): list(columns) for key, columns in schema_dict.items()
        }

    def get_table_schema(
        self, database: Optional[str], table: str
    ) -> Optional[TableSchema]:
        if not table:
            return None

        if database:
            qualified = f"{database}.{table}".lower()
            if qualified in self.tables:
                return TableSchema(
                    table=table,
                    columns=tuple(self.tables[qualified]),
                    database=database,
                )

        columns = self.tables.get(table.lower())
        if columns is None:
            return None
        return TableSchema(table=table, columns=tuple(columns), database=database or "")

    def add_table(self, table: str, columns: list[str]) -> None:
        """Register or replace a table's columns."""
        self.tables[table.lower()] = list(columns)
