"""
Rich table metadata.

These types describe tables the way DDL or a metadata export does: column
types, nullability, keys and comments. The extractor only needs column names;
CatalogAdapter narrows a TableMetadata down to a catalog TableSchema.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ColumnMetadata:
    """Metadata of one column.

    Attributes:
        name: Column name.
        data_type: Declared type as written (e.g. ``DECIMAL(10,2)``), or empty.
        nullable: False for NOT NULL and primary key columns.
        primary_key: True if the column is part of the primary key.
        comment: Column comment, or empty.
        default_expr: SQL text of the DEFAULT expression, or empty.
    """

    name: str
    data_type: str = ""
    nullable: bool = True
    primary_key: bool = False
    comment: str = ""
    default_expr: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "data_type": self.data_type,
            "nullable": self.nullable,
            "primary_key": self.primary_key,
        }
        if self.comment:
            data["comment"] = self.comment
        if self.default_expr:
            data["default_expr"] = self.default_expr
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ColumnMetadata:
        if "name" not in data:
            raise ValueError("column entry must have a 'name'")
        return cls(
            name=data["name"],
            data_type=data.get("data_type", ""),
            nullable=data.get("nullable", True),
            primary_key=data.get("primary_key", False),
            comment=data.get("comment", ""),
            default_expr=data.get("default_expr", ""),
        )


@dataclass
class TableMetadata:
    """Metadata of one table or view.

    Attributes:
        table: Table name.
        columns: Columns in declaration order.
        database: Database name, or empty for the provider's default.
        schema: Schema name for engines that have one (e.g. PostgreSQL).
        primary_key: Primary key column names.
        comment: Table comment.
        table_type: ``TABLE``, ``VIEW``, ``EXTERNAL`` or ``TEMPORARY``.

    Example:
        >>> orders = TableMetadata(
        ...     table="orders",
        ...     columns=[ColumnMetadata("id", "INT"), ColumnMetadata("amount")],
        ... )
        >>> orders.get_column_names()
        ['id', 'amount']
        >>> orders.has_column("amount")
        True
    """

    table: str
    columns: list[ColumnMetadata] = field(default_factory=list)
    database: str = ""
    schema: str = ""
    primary_key: list[str] = field(default_factory=list)
    comment: str = ""
    table_type: str = "TABLE"

    def get_column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    def get_column(self, name: str) -> Optional[ColumnMetadata]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def has_column(self, name: str) -> bool:
        return self.get_column(name) is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary, omitting empty optional fields."""
        data: dict[str, Any] = {}
        if self.database:
            data["database"] = self.database
        if self.schema:
            data["schema"] = self.schema
        data["table"] = self.table
        data["columns"] = [column.to_dict() for column in self.columns]
        if self.primary_key:
            data["primary_key"] = list(self.primary_key)
        if self.comment:
            data["comment"] = self.comment
        if self.table_type:
            data["table_type"] = self.table_type
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TableMetadata:
        """Build table metadata from a dictionary.

        Columns may be given as full column objects or as bare names.

        Raises:
            ValueError: If the ``table`` key is missing.
        """
        if not data.get("table"):
            raise ValueError("table entry must have a 'table'")
        columns = [
            ColumnMetadata(name=item) if isinstance(item, str) else ColumnMetadata.from_dict(item)
            for item in data.get("columns", [])
        ]
        return cls(
            table=data["table"],
            columns=columns,
            database=data.get("database", ""),
            schema=data.get("schema", ""),
            primary_key=list(data.get("primary_key", [])),
            comment=data.get("comment", ""),
            table_type=data.get("table_type", "TABLE"),
        )


@dataclass
class DatabaseMetadata:
    """Tables of one database, keyed by table name."""

    name: str
    tables: dict[str, TableMetadata] = field(default_factory=dict)

    def add_table(self, table: TableMetadata) -> None:
        self.tables[table.table] = table

    def get_table(self, name: str) -> Optional[TableMetadata]:
        return self.tables.get(name)
