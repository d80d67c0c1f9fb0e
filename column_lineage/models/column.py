"""
Column reference model.

This module defines the ColumnRef class, a resolved reference to a column in
lineage output. The table is whatever alias resolution produced; it may be an
empty string when a column could not be attributed to any table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True, eq=True)
class ColumnRef:
    """Represents a resolved column reference in lineage output.

    ColumnRef is immutable and hashable, so it can be used as a set member or
    dictionary key.

    Attributes:
        table: Name of the table the column belongs to. Empty when the column
            could not be attributed to a table.
        column: Name of the column (required).
        database: Optional database the table belongs to.

    Example:
        >>> ColumnRef(table="orders", column="amount").to_qualified_name()
        'orders.amount'
        >>> ColumnRef(table="", column="amount").to_qualified_name()
        'amount'
        >>> ColumnRef(table="orders", column="id", database="sales").to_dict()
        {'database': 'sales', 'table': 'orders', 'column': 'id'}
    """

    table: str
    column: str
    database: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate that the column name is not empty."""
        if not self.column:
            raise ValueError("column name cannot be empty")

    def to_qualified_name(self) -> str:
        """Return the dotted name, omitting empty components.

        Returns:
            ``database.table.column``, ``table.column`` or ``column``.
        """
        parts: list[str] = []
        if self.database:
            parts.append(self.database)
        if self.table:
            parts.append(self.table)
        parts.append(self.column)
        return ".".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary.

        ``database`` is omitted when empty.

        Returns:
            Dictionary with ``table`` and ``column`` (and ``database``).
        """
        data: dict[str, Any] = {}
        if self.database:
            data["database"] = self.database
        data["table"] = self.table
        data["column"] = self.column
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ColumnRef:
        """Build a ColumnRef from the output of ``to_dict``."""
        return cls(
            table=data.get("table", ""),
            column=data["column"],
            database=data.get("database") or None,
        )

    def __str__(self) -> str:
        return self.to_qualified_name()
