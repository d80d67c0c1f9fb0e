"""
Column lineage model.

This module defines the ColumnLineage class: one output column, the source
columns it was derived from, and the raw expression text that derived it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from column_lineage.models.column import ColumnRef


@dataclass
class ColumnLineage:
    """Lineage of a single output column.

    Attributes:
        target: The output column. ``target.table`` is the INSERT/UPDATE target
            table, or empty for a free-standing SELECT.
        sources: Source columns in expression traversal order. Duplicates are
            kept (``a + a`` has two sources).
        operators: Raw expression strings exactly as written in the SQL.

    Example:
        >>> lineage = ColumnLineage(
        ...     target=ColumnRef(table="", column="total"),
        ...     sources=[ColumnRef(table="orders", column="amount")],
        ...     operators=["SUM(amount)"],
        ... )
        >>> lineage.source_names()
        ['orders.amount']
    """

    target: ColumnRef
    sources: list[ColumnRef] = field(default_factory=list)
    operators: list[str] = field(default_factory=list)

    def source_names(self) -> list[str]:
        """Return the qualified names of all sources, in order."""
        return [source.to_qualified_name() for source in self.sources]

    def source_tables(self) -> list[str]:
        """Return distinct non-empty source tables in first-seen order."""
        tables: list[str] = []
        for source in self.sources:
            if source.table and source.table not in tables:
                tables.append(source.table)
        return tables

    def extend(self, other: ColumnLineage) -> None:
        """Append another lineage's sources and operators to this one.

        Used when merging the branches of a set operation positionally.

        Args:
            other: Lineage of the same output position in another branch.
        """
        self.sources.extend(other.sources)
        self.operators.extend(other.operators)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary."""
        return {
            "target": self.target.to_dict(),
            "sources": [source.to_dict() for source in self.sources],
            "operators": list(self.operators),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ColumnLineage:
        """Build a ColumnLineage from the output of ``to_dict``."""
        return cls(
            target=ColumnRef.from_dict(data["target"]),
            sources=[ColumnRef.from_dict(item) for item in data.get("sources", [])],
            operators=list(data.get("operators", [])),
        )
