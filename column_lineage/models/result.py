"""
Lineage result model.

This module defines LineageResult, the sole output of one analysis call, and
AnalysisOutcome, the per-statement record returned when a whole script is
analyzed.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from column_lineage.exceptions import LineageError
from column_lineage.models.column_lineage import ColumnLineage
from column_lineage.utils.warnings import LineageWarning

if TYPE_CHECKING:
    from column_lineage.graph.dependency_graph import DependencyGraph


@dataclass
class LineageResult:
    """Result of extracting lineage from one SQL statement.

    Attributes:
        columns: One ColumnLineage per output column, in SELECT-list order
            (star entries expanded in catalog order).
        warnings: Non-fatal findings collected while resolving the statement.
        sql: The analyzed SQL text, if known.

    Example:
        >>> result = analyzer.analyze("SELECT id, name FROM users")
        >>> [c.target.column for c in result.columns]
        ['id', 'name']
        >>> result.to_dict()["columns"][0]["operators"]
        ['id']
    """

    columns: list[ColumnLineage] = field(default_factory=list)
    warnings: list[LineageWarning] = field(default_factory=list)
    sql: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert result to its JSON object form.

        Only the lineage columns are included; warnings are exposed through
        the ``warnings`` attribute.

        Returns:
            ``{"columns": [{"target": ..., "sources": [...], "operators": [...]}]}``
        """
        return {"columns": [column.to_dict() for column in self.columns]}

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Convert result to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LineageResult:
        """Build a LineageResult from the output of ``to_dict``."""
        return cls(
            columns=[ColumnLineage.from_dict(item) for item in data.get("columns", [])]
        )

    def to_graph(self) -> DependencyGraph:
        """Convert result to a column dependency graph.

        Returns:
            DependencyGraph with one edge per (source, target) pair.

        Example:
            >>> graph = analyzer.analyze("SELECT a + b AS c FROM t").to_graph()
            >>> sorted(graph.get_upstream_columns("c"))
            ['t.a', 't.b']
        """
        from column_lineage.graph.dependency_graph import DependencyGraph

        graph = DependencyGraph()
        for column in self.columns:
            graph.add_lineage(column)
        return graph

    def get_lineage(self, target_column: str) -> Optional[ColumnLineage]:
        """Return the first lineage entry whose target column matches."""
        for column in self.columns:
            if column.target.column == target_column:
                return column
        return None

    def get_source_tables(self) -> list[str]:
        """Get all non-empty source tables (deduplicated, sorted)."""
        tables = {
            source.table
            for column in self.columns
            for source in column.sources
            if source.table
        }
        return sorted(tables)

    def get_target_columns(self) -> list[str]:
        """Get all target column names in output order."""
        return [column.target.column for column in self.columns]

    def has_warnings(self) -> bool:
        """Check if there are any WARNING or ERROR level findings.

        INFO level messages are not considered warnings.
        """
        return any(w.level in ("WARNING", "ERROR") for w in self.warnings)

    def to_formatted_string(self) -> str:
        """Generate a human-readable report.

        Example output:
            ================================================================
            Column Lineage
            ================================================================
            1. total
               Sources:   orders.amount
               Operators: SUM(amount)
        """
        lines = ["=" * 64, "Column Lineage", "=" * 64]
        if not self.columns:
            lines.append("(no output columns)")
        for index, column in enumerate(self.columns, 1):
            lines.append(f"{index}. {column.target.to_qualified_name()}")
            sources = ", ".join(column.source_names()) or "-"
            lines.append(f"   Sources:   {sources}")
            lines.append(f"   Operators: {' | '.join(column.operators) or '-'}")
        if self.warnings:
            lines.append("")
            lines.append(f"Warnings: {len(self.warnings)}")
            for warning in self.warnings:
                lines.append(f"[{warning.level}] {warning.message}")
        lines.append("=" * 64)
        return "\n".join(lines)


@dataclass
class AnalysisOutcome:
    """Outcome of analyzing one statement of a multi-statement script.

    Exactly one of ``result`` and ``error`` is set.

    Attributes:
        sql: The statement text as it appeared in the script.
        result: The lineage result when analysis succeeded.
        error: The error raised when analysis failed.
    """

    sql: str
    result: Optional[LineageResult] = None
    error: Optional[LineageError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"sql": self.sql, "ok": self.ok}
        if self.result is not None:
            data.update(self.result.to_dict())
        if self.error is not None:
            data["error"] = self.error.message
        return data
