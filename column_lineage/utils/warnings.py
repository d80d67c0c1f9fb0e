"""
Warning system for lineage extraction.

This module defines the warning collection used while a statement is being
resolved. Conditions that degrade lineage without stopping it (unknown
tables, star expansion without metadata, arity mismatches) are recorded here
and attached to the LineageResult.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class LineageWarning:
    """Warning or error message for lineage extraction.

    Attributes:
        level: Severity level ("INFO", "WARNING", "ERROR").
        message: Warning or error message text.
        context: Optional context information (e.g., SQL snippet).

    Example:
        >>> warning = LineageWarning(level="WARNING", message="Unknown table")
        >>> warning.level
        'WARNING'
    """

    level: str
    message: str
    context: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate warning level."""
        valid_levels = ["INFO", "WARNING", "ERROR"]
        if self.level not in valid_levels:
            raise ValueError(
                f"Invalid warning level: {self.level}. "
                f"Must be one of {valid_levels}"
            )

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"level": self.level, "message": self.message, "context": self.context}


class WarningCollector:
    """Collects warnings during lineage extraction.

    One collector is shared by an extractor and every child extractor it
    creates for subqueries, so a single result carries all findings.

    Attributes:
        warnings: LineageWarning objects in the order they were added.

    Example:
        >>> collector = WarningCollector()
        >>> collector.add("WARNING", "Table 'x' not found in catalog")
        >>> collector.has_errors()
        False
        >>> len(collector.get_all())
        1
    """

    def __init__(self) -> None:
        self.warnings: list[LineageWarning] = []

    def add(
        self, level: str, message: str, context: Optional[str] = None
    ) -> None:
        """Add a warning or error message.

        Args:
            level: Severity level ("INFO", "WARNING", "ERROR").
            message: Warning or error message text.
            context: Optional context information (e.g., SQL snippet).
        """
        self.warnings.append(LineageWarning(level=level, message=message, context=context))

    def has_errors(self) -> bool:
        """Check if any error-level warnings exist."""
        return any(warning.level == "ERROR" for warning in self.warnings)

    def get_all(self) -> list[LineageWarning]:
        """Get all collected warnings, in the order they were added."""
        return self.warnings.copy()

    def get_by_level(self, level: str) -> list[LineageWarning]:
        """Get warnings with the given severity level."""
        return [warning for warning in self.warnings if warning.level == level]

    def clear(self) -> None:
        self.warnings.clear()

    def add_unresolved_warning(
        self,
        qualifier: str,
        available: list[str],
        context: Optional[str] = None,
    ) -> None:
        """Add a warning for a table qualifier no scope could resolve.

        Args:
            qualifier: The qualifier as written, e.g. ``x`` in ``x.id``.
            available: Aliases visible in the current scope.
            context: Optional SQL context for the warning.

        Example:
            >>> collector = WarningCollector()
            >>> collector.add_unresolved_warning("x", ["u", "o"], "x.id")
            >>> collector.get_all()[0].message
            "Table qualifier 'x' does not match any alias in scope (u, o). Using it as the table name."
        """
        visible = ", ".join(available) if available else "none"
        message = (
            f"Table qualifier '{qualifier}' does not match any alias in scope "
            f"({visible}). Using it as the table name."
        )
        self.add("WARNING", message, context)

    def add_missing_schema_warning(
        self, table_name: str, context: Optional[str] = None
    ) -> None:
        """Add a warning when a table has no catalog entry."""
        message = (
            f"Table '{table_name}' not found in catalog. "
            f"Unqualified columns cannot be attributed to it by name."
        )
        self.add("INFO", message, context)

    def add_star_skipped_warning(
        self, alias: str, context: Optional[str] = None
    ) -> None:
        """Add a warning when a star cannot be expanded for an alias."""
        message = (
            f"Cannot expand '*' for '{alias}': no column metadata available. "
            f"The source was skipped."
        )
        self.add("WARNING", message, context)

    def add_column_mismatch_warning(
        self,
        target: str,
        expected: int,
        actual: int,
        context: Optional[str] = None,
    ) -> None:
        """Add a warning when two column lists disagree in arity.

        Args:
            target: What was being matched (a table name or "UNION branch").
            expected: Number of columns expected.
            actual: Number of columns produced.
            context: Optional SQL context for the warning.
        """
        message = (
            f"Column count mismatch for {target}: expected {expected}, "
            f"got {actual}. Unmatched columns keep their inferred names."
        )
        self.add("WARNING", message, context)

    def get_summary(self) -> dict[str, int]:
        """Get a summary of warnings by level."""
        summary: dict[str, int] = {"INFO": 0, "WARNING": 0, "ERROR": 0}
        for warning in self.warnings:
            summary[warning.level] = summary.get(warning.level, 0) + 1
        return summary
