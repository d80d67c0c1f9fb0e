"""
Configuration model for lineage extraction.

This module defines the LineageConfig class and ErrorMode enum, which control
how the extractor reacts to unresolved references and arity mismatches, how
deep nested queries may go, and how catalog lookups are normalized.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorMode(str, Enum):
    """Enumeration of error handling modes for lineage extraction.

    Attributes:
        FAIL: Raise an exception immediately.
        WARN: Record a warning on the result and continue.
        IGNORE: Continue silently.

    Example:
        >>> ErrorMode.values()
        ['fail', 'warn', 'ignore']
    """

    FAIL = "fail"
    WARN = "warn"
    IGNORE = "ignore"

    @classmethod
    def values(cls) -> list[str]:
        """Return a list of all possible error mode values."""
        return [member.value for member in cls]


@dataclass
class LineageConfig:
    """Configuration settings for lineage extraction.

    All settings have defaults that favour partial lineage over failure.

    Attributes:
        on_unresolved: Mode used when a table qualifier (``x`` in ``x.col``)
            names no alias visible in the scope chain. The qualifier is then
            reported verbatim as the source table. Defaults to WARN.
        on_column_mismatch: Mode used when an INSERT column list or a set
            operation branch disagrees in arity with the SELECT list.
            Defaults to WARN.
        max_depth: Maximum nesting of subqueries, CTE bodies and derived
            tables before QueryDepthExceededError is raised. Defaults to 64.
        normalize_case: Lower-case table names before catalog lookup.
            Names are still reported as written. Defaults to True.
        trace_through_derived: When True, a column read from a CTE or derived
            table reports the base-table sources of that column instead of
            the CTE/derived alias itself. Defaults to False (one hop).

    Example:
        >>> config = LineageConfig(on_unresolved=ErrorMode.FAIL)
        >>> config.max_depth
        64
    """

    on_unresolved: ErrorMode = ErrorMode.WARN
    on_column_mismatch: ErrorMode = ErrorMode.WARN
    max_depth: int = 64
    normalize_case: bool = True
    trace_through_derived: bool = False

    def __post_init__(self) -> None:
        """Validate configuration settings."""
        if not isinstance(self.on_unresolved, ErrorMode):
            raise TypeError("on_unresolved must be an ErrorMode instance")
        if not isinstance(self.on_column_mismatch, ErrorMode):
            raise TypeError("on_column_mismatch must be an ErrorMode instance")
        if not isinstance(self.max_depth, int) or isinstance(self.max_depth, bool):
            raise TypeError("max_depth must be an integer")
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        if not isinstance(self.normalize_case, bool):
            raise TypeError("normalize_case must be a boolean")
        if not isinstance(self.trace_through_derived, bool):
            raise TypeError("trace_through_derived must be a boolean")
