"""
Data models for column lineage.

This package contains the lineage output types (column references, column
lineage, results), the resolution Scope and the extraction configuration.
"""

from column_lineage.models.column import ColumnRef
from column_lineage.models.column_lineage import ColumnLineage
from column_lineage.models.config import ErrorMode, LineageConfig
from column_lineage.models.result import AnalysisOutcome, LineageResult
from column_lineage.models.scope import Scope

__all__ = [
    "AnalysisOutcome",
    "ColumnLineage",
    "ColumnRef",
    "ErrorMode",
    "LineageConfig",
    "LineageResult",
    "Scope",
]
