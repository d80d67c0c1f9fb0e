"""
Utility helpers for column lineage.
"""

from column_lineage.utils.warnings import LineageWarning, WarningCollector

__all__ = ["LineageWarning", "WarningCollector"]
