"""
Lineage analysis.

This package contains the LineageExtractor, which resolves a syntax tree
against a Catalog, and the LineageAnalyzer main entry point.
"""

from column_lineage.analyzer.extractor import LineageExtractor
from column_lineage.analyzer.lineage_analyzer import LineageAnalyzer

__all__ = [
    "LineageAnalyzer",
    "LineageExtractor",
]
