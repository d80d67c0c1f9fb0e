"""
Dependency graph module.

This package contains the networkx-backed DependencyGraph view of lineage
results.
"""

from column_lineage.graph.dependency_graph import OUTPUT_TABLE, DependencyGraph

__all__ = [
    "DependencyGraph",
    "OUTPUT_TABLE",
]
