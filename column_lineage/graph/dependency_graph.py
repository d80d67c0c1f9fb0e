"""
Dependency graph for lineage analysis.

This module defines the DependencyGraph class, which uses networkx to
build and query a directed graph of column lineage.
"""

from __future__ import annotations

from typing import Any, Optional

import networkx as nx

from column_lineage.models.column import ColumnRef
from column_lineage.models.column_lineage import ColumnLineage

OUTPUT_TABLE = "__OUTPUT__"


class DependencyGraph:
    """Directed graph of column lineage.

    Nodes are qualified column names (``table.column``, with the database
    prefix when known). Output columns of a free-standing SELECT have no
    table and are stored under ``__OUTPUT__.column``. Each edge points from
    a source column to the column derived from it and carries the operators
    that derived it.

    Lineage from several statements can be added to one graph; an INSERT
    target that a later query reads from then links both lineages.

    Attributes:
        graph: networkx DiGraph object representing the lineage.

    Example:
        >>> graph = DependencyGraph()
        >>> graph.add_lineage(result.columns[0])
        >>> graph.get_upstream_columns("total")
        {'orders.amount'}
    """

    def __init__(self) -> None:
        self.graph = nx.DiGraph()

    def add_lineage(self, lineage: ColumnLineage) -> None:
        """Add one column's lineage: an edge from every source to the target.

        Args:
            lineage: ColumnLineage to add.
        """
        target_id = self._node_id(lineage.target, output=True)
        self._add_node(target_id, lineage.target)
        for source in lineage.sources:
            source_id = self._node_id(source, output=False)
            self._add_node(source_id, source)
            if self.graph.has_edge(source_id, target_id):
                operators = self.graph.edges[source_id, target_id]["operators"]
                operators.extend(op for op in lineage.operators if op not in operators)
            else:
                self.graph.add_edge(source_id, target_id, operators=list(lineage.operators))

    def get_upstream_columns(self, column: str, table: Optional[str] = None) -> set[str]:
        """Get every column the given column depends on, transitively.

        Args:
            column: Target column name.
            table: Target table; None for output columns of a SELECT.

        Returns:
            Set of qualified column names (empty if the column is unknown).
        """
        node_id = f"{table}.{column}" if table else f"{OUTPUT_TABLE}.{column}"
        if node_id not in self.graph:
            return set()
        return set(nx.ancestors(self.graph, node_id))

    def get_downstream_columns(self, table: str, column: str) -> set[str]:
        """Get every column derived from a source column, transitively.

        Example:
            >>> graph.get_downstream_columns("orders", "amount")
            {'__OUTPUT__.total'}
        """
        node_id = f"{table}.{column}" if table else column
        if node_id not in self.graph:
            return set()
        return set(nx.descendants(self.graph, node_id))

    def get_source_tables(self) -> list[str]:
        """Return tables of columns that depend on nothing else, sorted."""
        tables = {
            data["table"]
            for node, data in self.graph.nodes(data=True)
            if self.graph.in_degree(node) == 0 and data.get("table")
        }
        return sorted(tables)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        """Export graph to a JSON-ready dictionary of nodes and edges."""
        return {
            "nodes": [
                {
                    "id": node,
                    "table": data.get("table"),
                    "column": data.get("column"),
                }
                for node, data in self.graph.nodes(data=True)
            ],
            "edges": [
                {
                    "source": u,
                    "target": v,
                    "operators": list(data.get("operators", [])),
                }
                for u, v, data in self.graph.edges(data=True)
            ],
        }

    def to_dot(self) -> str:
        """Export graph to Graphviz DOT format."""
        lines = ["digraph lineage {", "  rankdir=LR;"]
        for node in self.graph.nodes:
            lines.append(f'  "{_escape(node)}";')
        for u, v, data in self.graph.edges(data=True):
            label = _escape(", ".join(data.get("operators", [])))
            lines.append(f'  "{_escape(u)}" -> "{_escape(v)}" [label="{label}"];')
        lines.append("}")
        return "\n".join(lines)

    @staticmethod
    def _node_id(ref: ColumnRef, output: bool) -> str:
        if output and not ref.table and not ref.database:
            return f"{OUTPUT_TABLE}.{ref.column}"
        return ref.to_qualified_name()

    def _add_node(self, node_id: str, ref: ColumnRef) -> None:
        if node_id not in self.graph:
            self.graph.add_node(node_id, table=ref.table, column=ref.column)


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", " ")
