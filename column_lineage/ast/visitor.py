"""
Visitor base class for the syntax tree.
"""

from __future__ import annotations

from typing import Any

from column_lineage.ast.nodes import Node


class Visitor:
    """Dispatches ``visit(node)`` to ``visit_<ClassName>``.

    Subclasses implement only the node types they care about; anything else
    goes to ``generic_visit``, which raises so an unhandled node type is never
    silently ignored.

    Example:
        >>> class Names(Visitor):
        ...     def visit_ColumnRefExpr(self, node):
        ...         return [node.column]
        >>> ColumnRefExpr(column="id").accept(Names())
        ['id']
    """

    def visit(self, node: Node) -> Any:
        method = getattr(self, f"visit_{type(node).__name__}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: Node) -> Any:
        raise NotImplementedError(
            f"{type(self).__name__} does not handle {type(node).__name__}"
        )
