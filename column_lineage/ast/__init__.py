"""
Syntax tree for SQL statements and expressions.
"""

from column_lineage.ast.nodes import (
    CTE,
    AliasedExpr,
    Assignment,
    BetweenExpr,
    BinaryExpr,
    CaseExpr,
    ColumnRefExpr,
    DeleteStmt,
    Expression,
    FromClause,
    FunctionCall,
    InExpr,
    InsertStmt,
    JoinClause,
    Literal,
    Node,
    OrderByElement,
    SelectStmt,
    SetOperation,
    Span,
    Star,
    Statement,
    Subquery,
    TableRef,
    TableSource,
    UnaryExpr,
    UpdateStmt,
    WhenClause,
    WindowSpec,
    WithClause,
)
from column_lineage.ast.visitor import Visitor

__all__ = [
    "AliasedExpr",
    "Assignment",
    "BetweenExpr",
    "BinaryExpr",
    "CTE",
    "CaseExpr",
    "ColumnRefExpr",
    "DeleteStmt",
    "Expression",
    "FromClause",
    "FunctionCall",
    "InExpr",
    "InsertStmt",
    "JoinClause",
    "Literal",
    "Node",
    "OrderByElement",
    "SelectStmt",
    "SetOperation",
    "Span",
    "Star",
    "Statement",
    "Subquery",
    "TableRef",
    "TableSource",
    "UnaryExpr",
    "UpdateStmt",
    "Visitor",
    "WhenClause",
    "WindowSpec",
    "WithClause",
]
