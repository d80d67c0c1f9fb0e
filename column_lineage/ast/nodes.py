"""
Typed syntax tree for the SQL subset understood by the lineage extractor.

Every node is a frozen dataclass; child collections are tuples, so a built
tree can be shared freely and never changes after the tree builder returns
it. Expressions that can appear in a SELECT list keep ``raw_text``, the exact
slice of the source SQL they were parsed from.

Dispatch is by class name: ``node.accept(visitor)`` calls
``visitor.visit_<ClassName>(node)`` (see column_lineage.ast.visitor).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NamedTuple, Optional


class Span(NamedTuple):
    """Character offsets ``[start, end)`` of a statement in its source."""

    start: int
    end: int

    def slice(self, source: str) -> str:
        return source[self.start:self.end]


class Node:
    """Base class for all syntax tree nodes."""

    def accept(self, visitor: Any) -> Any:
        return visitor.visit(self)


class Expression(Node):
    """Base class for expression nodes."""


# Expressions


@dataclass(frozen=True)
class ColumnRefExpr(Expression):
    """A possibly qualified column reference, e.g. ``u.name``."""

    column: str
    table: Optional[str] = None
    database: Optional[str] = None
    raw_text: str = ""


@dataclass(frozen=True)
class Literal(Expression):
    """A constant.

    ``kind`` is one of ``number``, ``string``, ``boolean``, ``null`` or
    ``interval``, or the lower-cased type name of a typed literal such as
    ``DATE '2024-01-01'``. String values are stored without their quotes.
    """

    value: str
    kind: str


@dataclass(frozen=True)
class OrderByElement(Node):
    expr: Expression
    descending: bool = False


@dataclass(frozen=True)
class WindowSpec(Node):
    """``OVER (PARTITION BY ... ORDER BY ...)``. Frame clauses are not kept."""

    partition_by: tuple[Expression, ...] = ()
    order_by: tuple[OrderByElement, ...] = ()


@dataclass(frozen=True)
class FunctionCall(Expression):
    """A function or aggregate call.

    ``COUNT(*)`` is a call with no arguments and ``star_argument`` set.
    ``CAST(x AS t)`` and ``EXTRACT(unit FROM x)`` are calls named ``CAST``
    and ``EXTRACT`` with ``x`` as their only argument.
    """

    name: str
    args: tuple[Expression, ...] = ()
    distinct: bool = False
    star_argument: bool = False
    window: Optional[WindowSpec] = None
    raw_text: str = ""


@dataclass(frozen=True)
class BinaryExpr(Expression):
    left: Expression
    op: str
    right: Expression
    raw_text: str = ""


@dataclass(frozen=True)
class UnaryExpr(Expression):
    """Prefix or postfix operator: ``NOT``, ``-``, ``+``, ``EXISTS``,
    ``IS NULL`` and ``IS NOT NULL``."""

    op: str
    operand: Expression
    raw_text: str = ""


@dataclass(frozen=True)
class InExpr(Expression):
    """``operand [NOT] IN (values...)``; a subquery is a single Subquery value."""

    operand: Expression
    values: tuple[Expression, ...]
    negated: bool = False
    raw_text: str = ""


@dataclass(frozen=True)
class BetweenExpr(Expression):
    operand: Expression
    low: Expression
    high: Expression
    negated: bool = False
    raw_text: str = ""


@dataclass(frozen=True)
class WhenClause(Node):
    condition: Expression
    result: Expression


@dataclass(frozen=True)
class CaseExpr(Expression):
    """``CASE [operand] WHEN ... THEN ... [ELSE ...] END``."""

    whens: tuple[WhenClause, ...]
    operand: Optional[Expression] = None
    else_result: Optional[Expression] = None
    raw_text: str = ""


@dataclass(frozen=True)
class Subquery(Expression):
    """A parenthesised query used as an expression."""

    query: SelectStmt
    raw_text: str = ""


@dataclass(frozen=True)
class Star(Expression):
    """``*`` or ``table.*``."""

    table: Optional[str] = None


@dataclass(frozen=True)
class AliasedExpr(Expression):
    """A SELECT-list entry: an expression and its optional alias."""

    expr: Expression
    alias: Optional[str] = None


# Table sources


@dataclass(frozen=True)
class TableRef(Node):
    table: str
    database: Optional[str] = None
    alias: Optional[str] = None

    def qualified_name(self) -> str:
        return f"{self.database}.{self.table}" if self.database else self.table


@dataclass(frozen=True)
class JoinClause(Node):
    """A join onto the preceding source.

    ``kind`` is the upper-cased join keyword sequence, e.g. ``"LEFT OUTER"``,
    or ``"INNER"`` for a bare ``JOIN``.
    """

    kind: str
    table: TableSource
    condition: Optional[Expression] = None
    using: tuple[str, ...] = ()


@dataclass(frozen=True)
class TableSource(Node):
    """Either a base table or a derived table, plus the joins chained onto it."""

    table: Optional[TableRef] = None
    subquery: Optional[SelectStmt] = None
    alias: Optional[str] = None
    column_aliases: tuple[str, ...] = ()
    joins: tuple[JoinClause, ...] = ()


@dataclass(frozen=True)
class FromClause(Node):
    tables: tuple[TableSource, ...]


@dataclass(frozen=True)
class CTE(Node):
    name: str
    query: SelectStmt
    columns: tuple[str, ...] = ()


@dataclass(frozen=True)
class WithClause(Node):
    ctes: tuple[CTE, ...]
    recursive: bool = False


@dataclass(frozen=True)
class SetOperation(Node):
    """One ``UNION``/``INTERSECT``/``EXCEPT`` branch after the first SELECT."""

    kind: str
    query: SelectStmt
    all: bool = False


# Statements


class Statement(Node):
    """Base class for top-level statements."""

    span: Optional[Span]


@dataclass(frozen=True)
class SelectStmt(Statement):
    select_list: tuple[AliasedExpr, ...]
    distinct: bool = False
    with_clause: Optional[WithClause] = None
    from_clause: Optional[FromClause] = None
    where: Optional[Expression] = None
    group_by: tuple[Expression, ...] = ()
    having: Optional[Expression] = None
    order_by: tuple[OrderByElement, ...] = ()
    limit: Optional[Expression] = None
    offset: Optional[Expression] = None
    set_operations: tuple[SetOperation, ...] = ()
    span: Optional[Span] = None


@dataclass(frozen=True)
class InsertStmt(Statement):
    """``INSERT INTO t [(cols)] SELECT ...`` or ``... VALUES (...)``."""

    table: TableRef
    columns: tuple[str, ...] = ()
    select: Optional[SelectStmt] = None
    values: tuple[tuple[Expression, ...], ...] = ()
    overwrite: bool = False
    span: Optional[Span] = None


@dataclass(frozen=True)
class Assignment(Node):
    column: str
    value: Expression


@dataclass(frozen=True)
class UpdateStmt(Statement):
    table: TableRef
    assignments: tuple[Assignment, ...]
    from_clause: Optional[FromClause] = None
    where: Optional[Expression] = None
    span: Optional[Span] = None


@dataclass(frozen=True)
class DeleteStmt(Statement):
    table: TableRef
    where: Optional[Expression] = None
    span: Optional[Span] = None
