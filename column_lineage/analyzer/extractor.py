"""
Scope-aware lineage extractor.

This module defines the LineageExtractor class, which walks a typed syntax
tree with a Catalog and produces one ColumnLineage per output column.

Resolution rules:
    - FROM sources and joins are registered left to right under their alias
      (or bare table name); a later registration of the same alias wins.
    - CTEs and derived tables behave like tables whose catalog columns are
      the output names of their query. They are resolved lazily, only when
      referenced from a FROM clause.
    - Qualified column references resolve through the scope chain;
      unqualified references use the current scope only.
    - Subqueries get a child extractor with a child scope; only the sources
      of their lineage flow into the outer column.
"""

from __future__ import annotations

import logging
from typing import Optional

from column_lineage.ast.nodes import (
    AliasedExpr,
    BetweenExpr,
    BinaryExpr,
    CaseExpr,
    ColumnRefExpr,
    DeleteStmt,
    Expression,
    FunctionCall,
    InExpr,
    InsertStmt,
    Literal,
    SelectStmt,
    Star,
    Statement,
    Subquery,
    TableRef,
    TableSource,
    UnaryExpr,
    UpdateStmt,
)
from column_lineage.ast.visitor import Visitor
from column_lineage.catalog.provider import Catalog
from column_lineage.exceptions import (
    ColumnCountMismatchError,
    LineageError,
    QueryDepthExceededError,
    UnresolvedReferenceError,
)
from column_lineage.models.column import ColumnRef
from column_lineage.models.column_lineage import ColumnLineage
from column_lineage.models.config import ErrorMode, LineageConfig
from column_lineage.models.result import LineageResult
from column_lineage.models.scope import Scope
from column_lineage.utils.warnings import WarningCollector

logger = logging.getLogger(__name__)

DERIVED_ALIAS = "_derived"


class _SourceCollector(Visitor):
    """Collects the source columns of an expression in traversal order."""

    def __init__(self, extractor: LineageExtractor) -> None:
        self.extractor = extractor

    def visit_ColumnRefExpr(self, node: ColumnRefExpr) -> list[ColumnRef]:
        return self.extractor.resolve_column(node)

    def visit_Literal(self, node: Literal) -> list[ColumnRef]:
        return []

    def visit_FunctionCall(self, node: FunctionCall) -> list[ColumnRef]:
        return self._collect(*node.args)

    def visit_BinaryExpr(self, node: BinaryExpr) -> list[ColumnRef]:
        return self._collect(node.left, node.right)

    def visit_UnaryExpr(self, node: UnaryExpr) -> list[ColumnRef]:
        return self._collect(node.operand)

    def visit_InExpr(self, node: InExpr) -> list[ColumnRef]:
        return self._collect(node.operand, *node.values)

    def visit_BetweenExpr(self, node: BetweenExpr) -> list[ColumnRef]:
        return self._collect(node.operand, node.low, node.high)

    def visit_CaseExpr(self, node: CaseExpr) -> list[ColumnRef]:
        parts: list[Expression] = []
        if node.operand is not None:
            parts.append(node.operand)
        for when in node.whens:
            parts.extend((when.condition, when.result))
        if node.else_result is not None:
            parts.append(node.else_result)
        return self._collect(*parts)

    def visit_Star(self, node: Star) -> list[ColumnRef]:
        return [
            source
            for _, sources in self.extractor.expand_star(node)
            for source in sources
        ]

    def visit_Subquery(self, node: Subquery) -> list[ColumnRef]:
        return self.extractor.subquery_sources(node)

    def visit_AliasedExpr(self, node: AliasedExpr) -> list[ColumnRef]:
        return node.expr.accept(self)

    def _collect(self, *nodes: Expression) -> list[ColumnRef]:
        sources: list[ColumnRef] = []
        for node in nodes:
            sources.extend(node.accept(self))
        return sources


class LineageExtractor:
    """Extracts column lineage from one statement.

    An extractor owns one Scope. Nested queries (subqueries, CTE bodies,
    derived tables) are handled by child extractors that share the catalog,
    the configuration and the warning collector.

    Attributes:
        catalog: Catalog used for star expansion and column attribution, or
            None to run without metadata.
        config: LineageConfig controlling error modes and limits.
        scope: Scope of the query level this extractor resolves.
        warnings: WarningCollector shared with child extractors.
        depth: Nesting level of this extractor (0 for the statement).

    Example:
        >>> catalog = DictCatalog({"orders": ["id", "user_id", "amount"]})
        >>> stmt = SQLParser().parse("SELECT SUM(amount) AS total FROM orders")
        >>> result = LineageExtractor(catalog).extract(stmt)
        >>> result.columns[0].source_names(), result.columns[0].operators
        (['orders.amount'], ['SUM(amount)'])
    """

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        config: Optional[LineageConfig] = None,
        scope: Optional[Scope] = None,
        warnings: Optional[WarningCollector] = None,
        depth: int = 0,
        resolving: frozenset[str] = frozenset(),
    ) -> None:
        """Initialize a LineageExtractor.

        Args:
            catalog: Catalog for table columns (optional).
            config: LineageConfig; defaults are used when omitted.
            scope: Scope to resolve in; a fresh root scope when omitted.
            warnings: Collector to record findings in; a new one when omitted.
            depth: Nesting level, used for the max_depth guard.
            resolving: Lower-cased names of CTEs whose bodies are currently
                being resolved; a reference to one of them from inside its own
                body is treated as an unknown table.

        Raises:
            QueryDepthExceededError: If depth exceeds config.max_depth.
        """
        self.catalog = catalog
        self.config = config if config is not None else LineageConfig()
        self.scope = scope if scope is not None else Scope()
        self.warnings = warnings if warnings is not None else WarningCollector()
        self.depth = depth
        self._resolving = resolving
        self._collector = _SourceCollector(self)

        if depth > self.config.max_depth:
            raise QueryDepthExceededError(
                f"Query nesting exceeds the maximum depth of {self.config.max_depth}",
                self.config.max_depth,
            )

    def extract(self, statement: Statement) -> LineageResult:
        """Extract lineage from a statement.

        Args:
            statement: SelectStmt, InsertStmt, UpdateStmt or DeleteStmt.

        Returns:
            LineageResult with one entry per output column. DELETE and
            INSERT ... VALUES produce no entries.

        Raises:
            LineageError: On FAIL-mode conditions or unsupported statements.
        """
        if isinstance(statement, SelectStmt):
            columns = self.extract_select(statement, "")
        elif isinstance(statement, InsertStmt):
            columns = self._extract_insert(statement)
        elif isinstance(statement, UpdateStmt):
            columns = self._extract_update(statement)
        elif isinstance(statement, DeleteStmt):
            columns = []
        else:
            raise LineageError(f"Unsupported statement type: {type(statement).__name__}")
        return LineageResult(columns=columns, warnings=self.warnings.get_all())

    def extract_select(self, stmt: SelectStmt, target_table: str) -> list[ColumnLineage]:
        """Extract lineage of a query, including its set-operation branches.

        Args:
            stmt: The query.
            target_table: Table reported in every target (empty for a
                free-standing query, the INSERT table otherwise).

        Returns:
            One ColumnLineage per output column of the first branch; later
            branches contribute their sources and operators positionally.
        """
        if stmt.with_clause is not None:
            for cte in stmt.with_clause.ctes:
                self.scope.register_cte(cte)

        columns = self._extract_core(stmt, target_table)

        for operation in stmt.set_operations:
            branch = self._child(
                Scope(parent=self.scope.parent, cte_map=dict(self.scope.cte_map)),
                depth=self.depth,
            )
            branch_columns = branch.extract_select(operation.query, target_table)
            if len(branch_columns) != len(columns):
                self._column_mismatch(
                    f"{operation.kind} branch", len(columns), len(branch_columns)
                )
            for column, other in zip(columns, branch_columns):
                column.extend(other)
        return columns

    def extract_expression(self, expr: Expression) -> tuple[list[ColumnRef], list[str]]:
        """Return the sources and operators of one expression.

        The operator list holds the expression's own raw text (or a fallback
        label). Literals report no operator.
        """
        while isinstance(expr, AliasedExpr):
            expr = expr.expr
        sources = expr.accept(self._collector)
        operator = _operator(expr)
        return sources, [operator] if operator else []

    def resolve_column(self, expr: ColumnRefExpr) -> list[ColumnRef]:
        """Resolve a column reference to its source columns.

        A qualified reference looks its qualifier up in this scope and then
        in each enclosing scope, falling back to a table of this scope
        registered under that name. An unqualified reference goes to the
        only registered source, else to the first source whose known columns
        include it, else to an empty table.
        """
        if expr.table:
            binding = self.scope.find_binding(expr.table)
            if binding is not None:
                owner, ref = binding
                return self._column_sources(owner, expr.table, ref, expr.column)

            alias = self._alias_for_table_name(expr.table)
            if alias is not None:
                ref = self.scope.table_alias[alias]
                return self._column_sources(self.scope, alias, ref, expr.column)

            self._unresolved(expr.table, expr.raw_text or f"{expr.table}.{expr.column}")
            return [ColumnRef(table=expr.table, column=expr.column, database=expr.database)]

        alias = self.scope.single_alias() or self.scope.find_alias_for_column(expr.column)
        if alias is None:
            return [ColumnRef(table="", column=expr.column)]
        return self._column_sources(
            self.scope, alias, self.scope.table_alias[alias], expr.column
        )

    def expand_star(self, star: Star) -> list[tuple[str, list[ColumnRef]]]:
        """Expand ``*`` or ``alias.*`` into (column name, sources) pairs.

        Aliases without known columns are skipped with a warning.
        """
        if star.table is None:
            aliases = self.scope.aliases()
        elif star.table in self.scope.table_alias:
            aliases = [star.table]
        else:
            alias = self._alias_for_table_name(star.table)
            if alias is None:
                self._unresolved(star.table, f"{star.table}.*")
                return []
            aliases = [alias]

        context = f"{star.table}.*" if star.table else "*"
        expanded: list[tuple[str, list[ColumnRef]]] = []
        for alias in aliases:
            names = self.scope.columns.get(alias)
            if names is None:
                self.warnings.add_star_skipped_warning(alias, context)
                continue
            ref = self.scope.table_alias[alias]
            for name in names:
                expanded.append((name, self._column_sources(self.scope, alias, ref, name)))
        return expanded

    def subquery_sources(self, subquery: Subquery) -> list[ColumnRef]:
        """Return the sources of every output column of a subquery, in order."""
        child = self._child(Scope(parent=self.scope))
        columns = child.extract_select(subquery.query, "")
        return [source for column in columns for source in column.sources]

    # Select list

    def _extract_core(self, stmt: SelectStmt, target_table: str) -> list[ColumnLineage]:
        if stmt.from_clause is not None:
            for source in stmt.from_clause.tables:
                self._register_source(source)

        columns: list[ColumnLineage] = []
        for index, item in enumerate(stmt.select_list):
            if isinstance(item.expr, Star):
                for name, sources in self.expand_star(item.expr):
                    columns.append(
                        ColumnLineage(
                            target=ColumnRef(table=target_table, column=name),
                            sources=sources,
                            operators=[name],
                        )
                    )
                continue

            sources, operators = self.extract_expression(item.expr)
            columns.append(
                ColumnLineage(
                    target=ColumnRef(table=target_table, column=_target_name(item, index)),
                    sources=sources,
                    operators=operators,
                )
            )
        return columns

    # FROM registration

    def _register_source(self, source: TableSource) -> None:
        if source.subquery is not None:
            self._register_derived(source)
        elif source.table is not None:
            self._register_table(source.table, source.alias)
        for join in source.joins:
            self._register_source(join.table)

    def _register_table(self, ref: TableRef, alias: Optional[str]) -> None:
        key = alias or ref.table
        cte_name = ref.table.lower()
        if (
            ref.database is None
            and cte_name not in self._resolving
            and self.scope.lookup_cte(ref.table) is not None
        ):
            self._register_cte_reference(ref, key)
            return

        self.scope.register_table(key, ref)
        names = self._catalog_columns(ref)
        if names is not None:
            self.scope.register_columns(key, names)
        logger.debug("Registered %s as %s (%s columns)", ref.qualified_name(), key,
                     "no" if names is None else len(names))

    def _register_cte_reference(self, ref: TableRef, key: str) -> None:
        owner = self.scope
        name = ref.table.lower()
        while name not in owner.cte_map:
            owner = owner.parent
        cte = owner.cte_map[name]

        child = self._child(
            Scope(parent=owner.parent, cte_map=dict(owner.cte_map)),
            resolving=self._resolving | {name},
        )
        columns = child.extract_select(cte.query, "")
        self.scope.register_table(key, TableRef(table=cte.name, alias=ref.alias))
        self.scope.register_derived(key, _output_columns(columns, cte.columns))
        logger.debug("Resolved CTE %s for alias %s", cte.name, key)

    def _register_derived(self, source: TableSource) -> None:
        key = source.alias or DERIVED_ALIAS
        child = self._child(Scope(parent=self.scope))
        columns = child.extract_select(source.subquery, "")
        self.scope.register_table(key, TableRef(table=key, alias=source.alias))
        self.scope.register_derived(key, _output_columns(columns, source.column_aliases))

    def _catalog_columns(self, ref: TableRef) -> Optional[list[str]]:
        if self.catalog is None:
            return None
        table = ref.table.lower() if self.config.normalize_case else ref.table
        schema = self.catalog.get_table_schema(ref.database, table)
        if schema is None:
            self.warnings.add_missing_schema_warning(ref.qualified_name())
            return None
        return list(schema.columns)

    # Resolution helpers

    def _column_sources(
        self, owner: Scope, alias: str, ref: TableRef, column: str
    ) -> list[ColumnRef]:
        if self.config.trace_through_derived and alias in owner.derived:
            wanted = column.lower()
            for name, sources in owner.derived[alias].items():
                if name.lower() == wanted:
                    return list(sources)
        return [ColumnRef(table=ref.table, column=column, database=ref.database)]

    def _alias_for_table_name(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for alias, ref in self.scope.table_alias.items():
            if ref.table.lower() == wanted:
                return alias
        return None

    def _unresolved(self, qualifier: str, context: str) -> None:
        mode = self.config.on_unresolved
        if mode == ErrorMode.FAIL:
            raise UnresolvedReferenceError(
                f"Cannot resolve table qualifier '{qualifier}' in '{context}'",
                reference=context,
                available_tables=self.scope.aliases(),
            )
        if mode == ErrorMode.WARN:
            self.warnings.add_unresolved_warning(qualifier, self.scope.aliases(), context)

    def _column_mismatch(self, target: str, expected: int, actual: int) -> None:
        mode = self.config.on_column_mismatch
        if mode == ErrorMode.FAIL:
            raise ColumnCountMismatchError(
                f"Column count mismatch for {target}: expected {expected}, got {actual}",
                target_table=target,
                expected=expected,
                actual=actual,
            )
        if mode == ErrorMode.WARN:
            self.warnings.add_column_mismatch_warning(target, expected, actual)

    def _child(
        self,
        scope: Scope,
        depth: Optional[int] = None,
        resolving: Optional[frozenset[str]] = None,
    ) -> LineageExtractor:
        return LineageExtractor(
            self.catalog,
            self.config,
            scope=scope,
            warnings=self.warnings,
            depth=self.depth + 1 if depth is None else depth,
            resolving=self._resolving if resolving is None else resolving,
        )

    # Data modification

    def _extract_insert(self, stmt: InsertStmt) -> list[ColumnLineage]:
        if stmt.select is None:
            return []
        target = stmt.table
        columns = self.extract_select(stmt.select, target.table)

        if stmt.columns and len(stmt.columns) != len(columns):
            self._column_mismatch(target.qualified_name(), len(stmt.columns), len(columns))

        for index, column in enumerate(columns):
            name = stmt.columns[index] if index < len(stmt.columns) else column.target.column
            column.target = ColumnRef(table=target.table, column=name, database=target.database)
        return columns

    def _extract_update(self, stmt: UpdateStmt) -> list[ColumnLineage]:
        self._register_table(stmt.table, stmt.table.alias)
        if stmt.from_clause is not None:
            for source in stmt.from_clause.tables:
                self._register_source(source)

        columns: list[ColumnLineage] = []
        for assignment in stmt.assignments:
            sources, operators = self.extract_expression(assignment.value)
            columns.append(
                ColumnLineage(
                    target=ColumnRef(
                        table=stmt.table.table,
                        column=assignment.column,
                        database=stmt.table.database,
                    ),
                    sources=sources,
                    operators=operators,
                )
            )
        return columns


def _target_name(item: AliasedExpr, index: int) -> str:
    if item.alias:
        return item.alias
    if isinstance(item.expr, ColumnRefExpr):
        return item.expr.column
    return f"_col{index}"


def _output_columns(
    columns: list[ColumnLineage], renames: tuple[str, ...]
) -> dict[str, list[ColumnRef]]:
    outputs: dict[str, list[ColumnRef]] = {}
    for index, column in enumerate(columns):
        name = renames[index] if index < len(renames) else column.target.column
        outputs.setdefault(name, list(column.sources))
    return outputs


def _operator(expr: Expression) -> Optional[str]:
    if isinstance(expr, Literal):
        return None
    if isinstance(expr, Star):
        return "star"
    if isinstance(expr, Subquery):
        return "subquery"
    raw_text = getattr(expr, "raw_text", "")
    if raw_text:
        return raw_text
    if isinstance(expr, ColumnRefExpr):
        return f"{expr.table}.{expr.column}" if expr.table else expr.column
    if isinstance(expr, FunctionCall):
        return expr.name
    if isinstance(expr, (BinaryExpr, UnaryExpr)):
        return expr.op
    if isinstance(expr, InExpr):
        return "IN"
    if isinstance(expr, BetweenExpr):
        return "BETWEEN"
    if isinstance(expr, CaseExpr):
        return "case"
    return type(expr).__name__
