"""
Tree builder: lark parse tree -> typed syntax tree.

The builder walks the parse tree in post-order without recursion. When a rule
completes, its handler pops exactly the fragments its children produced and
pushes the composed node. Each SELECT core pushes a ScopeMarker when it is
entered, and its completion handler pops until it reaches that marker, which
separates the core's own select items and clauses from fragments that
belong to an enclosing query.

Fragments on the stack are a closed set of types: AST expressions and
statements, TableSource, JoinClause, FromClause, CTE, WithClause,
Assignment, OrderByElement, WindowSpec, _Clause and ScopeMarker. Every pop
checks the type it expects; a mismatch is a TreeBuilderError.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

from lark import Token, Tree

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
from column_lineage.exceptions import TreeBuilderError

_BINARY_OPERATORS = {
    "add": "+",
    "sub": "-",
    "concat": "||",
    "mul": "*",
    "div": "/",
    "mod": "%",
    "and_op": "AND",
    "or_op": "OR",
}

_UNARY_OPERATORS = {
    "not_op": "NOT",
    "neg": "-",
    "pos": "+",
}

_IDENTIFIER_QUOTES = (("`", "`"), ('"', '"'), ("[", "]"))


class ScopeMarker:
    """Stack entry marking where one SELECT core's fragments begin."""

    __slots__ = ("owner",)

    def __init__(self, owner: int) -> None:
        self.owner = owner

    def __repr__(self) -> str:
        return f"ScopeMarker({self.owner})"


@dataclass(frozen=True)
class _Clause:
    """A completed clause waiting for its enclosing rule.

    ``kind`` is one of where, group_by, having, order_by, limit,
    partition_by, row or values.
    """

    kind: str
    items: tuple[Any, ...]


def unquote_identifier(text: str) -> str:
    """Strip one matching pair of backticks, double quotes or brackets.

    Example:
        >>> unquote_identifier("`order`")
        'order'
        >>> unquote_identifier("[Order Details]")
        'Order Details'
        >>> unquote_identifier("Users")
        'Users'
    """
    if len(text) >= 2:
        for opening, closing in _IDENTIFIER_QUOTES:
            if text[0] == opening and text[-1] == closing:
                return text[1:-1]
    return text


def unquote_string(text: str) -> str:
    """Strip the quotes of a string literal and collapse doubled quotes."""
    if len(text) >= 2 and text[0] == "'" and text[-1] == "'":
        return text[1:-1].replace("''", "'")
    return text


class TreeBuilder:
    """Builds a Statement from a parse tree of the bundled grammar.

    A builder keeps its stack only for the duration of one ``build`` call;
    it may be reused sequentially but not shared between threads.

    Example:
        >>> tree = SQLParser().parse_tree("SELECT SUM(amount) AS total FROM orders")
        >>> stmt = TreeBuilder().build(tree, "SELECT SUM(amount) AS total FROM orders")
        >>> stmt.select_list[0].expr.raw_text
        'SUM(amount)'
    """

    def __init__(self) -> None:
        self._source = ""
        self._stack: list[Any] = []

    def build(self, parse_tree: Tree, source_text: str) -> Statement:
        """Transform a parse tree into a Statement.

        Args:
            parse_tree: Tree returned by the grammar's parser.
            source_text: The exact text that was parsed; raw_text values are
                sliced from it.

        Returns:
            The SelectStmt, InsertStmt, UpdateStmt or DeleteStmt.

        Raises:
            TreeBuilderError: If the parse tree and the handlers disagree on
                the shape of the stack.
        """
        self._source = source_text
        self._stack = []
        try:
            pending: list[tuple[Tree, bool]] = [(parse_tree, False)]
            while pending:
                node, completed = pending.pop()
                if completed:
                    self._exit(node)
                    continue
                if node.data == "select_core":
                    self._stack.append(ScopeMarker(id(node)))
                pending.append((node, True))
                for child in reversed(node.children):
                    if isinstance(child, Tree):
                        pending.append((child, False))

            statement = self._pop(Statement, "statement")
            if self._stack:
                leftover = ", ".join(type(item).__name__ for item in self._stack)
                raise TreeBuilderError(f"fragments left on stack: {leftover}", "statement")
            return statement
        finally:
            self._stack = []
            self._source = ""

    # Stack helpers

    def _pop(self, expected: Any, rule: str) -> Any:
        if not self._stack:
            raise TreeBuilderError("pop from empty stack", rule)
        item = self._stack.pop()
        if not isinstance(item, expected):
            raise TreeBuilderError(
                f"expected {_type_name(expected)}, found {type(item).__name__}", rule
            )
        return item

    def _pop_expression(self, rule: str) -> Expression:
        item = self._pop(Expression, rule)
        if isinstance(item, AliasedExpr):
            raise TreeBuilderError("expected Expression, found AliasedExpr", rule)
        return item

    def _pop_expressions(self, count: int, rule: str) -> tuple[Expression, ...]:
        items = [self._pop_expression(rule) for _ in range(count)]
        items.reverse()
        return tuple(items)

    def _pop_many(self, expected: Any, count: int, rule: str) -> list[Any]:
        items = [self._pop(expected, rule) for _ in range(count)]
        items.reverse()
        return items

    def _pop_clause(self, kind: str, rule: str) -> _Clause:
        clause = self._pop(_Clause, rule)
        if clause.kind != kind:
            raise TreeBuilderError(f"expected {kind} clause, found {clause.kind}", rule)
        return clause

    # Parse tree helpers

    def _text(self, node: Tree) -> str:
        meta = node.meta
        if meta.empty:
            return ""
        return self._source[meta.start_pos:meta.end_pos]

    def _span(self, node: Tree) -> Optional[Span]:
        if node.meta.empty:
            return None
        return Span(node.meta.start_pos, node.meta.end_pos)

    # Dispatch

    def _exit(self, node: Tree) -> None:
        rule = str(node.data)
        if rule in _BINARY_OPERATORS:
            right = self._pop_expression(rule)
            left = self._pop_expression(rule)
            self._stack.append(BinaryExpr(left, _BINARY_OPERATORS[rule], right, self._text(node)))
            return
        if rule in _UNARY_OPERATORS:
            operand = self._pop_expression(rule)
            self._stack.append(UnaryExpr(_UNARY_OPERATORS[rule], operand, self._text(node)))
            return
        handler = getattr(self, f"_exit_{rule}", None)
        if handler is not None:
            handler(node)

    # Queries

    def _exit_query(self, node: Tree) -> None:
        cores = _subtrees(node, "select_core")
        operators = _subtrees(node, "set_operator")
        selects = self._pop_many(SelectStmt, len(cores), "query")
        with_clause = None
        if node.children[0] is not None:
            with_clause = self._pop(WithClause, "query")

        set_operations = tuple(
            SetOperation(
                kind=str(op.children[0].type),
                query=select,
                all=_has_token(op, "ALL"),
            )
            for op, select in zip(operators, selects[1:])
        )
        self._stack.append(
            replace(
                selects[0],
                with_clause=with_clause,
                set_operations=set_operations,
                span=self._span(node),
            )
        )

    def _exit_select_core(self, node: Tree) -> None:
        items: list[AliasedExpr] = []
        from_clause: Optional[FromClause] = None
        clauses: dict[str, _Clause] = {}

        while True:
            if not self._stack:
                raise TreeBuilderError("scope marker missing", "select_core")
            item = self._stack.pop()
            if isinstance(item, ScopeMarker):
                if item.owner != id(node):
                    raise TreeBuilderError("reached another query's scope marker", "select_core")
                break
            if isinstance(item, AliasedExpr):
                items.append(item)
            elif isinstance(item, FromClause) and from_clause is None:
                from_clause = item
            elif isinstance(item, _Clause) and item.kind not in clauses:
                clauses[item.kind] = item
            else:
                raise TreeBuilderError(f"unexpected {type(item).__name__} in SELECT", "select_core")

        if not items:
            raise TreeBuilderError("empty select list", "select_core")
        items.reverse()

        limit = clauses.get("limit")
        quantifier = _subtree(node, "set_quantifier")
        self._stack.append(
            SelectStmt(
                select_list=tuple(items),
                distinct=quantifier is not None and _has_token(quantifier, "DISTINCT"),
                from_clause=from_clause,
                where=clauses["where"].items[0] if "where" in clauses else None,
                group_by=clauses["group_by"].items if "group_by" in clauses else (),
                having=clauses["having"].items[0] if "having" in clauses else None,
                order_by=clauses["order_by"].items if "order_by" in clauses else (),
                limit=limit.items[0] if limit else None,
                offset=limit.items[1] if limit else None,
                span=self._span(node),
            )
        )

    def _exit_with_clause(self, node: Tree) -> None:
        ctes = self._pop_many(CTE, len(_subtrees(node, "cte")), "with_clause")
        self._stack.append(WithClause(tuple(ctes), recursive=_has_token(node, "RECURSIVE")))

    def _exit_cte(self, node: Tree) -> None:
        query = self._pop(SelectStmt, "cte")
        self._stack.append(
            CTE(
                name=unquote_identifier(node.children[0].value),
                query=query,
                columns=_column_list(node.children[1]),
            )
        )

    # Select list

    def _exit_select_all(self, node: Tree) -> None:
        self._stack.append(AliasedExpr(Star()))

    def _exit_select_table_all(self, node: Tree) -> None:
        parts = _qualified_parts(node)
        self._stack.append(AliasedExpr(Star(table=parts[-1])))

    def _exit_select_expr(self, node: Tree) -> None:
        expr = self._pop_expression("select_expr")
        self._stack.append(AliasedExpr(expr, _alias(node.children[1])))

    # FROM

    def _exit_table_name_factor(self, node: Tree) -> None:
        alias = _alias(node.children[1])
        ref = _table_ref(node.children[0], alias)
        self._stack.append(TableSource(table=ref, alias=alias))

    def _exit_derived_table(self, node: Tree) -> None:
        query = self._pop(SelectStmt, "derived_table")
        self._stack.append(
            TableSource(
                subquery=query,
                alias=_alias(node.children[1]),
                column_aliases=_column_list(node.children[2]),
            )
        )

    def _exit_join_clause(self, node: Tree) -> None:
        condition: Optional[Expression] = None
        using: tuple[str, ...] = ()
        joined = node.children[3]
        if isinstance(joined, Tree) and joined.data == "join_on":
            condition = self._pop_expression("join_clause")
        elif isinstance(joined, Tree) and joined.data == "join_using":
            using = _column_list(joined.children[1])
        source = self._pop(TableSource, "join_clause")

        kind_node = node.children[0]
        kind = "INNER"
        if kind_node is not None:
            kind = " ".join(t.value.upper() for t in kind_node.children if isinstance(t, Token))
        self._stack.append(JoinClause(kind=kind, table=source, condition=condition, using=using))

    def _exit_table_source(self, node: Tree) -> None:
        joins = self._pop_many(JoinClause, len(_subtrees(node, "join_clause")), "table_source")
        base = self._pop(TableSource, "table_source")
        self._stack.append(replace(base, joins=tuple(joins)))

    def _exit_from_clause(self, node: Tree) -> None:
        sources = self._pop_many(TableSource, len(_subtrees(node, "table_source")), "from_clause")
        self._stack.append(FromClause(tuple(sources)))

    # Clauses

    def _exit_where_clause(self, node: Tree) -> None:
        self._stack.append(_Clause("where", (self._pop_expression("where_clause"),)))

    def _exit_having_clause(self, node: Tree) -> None:
        self._stack.append(_Clause("having", (self._pop_expression("having_clause"),)))

    def _exit_group_by_clause(self, node: Tree) -> None:
        exprs = self._pop_expressions(_tree_count(node), "group_by_clause")
        self._stack.append(_Clause("group_by", exprs))

    def _exit_order_item(self, node: Tree) -> None:
        expr = self._pop_expression("order_item")
        self._stack.append(OrderByElement(expr, descending=_has_token(node, "DESC")))

    def _exit_order_by_clause(self, node: Tree) -> None:
        items = self._pop_many(OrderByElement, _tree_count(node), "order_by_clause")
        self._stack.append(_Clause("order_by", tuple(items)))

    def _exit_limit_clause(self, node: Tree) -> None:
        offset = None
        if node.children[-1] is not None:
            offset = self._pop_expression("limit_clause")
        limit = self._pop_expression("limit_clause")
        self._stack.append(_Clause("limit", (limit, offset)))

    def _exit_limit_skip_count(self, node: Tree) -> None:
        # LIMIT <offset>, <count>
        count = self._pop_expression("limit_skip_count")
        offset = self._pop_expression("limit_skip_count")
        self._stack.append(_Clause("limit", (count, offset)))

    def _exit_partition_clause(self, node: Tree) -> None:
        exprs = self._pop_expressions(_tree_count(node), "partition_clause")
        self._stack.append(_Clause("partition_by", exprs))

    def _exit_over_clause(self, node: Tree) -> None:
        order_by: tuple[OrderByElement, ...] = ()
        partition_by: tuple[Expression, ...] = ()
        if _subtree(node, "order_by_clause") is not None:
            order_by = self._pop_clause("order_by", "over_clause").items
        if _subtree(node, "partition_clause") is not None:
            partition_by = self._pop_clause("partition_by", "over_clause").items
        self._stack.append(WindowSpec(partition_by=partition_by, order_by=order_by))

    # Expressions

    def _exit_column_ref(self, node: Tree) -> None:
        parts = [unquote_identifier(token.value) for token in node.children]
        self._stack.append(
            ColumnRefExpr(
                column=parts[-1],
                table=parts[-2] if len(parts) >= 2 else None,
                database=parts[-3] if len(parts) >= 3 else None,
                raw_text=self._text(node),
            )
        )

    def _exit_literal(self, node: Tree) -> None:
        first = node.children[0]
        if first.type == "NUMBER":
            literal = Literal(first.value, "number")
        elif first.type == "STRING":
            literal = Literal(unquote_string(first.value), "string")
        elif first.type in ("TRUE", "FALSE"):
            literal = Literal(first.value.upper(), "boolean")
        elif first.type == "NULL":
            literal = Literal("NULL", "null")
        elif first.type == "INTERVAL":
            literal = Literal(self._text(node), "interval")
        else:
            literal = Literal(unquote_string(node.children[1].value), first.value.lower())
        self._stack.append(literal)

    def _exit_function_call(self, node: Tree) -> None:
        window = None
        if node.children[3] is not None:
            window = self._pop(WindowSpec, "function_call")
        args: tuple[Expression, ...] = ()
        if node.children[2] is not None:
            args = self._pop_expressions(_tree_count(node.children[2]), "function_call")
        quantifier = node.children[1]
        self._stack.append(
            FunctionCall(
                name=_function_name(node.children[0]),
                args=args,
                distinct=quantifier is not None and _has_token(quantifier, "DISTINCT"),
                window=window,
                raw_text=self._text(node),
            )
        )

    def _exit_star_function_call(self, node: Tree) -> None:
        window = None
        if node.children[1] is not None:
            window = self._pop(WindowSpec, "star_function_call")
        self._stack.append(
            FunctionCall(
                name=_function_name(node.children[0]),
                star_argument=True,
                window=window,
                raw_text=self._text(node),
            )
        )

    def _exit_cast_expr(self, node: Tree) -> None:
        operand = self._pop_expression("cast_expr")
        name = node.children[0].value.upper()
        self._stack.append(FunctionCall(name=name, args=(operand,), raw_text=self._text(node)))

    def _exit_pg_cast(self, node: Tree) -> None:
        operand = self._pop_expression("pg_cast")
        self._stack.append(FunctionCall(name="CAST", args=(operand,), raw_text=self._text(node)))

    def _exit_extract_expr(self, node: Tree) -> None:
        operand = self._pop_expression("extract_expr")
        self._stack.append(FunctionCall(name="EXTRACT", args=(operand,), raw_text=self._text(node)))

    def _exit_case_expr(self, node: Tree) -> None:
        when_count = len(_subtrees(node, "when_clause"))
        has_else = _subtree(node, "else_clause") is not None
        if when_count == 0:
            raise TreeBuilderError("CASE without WHEN", "case_expr")
        collected = sum(
            2 if child.data == "when_clause" else 1
            for child in node.children
            if isinstance(child, Tree)
        )

        else_result = self._pop_expression("case_expr") if has_else else None
        whens: list[WhenClause] = []
        for _ in range(when_count):
            result = self._pop_expression("case_expr")
            condition = self._pop_expression("case_expr")
            whens.append(WhenClause(condition, result))
        whens.reverse()

        operand = None
        if collected - (1 if has_else else 0) > 2 * when_count:
            operand = self._pop_expression("case_expr")
        self._stack.append(
            CaseExpr(
                whens=tuple(whens),
                operand=operand,
                else_result=else_result,
                raw_text=self._text(node),
            )
        )

    def _exit_compare(self, node: Tree) -> None:
        right = self._pop_expression("compare")
        left = self._pop_expression("compare")
        op = node.children[1].children[0].value
        self._stack.append(BinaryExpr(left, op, right, self._text(node)))

    def _exit_like(self, node: Tree) -> None:
        right = self._pop_expression("like")
        left = self._pop_expression("like")
        op = "ILIKE" if _has_token(node, "ILIKE") else "LIKE"
        if _has_token(node, "NOT"):
            op = f"NOT {op}"
        self._stack.append(BinaryExpr(left, op, right, self._text(node)))

    def _exit_is_null(self, node: Tree) -> None:
        operand = self._pop_expression("is_null")
        op = "IS NOT NULL" if _has_token(node, "NOT") else "IS NULL"
        self._stack.append(UnaryExpr(op, operand, self._text(node)))

    def _exit_between(self, node: Tree) -> None:
        high = self._pop_expression("between")
        low = self._pop_expression("between")
        operand = self._pop_expression("between")
        self._stack.append(
            BetweenExpr(operand, low, high, negated=_has_token(node, "NOT"), raw_text=self._text(node))
        )

    def _exit_in_list(self, node: Tree) -> None:
        values = self._pop_expressions(_tree_count(_subtree(node, "expr_list")), "in_list")
        operand = self._pop_expression("in_list")
        self._stack.append(
            InExpr(operand, values, negated=_has_token(node, "NOT"), raw_text=self._text(node))
        )

    def _exit_in_subquery(self, node: Tree) -> None:
        query = self._pop(SelectStmt, "in_subquery")
        operand = self._pop_expression("in_subquery")
        subquery = Subquery(query, raw_text=self._text(_subtree(node, "query")))
        self._stack.append(
            InExpr(operand, (subquery,), negated=_has_token(node, "NOT"), raw_text=self._text(node))
        )

    def _exit_exists(self, node: Tree) -> None:
        query = self._pop(SelectStmt, "exists")
        subquery = Subquery(query, raw_text=self._text(_subtree(node, "query")))
        self._stack.append(UnaryExpr("EXISTS", subquery, self._text(node)))

    def _exit_scalar_subquery(self, node: Tree) -> None:
        query = self._pop(SelectStmt, "scalar_subquery")
        self._stack.append(Subquery(query, raw_text=self._text(node)))

    # Data modification

    def _exit_values_row(self, node: Tree) -> None:
        self._stack.append(_Clause("row", self._pop_expressions(_tree_count(node), "values_row")))

    def _exit_values_clause(self, node: Tree) -> None:
        rows = [self._pop_clause("row", "values_clause") for _ in range(_tree_count(node))]
        rows.reverse()
        self._stack.append(_Clause("values", tuple(row.items for row in rows)))

    def _exit_insert_statement(self, node: Tree) -> None:
        source = node.children[-1]
        select: Optional[SelectStmt] = None
        values: tuple[tuple[Expression, ...], ...] = ()
        if source.data == "values_clause":
            values = self._pop_clause("values", "insert_statement").items
        else:
            select = self._pop(SelectStmt, "insert_statement")
        self._stack.append(
            InsertStmt(
                table=_table_ref(_subtree(node, "qualified_name"), None),
                columns=_column_list(_subtree(node, "column_list")),
                select=select,
                values=values,
                overwrite=_has_token(node, "OVERWRITE"),
                span=self._span(node),
            )
        )

    def _exit_assignment(self, node: Tree) -> None:
        value = self._pop_expression("assignment")
        column = _qualified_parts(node.children[0])[-1]
        self._stack.append(Assignment(column=column, value=value))

    def _exit_update_statement(self, node: Tree) -> None:
        where = None
        if _subtree(node, "where_clause") is not None:
            where = self._pop_clause("where", "update_statement").items[0]
        from_clause = None
        if _subtree(node, "from_clause") is not None:
            from_clause = self._pop(FromClause, "update_statement")
        assignments = self._pop_many(
            Assignment, len(_subtrees(node, "assignment")), "update_statement"
        )
        alias = _alias(_subtree(node, "alias_clause"))
        self._stack.append(
            UpdateStmt(
                table=_table_ref(_subtree(node, "qualified_name"), alias),
                assignments=tuple(assignments),
                from_clause=from_clause,
                where=where,
                span=self._span(node),
            )
        )

    def _exit_delete_statement(self, node: Tree) -> None:
        where = None
        if _subtree(node, "where_clause") is not None:
            where = self._pop_clause("where", "delete_statement").items[0]
        alias = _alias(_subtree(node, "alias_clause"))
        self._stack.append(
            DeleteStmt(
                table=_table_ref(_subtree(node, "qualified_name"), alias),
                where=where,
                span=self._span(node),
            )
        )


def _type_name(expected: Any) -> str:
    if isinstance(expected, tuple):
        return " or ".join(t.__name__ for t in expected)
    return expected.__name__


def _subtrees(node: Tree, data: str) -> list[Tree]:
    return [child for child in node.children if isinstance(child, Tree) and child.data == data]


def _subtree(node: Tree, data: str) -> Optional[Tree]:
    for child in node.children:
        if isinstance(child, Tree) and child.data == data:
            return child
    return None


def _tree_count(node: Tree) -> int:
    return sum(1 for child in node.children if isinstance(child, Tree))


def _has_token(node: Tree, token_type: str) -> bool:
    return any(isinstance(child, Token) and child.type == token_type for child in node.children)


def _qualified_parts(node: Tree) -> list[str]:
    return [unquote_identifier(token.value) for token in node.children]


def _table_ref(node: Tree, alias: Optional[str]) -> TableRef:
    parts = _qualified_parts(node)
    return TableRef(
        table=parts[-1],
        database=parts[-2] if len(parts) >= 2 else None,
        alias=alias,
    )


def _alias(node: Optional[Tree]) -> Optional[str]:
    if node is None:
        return None
    return unquote_identifier(node.children[-1].value)


def _column_list(node: Optional[Tree]) -> tuple[str, ...]:
    if node is None:
        return ()
    return tuple(unquote_identifier(token.value) for token in node.children)


def _function_name(node: Tree) -> str:
    first = node.children[0]
    if isinstance(first, Token):
        return first.value
    return ".".join(_qualified_parts(first))
