"""
Tests for TreeBuilder.

This module contains test cases for the TreeBuilder class, which turns the
grammar's parse tree into the typed syntax tree.
"""

import pytest
from lark import Token, Tree

from column_lineage.ast.nodes import (
    AliasedExpr,
    BetweenExpr,
    BinaryExpr,
    CaseExpr,
    ColumnRefExpr,
    DeleteStmt,
    FunctionCall,
    InExpr,
    InsertStmt,
    Literal,
    SelectStmt,
    Star,
    Subquery,
    UnaryExpr,
    UpdateStmt,
)
from column_lineage.exceptions import TreeBuilderError
from column_lineage.parser.sql_parser import SQLParser
from column_lineage.parser.tree_builder import (
    TreeBuilder,
    unquote_identifier,
    unquote_string,
)


class TestTreeBuilder:
    """Test cases for TreeBuilder class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.parser = SQLParser()

    def build(self, sql):
        return TreeBuilder().build(self.parser.parse_tree(sql), sql)

    def first_expr(self, sql):
        return self.build(sql).select_list[0].expr

    def test_simple_select(self):
        """Test 1: Select list and FROM."""
        stmt = self.build("SELECT id, name FROM users")

        assert isinstance(stmt, SelectStmt)
        assert [item.expr.column for item in stmt.select_list] == ["id", "name"]
        assert stmt.from_clause.tables[0].table.table == "users"
        assert stmt.from_clause.tables[0].alias is None

    def test_alias_and_qualified_column(self):
        """Test 2: Column alias and table alias."""
        stmt = self.build("SELECT u.name AS n FROM users u")
        item = stmt.select_list[0]

        assert item.alias == "n"
        assert item.expr == ColumnRefExpr(column="name", table="u", raw_text="u.name")
        assert stmt.from_clause.tables[0].table.alias == "u"

    def test_alias_without_as(self):
        stmt = self.build("SELECT amount total FROM orders o")

        assert stmt.select_list[0].alias == "total"
        assert stmt.from_clause.tables[0].alias == "o"

    def test_three_part_column_reference(self):
        expr = self.first_expr("SELECT shop.orders.amount FROM shop.orders")

        assert (expr.database, expr.table, expr.column) == ("shop", "orders", "amount")

    def test_database_qualified_table(self):
        stmt = self.build("SELECT id FROM shop.orders o")
        ref = stmt.from_clause.tables[0].table

        assert (ref.database, ref.table, ref.alias) == ("shop", "orders", "o")

    def test_raw_text_preserves_spacing_and_case(self):
        """Test 3: raw_text is the exact source slice."""
        sql = "SELECT  sum( Amount )   AS total FROM orders"
        expr = self.first_expr(sql)

        assert isinstance(expr, FunctionCall)
        assert expr.name == "sum"
        assert expr.raw_text == "sum( Amount )"

    def test_binary_expression_raw_text(self):
        expr = self.first_expr("SELECT price * (1 + tax_rate) AS gross FROM items")

        assert isinstance(expr, BinaryExpr)
        assert expr.op == "*"
        assert expr.raw_text == "price * (1 + tax_rate)"
        assert isinstance(expr.right, BinaryExpr)
        assert expr.right.op == "+"

    def test_operator_precedence(self):
        expr = self.first_expr("SELECT a + b * c FROM t")

        assert expr.op == "+"
        assert expr.right.op == "*"

    def test_star_entries(self):
        stmt = self.build("SELECT *, o.* FROM orders o")

        assert stmt.select_list[0] == AliasedExpr(Star())
        assert stmt.select_list[1] == AliasedExpr(Star(table="o"))

    def test_count_star(self):
        expr = self.first_expr("SELECT COUNT(*) FROM orders")

        assert isinstance(expr, FunctionCall)
        assert expr.star_argument is True
        assert expr.args == ()
        assert expr.raw_text == "COUNT(*)"

    def test_count_distinct(self):
        expr = self.first_expr("SELECT COUNT(DISTINCT user_id) FROM orders")

        assert expr.distinct is True
        assert expr.args == (ColumnRefExpr(column="user_id", raw_text="user_id"),)

    def test_window_function(self):
        expr = self.first_expr(
            "SELECT ROW_NUMBER() OVER (PARTITION BY dept ORDER BY salary DESC) AS rn FROM emp"
        )

        assert expr.name == "ROW_NUMBER"
        assert expr.args == ()
        assert [p.column for p in expr.window.partition_by] == ["dept"]
        assert expr.window.order_by[0].expr.column == "salary"
        assert expr.window.order_by[0].descending is True

    def test_searched_case(self):
        """Test 4: CASE WHEN without operand."""
        expr = self.first_expr(
            "SELECT CASE WHEN amount > 100 THEN 'big' ELSE 'small' END AS size FROM orders"
        )

        assert isinstance(expr, CaseExpr)
        assert expr.operand is None
        assert len(expr.whens) == 1
        assert isinstance(expr.whens[0].condition, BinaryExpr)
        assert expr.whens[0].result == Literal("big", "string")
        assert expr.else_result == Literal("small", "string")

    def test_simple_case_with_operand(self):
        """Test 5: CASE <operand> WHEN ..."""
        expr = self.first_expr(
            "SELECT CASE status WHEN 'a' THEN 1 WHEN 'b' THEN 2 END FROM orders"
        )

        assert expr.operand == ColumnRefExpr(column="status", raw_text="status")
        assert [w.condition.value for w in expr.whens] == ["a", "b"]
        assert [w.result.value for w in expr.whens] == ["1", "2"]
        assert expr.else_result is None

    def test_case_with_operand_and_else(self):
        expr = self.first_expr("SELECT CASE x WHEN 1 THEN a ELSE b END FROM t")

        assert expr.operand.column == "x"
        assert expr.whens[0].result.column == "a"
        assert expr.else_result.column == "b"

    def test_literals(self):
        stmt = self.build("SELECT 42, 'it''s', TRUE, NULL, DATE '2024-01-01' FROM t")
        values = [item.expr for item in stmt.select_list]

        assert values == [
            Literal("42", "number"),
            Literal("it's", "string"),
            Literal("TRUE", "boolean"),
            Literal("NULL", "null"),
            Literal("2024-01-01", "date"),
        ]

    def test_interval_literal_includes_unit(self):
        stmt = self.build("SELECT d + INTERVAL '1' DAY, INTERVAL 2 hour AS h, INTERVAL '3' FROM t")
        first, second, third = stmt.select_list

        assert first.alias is None
        assert first.expr.raw_text == "d + INTERVAL '1' DAY"
        assert first.expr.right == Literal("INTERVAL '1' DAY", "interval")
        assert second.alias == "h"
        assert second.expr == Literal("INTERVAL 2 hour", "interval")
        assert third.expr == Literal("INTERVAL '3'", "interval")

    def test_predicates(self):
        stmt = self.build(
            "SELECT a NOT IN (1, 2) AS f1, b BETWEEN 1 AND 3 AS f2, "
            "c LIKE 'x%' AS f3, d IS NOT NULL AS f4 FROM t"
        )
        f1, f2, f3, f4 = (item.expr for item in stmt.select_list)

        assert isinstance(f1, InExpr) and f1.negated and len(f1.values) == 2
        assert isinstance(f2, BetweenExpr) and f2.low.value == "1" and f2.high.value == "3"
        assert isinstance(f3, BinaryExpr) and f3.op == "LIKE"
        assert isinstance(f4, UnaryExpr) and f4.op == "IS NOT NULL"

    def test_cast_forms(self):
        stmt = self.build("SELECT CAST(amount AS DECIMAL(10, 2)), amount::int FROM orders")
        cast, pg_cast = (item.expr for item in stmt.select_list)

        assert cast.name == "CAST"
        assert cast.args[0].column == "amount"
        assert cast.raw_text == "CAST(amount AS DECIMAL(10, 2))"
        assert pg_cast.name == "CAST"
        assert pg_cast.raw_text == "amount::int"

    def test_scalar_subquery(self):
        """Test 6: Scalar subquery wraps the built SELECT."""
        expr = self.first_expr("SELECT (SELECT MAX(amount) FROM orders) AS m FROM users")

        assert isinstance(expr, Subquery)
        assert isinstance(expr.query, SelectStmt)
        assert expr.query.from_clause.tables[0].table.table == "orders"

    def test_scope_markers_separate_nested_select_lists(self):
        """Test 7: Nested SELECT items never leak into the outer list."""
        stmt = self.build(
            "SELECT a, (SELECT b, c FROM s WHERE s.id = t.id) AS x, d FROM t"
        )

        assert len(stmt.select_list) == 3
        assert [item.alias for item in stmt.select_list] == [None, "x", None]
        assert len(stmt.select_list[1].expr.query.select_list) == 2
        assert stmt.from_clause.tables[0].table.table == "t"

    def test_where_group_having_order_limit(self):
        stmt = self.build(
            "SELECT user_id, SUM(amount) FROM orders WHERE amount > 0 "
            "GROUP BY user_id HAVING SUM(amount) > 10 ORDER BY user_id DESC LIMIT 5 OFFSET 10"
        )

        assert stmt.where.op == ">"
        assert [g.column for g in stmt.group_by] == ["user_id"]
        assert stmt.having.left.name == "SUM"
        assert stmt.order_by[0].descending is True
        assert stmt.limit.value == "5"
        assert stmt.offset.value == "10"

    def test_limit_with_offset_first(self):
        stmt = self.build("SELECT id FROM orders LIMIT 10, 20")

        assert stmt.limit.value == "20"
        assert stmt.offset.value == "10"

    def test_limit_without_offset(self):
        stmt = self.build("SELECT id FROM orders LIMIT 7")

        assert stmt.limit.value == "7"
        assert stmt.offset is None

    def test_joins(self):
        stmt = self.build(
            "SELECT 1 FROM a LEFT OUTER JOIN b ON a.id = b.id JOIN c USING (id) CROSS JOIN d"
        )
        joins = stmt.from_clause.tables[0].joins

        assert [j.kind for j in joins] == ["LEFT OUTER", "INNER", "CROSS"]
        assert joins[0].condition.op == "="
        assert joins[1].using == ("id",)
        assert joins[2].condition is None
        assert [j.table.table.table for j in joins] == ["b", "c", "d"]

    def test_derived_table(self):
        stmt = self.build("SELECT d.x FROM (SELECT id AS x FROM t) AS d")
        source = stmt.from_clause.tables[0]

        assert source.table is None
        assert source.alias == "d"
        assert source.subquery.select_list[0].alias == "x"

    def test_with_clause(self):
        stmt = self.build(
            "WITH RECURSIVE a (n) AS (SELECT id FROM t), b AS (SELECT n FROM a) SELECT n FROM b"
        )

        assert stmt.with_clause.recursive is True
        assert [cte.name for cte in stmt.with_clause.ctes] == ["a", "b"]
        assert stmt.with_clause.ctes[0].columns == ("n",)
        assert stmt.from_clause.tables[0].table.table == "b"

    def test_set_operations(self):
        stmt = self.build("SELECT a FROM t UNION ALL SELECT b FROM s EXCEPT SELECT c FROM r")

        assert stmt.select_list[0].expr.column == "a"
        assert [(op.kind, op.all) for op in stmt.set_operations] == [
            ("UNION", True),
            ("EXCEPT", False),
        ]
        assert stmt.set_operations[0].query.select_list[0].expr.column == "b"

    def test_insert_select(self):
        stmt = self.build(
            "INSERT INTO report (total_amount, user_count) SELECT SUM(amount), COUNT(*) FROM orders"
        )

        assert isinstance(stmt, InsertStmt)
        assert stmt.table.table == "report"
        assert stmt.columns == ("total_amount", "user_count")
        assert len(stmt.select.select_list) == 2
        assert stmt.overwrite is False

    def test_insert_overwrite_values(self):
        stmt = self.build("INSERT OVERWRITE TABLE t VALUES (1, 'a'), (2, 'b')")

        assert stmt.overwrite is True
        assert stmt.select is None
        assert len(stmt.values) == 2
        assert stmt.values[1][1] == Literal("b", "string")

    def test_update(self):
        stmt = self.build("UPDATE users u SET name = UPPER(u.name), age = 1 WHERE u.id = 3")

        assert isinstance(stmt, UpdateStmt)
        assert stmt.table.alias == "u"
        assert [a.column for a in stmt.assignments] == ["name", "age"]
        assert stmt.assignments[0].value.raw_text == "UPPER(u.name)"
        assert stmt.where.op == "="

    def test_delete(self):
        stmt = self.build("DELETE FROM users WHERE id = 1")

        assert isinstance(stmt, DeleteStmt)
        assert stmt.table.table == "users"
        assert stmt.where is not None

    def test_statement_span(self):
        sql = "SELECT id FROM users;"
        stmt = self.build(sql)

        assert stmt.span.slice(sql) == "SELECT id FROM users"

    def test_quoted_identifiers_are_unquoted(self):
        """Test 8: Backticks, double quotes and brackets are stripped."""
        stmt = self.build('SELECT `order`."Total" AS [grand total] FROM [order details] AS `order`')
        expr = stmt.select_list[0].expr

        assert (expr.table, expr.column) == ("order", "Total")
        assert stmt.select_list[0].alias == "grand total"
        assert stmt.from_clause.tables[0].table.table == "order details"
        assert stmt.from_clause.tables[0].alias == "order"

    def test_comments_are_ignored(self):
        stmt = self.build("SELECT id -- the key\n, /* name */ name FROM users")

        assert len(stmt.select_list) == 2

    def test_builder_is_reusable(self):
        builder = TreeBuilder()
        sql = "SELECT a FROM t"
        first = builder.build(self.parser.parse_tree(sql), sql)
        second = builder.build(self.parser.parse_tree(sql), sql)

        assert first == second

    def test_empty_tree_raises(self):
        """Test 9: Structural mismatches fail loudly."""
        with pytest.raises(TreeBuilderError):
            TreeBuilder().build(Tree("start", []), "")

    def test_handler_pop_from_empty_stack_raises(self):
        tree = Tree("start", [Tree("where_clause", [Token("WHERE", "WHERE")])])

        with pytest.raises(TreeBuilderError) as exc_info:
            TreeBuilder().build(tree, "WHERE")

        assert "where_clause" in str(exc_info.value)


class TestUnquote:
    """Test cases for identifier and string unquoting."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("`order`", "order"),
            ('"Order"', "Order"),
            ("[order details]", "order details"),
            ("Users", "Users"),
            ("`", "`"),
            ("`mismatched\"", "`mismatched\""),
        ],
    )
    def test_unquote_identifier(self, text, expected):
        assert unquote_identifier(text) == expected

    def test_unquote_string(self):
        assert unquote_string("'abc'") == "abc"
        assert unquote_string("'it''s'") == "it's"
        assert unquote_string("''") == ""
