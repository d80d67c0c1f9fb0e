"""
Tests for the metadata layer: table metadata, providers, the catalog adapter,
the DDL parser and the metadata builder.
"""

import json

import pytest

from column_lineage.catalog.dict_provider import DictCatalog
from column_lineage.exceptions import DDLParseError, LineageError, TableNotFoundError
from column_lineage.metadata.adapter import CatalogAdapter
from column_lineage.metadata.builder import MetadataBuilder
from column_lineage.metadata.ddl_parser import DDLParser
from column_lineage.metadata.provider import MemoryProvider
from column_lineage.metadata.schema import ColumnMetadata, TableMetadata
from column_lineage.models.config import LineageConfig


class TestTableMetadata:
    """Test cases for TableMetadata and ColumnMetadata."""

    def test_column_names(self):
        table = TableMetadata(
            table="orders",
            columns=[ColumnMetadata("id", "INT"), ColumnMetadata("amount")],
        )

        assert table.get_column_names() == ["id", "amount"]
        assert table.has_column("amount")
        assert table.get_column("missing") is None

    def test_to_dict_omits_empty_fields(self):
        table = TableMetadata(table="t", columns=[ColumnMetadata("a", "INT", comment="key")])

        assert table.to_dict() == {
            "table": "t",
            "columns": [
                {
                    "name": "a",
                    "data_type": "INT",
                    "nullable": True,
                    "primary_key": False,
                    "comment": "key",
                }
            ],
            "table_type": "TABLE",
        }

    def test_from_dict_accepts_bare_column_names(self):
        table = TableMetadata.from_dict(
            {"database": "shop", "table": "orders", "columns": ["id", {"name": "amount"}]}
        )

        assert table.database == "shop"
        assert table.get_column_names() == ["id", "amount"]

    def test_from_dict_requires_table(self):
        with pytest.raises(ValueError):
            TableMetadata.from_dict({"columns": ["id"]})

    def test_column_from_dict_requires_name(self):
        with pytest.raises(ValueError):
            ColumnMetadata.from_dict({"data_type": "INT"})


class TestMemoryProvider:
    """Test cases for MemoryProvider class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.provider = MemoryProvider()
        self.provider.add_table(None, "Orders", ["id", "amount"])
        self.provider.add_table("crm", "users", ["id", "name"])

    def test_lookup_is_case_insensitive(self):
        schema = self.provider.get_table_schema(None, "ORDERS")

        assert schema.table == "orders"
        assert schema.get_column_names() == ["id", "amount"]

    def test_lookup_by_database(self):
        assert self.provider.get_table_schema("crm", "users").get_column_names() == ["id", "name"]

    def test_unknown_database_falls_back_to_any_database(self):
        assert self.provider.get_table_schema("elsewhere", "users").table == "users"

    def test_missing_table_raises(self):
        with pytest.raises(TableNotFoundError) as exc_info:
            self.provider.get_table_schema(None, "missing")

        assert exc_info.value.table == "missing"
        assert exc_info.value.database == "default"

    def test_missing_table_in_known_database_raises(self):
        with pytest.raises(TableNotFoundError):
            self.provider.get_table_schema("crm", "orders")

    def test_list_tables_and_databases(self):
        assert self.provider.list_databases() == ["default", "crm"]
        assert self.provider.list_tables() == ["orders"]
        assert self.provider.list_tables("crm") == ["users"]

    def test_list_tables_of_unknown_database(self):
        with pytest.raises(LineageError):
            self.provider.list_tables("nope")

    def test_replacing_a_table(self):
        self.provider.add_table(None, "orders", ["id"])

        assert self.provider.get_table_schema(None, "orders").get_column_names() == ["id"]

    def test_load_from_json_string(self):
        provider = MemoryProvider()
        provider.load_from_json_string(
            json.dumps(
                [
                    {"table": "a", "columns": ["x"]},
                    {"database": "d", "table": "b", "columns": [{"name": "y", "data_type": "INT"}]},
                ]
            )
        )

        assert provider.get_table_schema(None, "a").get_column_names() == ["x"]
        assert provider.get_table_schema("d", "b").columns[0].data_type == "INT"

    def test_load_single_object(self):
        provider = MemoryProvider()
        provider.load_from_json_string('{"table": "a", "columns": ["x"]}')

        assert provider.list_tables() == ["a"]

    @pytest.mark.parametrize("text", ["not json", "[1, 2]", '[{"columns": ["x"]}]'])
    def test_load_invalid_json(self, text):
        with pytest.raises(LineageError):
            MemoryProvider().load_from_json_string(text)

    def test_load_from_json_file(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text(json.dumps([{"table": "a", "columns": ["x", "y"]}]), encoding="utf-8")

        provider = MemoryProvider()
        provider.load_from_json(path)

        assert provider.get_table_schema(None, "a").get_column_names() == ["x", "y"]

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(LineageError):
            MemoryProvider().load_from_json(tmp_path / "missing.json")

    def test_export_round_trip(self):
        exported = self.provider.export_to_json()

        restored = MemoryProvider()
        restored.load_from_json_string(exported)

        assert restored.get_table_schema("crm", "users").get_column_names() == ["id", "name"]
        assert restored.get_table_schema(None, "orders").get_column_names() == ["id", "amount"]

    def test_clear(self):
        self.provider.clear()

        assert self.provider.list_databases() == []


class TestCatalogAdapter:
    """Test cases for CatalogAdapter class."""

    def setup_method(self):
        """Set up test fixtures."""
        provider = MemoryProvider()
        provider.add_table("shop", "orders", ["id", "amount"])
        self.catalog = CatalogAdapter(provider)

    def test_known_table(self):
        schema = self.catalog.get_table_schema("shop", "orders")

        assert schema.columns == ("id", "amount")
        assert schema.database == "shop"

    def test_unknown_table_is_none(self):
        assert self.catalog.get_table_schema("shop", "missing") is None
        assert self.catalog.get_table_columns(None, "missing") == []

    def test_column_exists(self):
        assert self.catalog.column_exists("shop", "orders", "AMOUNT")
        assert not self.catalog.column_exists("shop", "orders", "tax")


class TestDictCatalog:
    """Test cases for DictCatalog class."""

    def test_lookup(self):
        catalog = DictCatalog({"Orders": ["id", "amount"], "crm.users": ["id"]})

        assert catalog.get_table_columns(None, "orders") == ["id", "amount"]
        assert catalog.get_table_schema("crm", "users").database == "crm"
        assert catalog.get_table_columns("crm", "orders") == ["id", "amount"]
        assert catalog.get_table_schema(None, "missing") is None

    def test_add_table(self):
        catalog = DictCatalog({})
        catalog.add_table("t", ["a"])

        assert catalog.get_table_columns(None, "T") == ["a"]

    def test_invalid_input(self):
        with pytest.raises(ValueError):
            DictCatalog(None)
        with pytest.raises(TypeError):
            DictCatalog(["orders"])


class TestDDLParser:
    """Test cases for DDLParser class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.parser = DDLParser(dialect="mysql")

    def test_create_table(self):
        schema = self.parser.parse_ddl(
            "CREATE TABLE shop.orders ("
            " id INT PRIMARY KEY,"
            " amount DECIMAL(10,2) NOT NULL DEFAULT 0,"
            " note VARCHAR(20) COMMENT 'free text'"
            ") COMMENT='all orders'"
        )

        assert (schema.database, schema.table, schema.table_type) == ("shop", "orders", "TABLE")
        assert schema.get_column_names() == ["id", "amount", "note"]
        assert schema.primary_key == ["id"]
        assert schema.comment == "all orders"

        id_column, amount, note = schema.columns
        assert id_column.primary_key and not id_column.nullable
        assert amount.data_type.startswith("DECIMAL")
        assert amount.nullable is False
        assert amount.default_expr == "0"
        assert note.nullable is True
        assert note.comment == "free text"

    def test_table_level_primary_key(self):
        schema = self.parser.parse_ddl(
            "CREATE TABLE items (order_id INT, line INT, sku TEXT, PRIMARY KEY (order_id, line))"
        )

        assert schema.primary_key == ["order_id", "line"]
        assert schema.get_column_names() == ["order_id", "line", "sku"]
        assert schema.columns[1].primary_key is True
        assert schema.columns[1].nullable is False
        assert schema.columns[2].primary_key is False

    def test_temporary_table(self):
        schema = DDLParser().parse_ddl("CREATE TEMPORARY TABLE scratch (id INT)")

        assert schema.table_type == "TEMPORARY"

    def test_view_with_column_list(self):
        schema = DDLParser().parse_ddl(
            "CREATE VIEW big_orders (order_id, total) AS SELECT id, amount FROM orders"
        )

        assert schema.table_type == "VIEW"
        assert schema.get_column_names() == ["order_id", "total"]

    def test_view_columns_from_query(self):
        schema = DDLParser().parse_ddl(
            "CREATE VIEW v AS SELECT id, amount * 2 AS doubled FROM orders"
        )

        assert schema.get_column_names() == ["id", "doubled"]

    def test_create_table_as_select(self):
        schema = DDLParser().parse_ddl("CREATE TABLE t2 AS SELECT user_id, amount FROM orders")

        assert schema.table_type == "TABLE"
        assert schema.get_column_names() == ["user_id", "amount"]

    def test_non_ddl_statement_is_none(self):
        assert DDLParser().parse_ddl("INSERT INTO t VALUES (1)") is None
        assert DDLParser().parse_ddl("CREATE INDEX idx ON t (a)") is None

    def test_invalid_ddl_raises(self):
        with pytest.raises(DDLParseError) as exc_info:
            self.parser.parse_ddl("CREATE TABLE broken (id INT")

        assert exc_info.value.statement == "CREATE TABLE broken (id INT"

    def test_parse_many(self):
        outcomes = self.parser.parse_many(
            "CREATE TABLE a (x INT);\n"
            "CREATE TABLE broken (id INT;\n"
            "INSERT INTO a VALUES (1);\n"
            "CREATE TABLE b (y INT);"
        )

        assert len(outcomes) == 4
        assert [outcome.ok for outcome in outcomes] == [True, False, True, True]
        assert isinstance(outcomes[1].error, DDLParseError)
        assert outcomes[2].skipped
        assert outcomes[3].schema.table == "b"


class TestMetadataBuilder:
    """Test cases for MetadataBuilder class."""

    def test_build_provider(self):
        provider = (
            MetadataBuilder()
            .with_default_database("shop")
            .add_table(None, "users", ["id", "name"])
            .build()
        )

        assert provider.list_tables("shop") == ["users"]

    def test_load_from_ddl_keeps_failures(self):
        builder = MetadataBuilder().load_from_ddl(
            "CREATE TABLE orders (id INT, amount INT); CREATE TABLE broken (id INT;"
        )

        assert builder.build().list_tables() == ["orders"]
        assert len(builder.ddl_outcomes) == 2
        assert len(builder.failed_statements()) == 1

    def test_mixed_sources(self):
        builder = (
            MetadataBuilder()
            .add_table_schema(TableMetadata(table="a", columns=[ColumnMetadata("x")]))
            .load_from_json_string('[{"table": "b", "columns": ["y"]}]')
        )

        assert builder.build().list_tables() == ["a", "b"]

    def test_build_catalog(self):
        catalog = MetadataBuilder().add_table(None, "t", ["a", "b"]).build_catalog()

        assert catalog.get_table_columns(None, "t") == ["a", "b"]

    def test_build_analyzer(self):
        analyzer = (
            MetadataBuilder()
            .load_from_ddl("CREATE TABLE orders (id INT, user_id INT, amount DECIMAL(10,2));")
            .build_analyzer(LineageConfig(trace_through_derived=True))
        )

        result = analyzer.analyze("SELECT * FROM orders")

        assert result.get_target_columns() == ["id", "user_id", "amount"]
        assert analyzer.config.trace_through_derived is True
