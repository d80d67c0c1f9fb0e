"""
Fluent construction of metadata, catalogs and analyzers.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from column_lineage.metadata.adapter import CatalogAdapter
from column_lineage.metadata.ddl_parser import DDLOutcome, DDLParser
from column_lineage.metadata.provider import MemoryProvider
from column_lineage.metadata.schema import TableMetadata

if TYPE_CHECKING:
    from column_lineage.analyzer.lineage_analyzer import LineageAnalyzer
    from column_lineage.models.config import LineageConfig


class MetadataBuilder:
    """Fluent builder around a MemoryProvider.

    Every ``add_*``/``load_*`` method returns the builder. Failed DDL
    statements do not stop the chain; their outcomes are kept in
    ``ddl_outcomes`` for inspection.

    Example:
        >>> analyzer = (
        ...     MetadataBuilder()
        ...     .with_default_database("shop")
        ...     .add_table(None, "users", ["id", "name"])
        ...     .load_from_ddl("CREATE TABLE orders (id INT, amount INT);")
        ...     .build_analyzer()
        ... )
        >>> len(analyzer.analyze("SELECT * FROM orders").columns)
        2
    """

    def __init__(self, dialect: Optional[str] = None) -> None:
        self.provider = MemoryProvider()
        self.ddl_parser = DDLParser(dialect=dialect)
        self.ddl_outcomes: list[DDLOutcome] = []

    def with_default_database(self, database: str) -> MetadataBuilder:
        self.provider.default_database = database
        return self

    def add_table(
        self, database: Optional[str], table: str, columns: list[str]
    ) -> MetadataBuilder:
        self.provider.add_table(database, table, columns)
        return self

    def add_table_schema(self, schema: TableMetadata) -> MetadataBuilder:
        self.provider.add_table_schema(schema)
        return self

    def load_from_json(self, path: Union[str, Path]) -> MetadataBuilder:
        """Load tables from a JSON file.

        Raises:
            LineageError: If the file cannot be read or parsed.
        """
        self.provider.load_from_json(path)
        return self

    def load_from_json_string(self, text: str) -> MetadataBuilder:
        self.provider.load_from_json_string(text)
        return self

    def load_from_ddl(self, ddl: str) -> MetadataBuilder:
        """Parse a DDL script and register every table and view it defines."""
        outcomes = self.ddl_parser.parse_many(ddl)
        for outcome in outcomes:
            if outcome.schema is not None:
                self.provider.add_table_schema(outcome.schema)
        self.ddl_outcomes.extend(outcomes)
        return self

    def failed_statements(self) -> list[DDLOutcome]:
        return [outcome for outcome in self.ddl_outcomes if not outcome.ok]

    def build(self) -> MemoryProvider:
        return self.provider

    def build_catalog(self) -> CatalogAdapter:
        return CatalogAdapter(self.provider)

    def build_analyzer(self, config: Optional[LineageConfig] = None) -> LineageAnalyzer:
        from column_lineage.analyzer.lineage_analyzer import LineageAnalyzer

        return LineageAnalyzer(
            catalog=self.build_catalog(), config=config, dialect=self.ddl_parser.dialect
        )
