"""
SQL Column-Level Lineage

Extracts, for every output column of a SQL statement, the source columns it
was derived from and the exact expression text that derived it.

Example:
    >>> from column_lineage import DictCatalog, LineageAnalyzer
    >>> analyzer = LineageAnalyzer(DictCatalog({"orders": ["id", "amount"]}))
    >>> result = analyzer.analyze("SELECT SUM(amount) AS total FROM orders")
    >>> result.to_dict()["columns"][0]["operators"]
    ['SUM(amount)']
"""

from column_lineage.version import __version__, __version_info__

__author__ = "Column Lineage Contributors"

from column_lineage.analyzer.extractor import LineageExtractor
from column_lineage.analyzer.lineage_analyzer import LineageAnalyzer
from column_lineage.catalog.dict_provider import DictCatalog
from column_lineage.catalog.provider import Catalog, TableSchema
from column_lineage.exceptions import (
    ColumnCountMismatchError,
    DDLParseError,
    LineageError,
    QueryDepthExceededError,
    TableNotFoundError,
    TreeBuilderError,
    UnresolvedReferenceError,
    UnsupportedSQLError,
)
from column_lineage.graph.dependency_graph import DependencyGraph
from column_lineage.metadata.adapter import CatalogAdapter
from column_lineage.metadata.builder import MetadataBuilder
from column_lineage.metadata.ddl_parser import DDLOutcome, DDLParser
from column_lineage.metadata.provider import MemoryProvider, MetadataProvider
from column_lineage.metadata.schema import ColumnMetadata, TableMetadata
from column_lineage.models.column import ColumnRef
from column_lineage.models.column_lineage import ColumnLineage
from column_lineage.models.config import ErrorMode, LineageConfig
from column_lineage.models.result import AnalysisOutcome, LineageResult
from column_lineage.parser.script_splitter import ScriptSplitter
from column_lineage.parser.sql_parser import SQLParser
from column_lineage.parser.tree_builder import TreeBuilder

__all__ = [
    # Version info
    "__version__",
    "__version_info__",
    # Core
    "LineageAnalyzer",
    "LineageExtractor",
    "SQLParser",
    "TreeBuilder",
    "ScriptSplitter",
    # Configuration
    "LineageConfig",
    "ErrorMode",
    # Results
    "AnalysisOutcome",
    "ColumnLineage",
    "ColumnRef",
    "LineageResult",
    "DependencyGraph",
    # Catalog and metadata
    "Catalog",
    "CatalogAdapter",
    "ColumnMetadata",
    "DDLOutcome",
    "DDLParser",
    "DictCatalog",
    "MemoryProvider",
    "MetadataBuilder",
    "MetadataProvider",
    "TableMetadata",
    "TableSchema",
    # Exceptions
    "LineageError",
    "UnsupportedSQLError",
    "TreeBuilderError",
    "UnresolvedReferenceError",
    "ColumnCountMismatchError",
    "QueryDepthExceededError",
    "TableNotFoundError",
    "DDLParseError",
]
