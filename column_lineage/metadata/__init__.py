"""
Table metadata: schema types, providers, DDL parsing and catalog adaptation.
"""

from column_lineage.metadata.adapter import CatalogAdapter
from column_lineage.metadata.builder import MetadataBuilder
from column_lineage.metadata.ddl_parser import DDLOutcome, DDLParser
from column_lineage.metadata.provider import MemoryProvider, MetadataProvider
from column_lineage.metadata.schema import (
    ColumnMetadata,
    DatabaseMetadata,
    TableMetadata,
)

__all__ = [
    "CatalogAdapter",
    "ColumnMetadata",
    "DDLOutcome",
    "DDLParser",
    "DatabaseMetadata",
    "MemoryProvider",
    "MetadataBuilder",
    "MetadataProvider",
    "TableMetadata",
]
