"""
Adapter exposing a MetadataProvider as a Catalog.
"""

from __future__ import annotations

from typing import Optional

from column_lineage.catalog.provider import Catalog, TableSchema
from column_lineage.exceptions import TableNotFoundError
from column_lineage.metadata.provider import MetadataProvider


class CatalogAdapter(Catalog):
    """Catalog view of a MetadataProvider.

    Rich column metadata is reduced to column names; a table the provider
    does not know becomes ``None`` rather than an exception.

    Example:
        >>> provider = MemoryProvider()
        >>> provider.add_table("shop", "orders", ["id", "amount"])
        >>> CatalogAdapter(provider).get_table_columns("shop", "orders")
        ['id', 'amount']
    """

    def __init__(self, provider: MetadataProvider) -> None:
        self.provider = provider

    def get_table_schema(
        self, database: Optional[str], table: str
    ) -> Optional[TableSchema]:
        try:
            schema = self.provider.get_table_schema(database, table)
        except TableNotFoundError:
            return None
        return TableSchema(
            table=schema.table,
            columns=tuple(schema.get_column_names()),
            database=schema.database,
        )
