"""
Catalog interface and implementations.
"""

from column_lineage.catalog.dict_provider import DictCatalog
from column_lineage.catalog.provider import Catalog, TableSchema

__all__ = ["Catalog", "DictCatalog", "TableSchema"]
