"""Version information."""

__version__ = "0.3.0"
__version_info__ = (0, 3, 0)

# Version history
CHANGELOG = """
# Changelog

## v0.3.0

- UPDATE statement lineage (SET assignments)
- UNION / INTERSECT / EXCEPT branch merging
- networkx dependency graph export
- `column-lineage` CLI with json/table/pretty/graph output

## v0.2.0

- Metadata layer: MemoryProvider, MetadataBuilder, CatalogAdapter
- DDL-to-schema parsing (CREATE TABLE / CREATE VIEW) with per-statement outcomes
- CTE column lists and derived tables

## v0.1.0

- Stack-based tree builder over the bundled lark grammar
- Scope-aware column lineage for SELECT and INSERT ... SELECT
- Star expansion from catalog metadata
"""
