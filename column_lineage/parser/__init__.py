"""
SQL parsing: grammar front end, tree builder, and script splitting.
"""

from column_lineage.parser.script_splitter import ScriptSplitter
from column_lineage.parser.sql_parser import (
    SQLParser,
    SyntaxErrorCollector,
    get_grammar,
)
from column_lineage.parser.tree_builder import (
    ScopeMarker,
    TreeBuilder,
    unquote_identifier,
    unquote_string,
)

__all__ = [
    "SQLParser",
    "ScopeMarker",
    "ScriptSplitter",
    "SyntaxErrorCollector",
    "TreeBuilder",
    "get_grammar",
    "unquote_identifier",
    "unquote_string",
]
