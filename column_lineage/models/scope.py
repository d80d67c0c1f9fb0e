"""
Scope model for lineage extraction.

A Scope is the set of table aliases, CTE definitions and known column lists
visible while resolving one query level. Subqueries, CTE bodies and derived
tables each get a new Scope whose parent is the enclosing one.

Lookup rules:
    - Qualified references (``alias.col``) resolve their alias through
      ``find_binding``, which walks the parent chain so correlated subqueries
      can reach outer aliases.
    - Unqualified references are resolved against the current scope only
      (``single_alias`` and ``find_alias_for_column`` never look at parents).
    - CTE names are visible to every nested scope (``lookup_cte``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from column_lineage.ast.nodes import CTE, TableRef
from column_lineage.models.column import ColumnRef


@dataclass
class Scope:
    """Resolution context for one query level.

    Attributes:
        parent: Enclosing scope, or None for the outermost query.
        table_alias: Alias (or bare table name) -> TableRef, in registration
            order. Re-registering an alias moves it to the end.
        cte_map: CTE name -> CTE definition, for this query level's WITH.
        columns: Alias -> ordered column names known for that source (from
            the catalog, or the output names of a CTE/derived table).
        derived: Alias -> output column name -> sources of that column, for
            aliases bound to a CTE or derived table.

    Example:
        >>> scope = Scope()
        >>> scope.register_table("u", TableRef(table="users", alias="u"))
        >>> scope.register_columns("u", ["id", "name"])
        >>> scope.find_alias_for_column("name")
        'u'
        >>> child = Scope(parent=scope)
        >>> child.find_binding("u")[1].table
        'users'
    """

    parent: Optional[Scope] = None
    table_alias: dict[str, TableRef] = field(default_factory=dict)
    cte_map: dict[str, CTE] = field(default_factory=dict)
    columns: dict[str, list[str]] = field(default_factory=dict)
    derived: dict[str, dict[str, list[ColumnRef]]] = field(default_factory=dict)

    def register_table(self, alias: str, table_ref: TableRef) -> None:
        """Bind an alias to a table, replacing any earlier binding.

        Column information recorded for a previous binding of the same alias
        is discarded, so the last registration wins completely.
        """
        if not alias:
            raise ValueError("alias cannot be empty")
        self.table_alias.pop(alias, None)
        self.columns.pop(alias, None)
        self.derived.pop(alias, None)
        self.table_alias[alias] = table_ref

    def register_columns(self, alias: str, columns: list[str]) -> None:
        self.columns[alias] = list(columns)

    def register_derived(
        self, alias: str, column_sources: dict[str, list[ColumnRef]]
    ) -> None:
        self.derived[alias] = column_sources
        self.columns[alias] = list(column_sources)

    def register_cte(self, cte: CTE) -> None:
        self.cte_map[cte.name.lower()] = cte

    def lookup_cte(self, name: str) -> Optional[CTE]:
        """Find a CTE by name in this scope or any enclosing scope."""
        key = name.lower()
        scope: Optional[Scope] = self
        while scope is not None:
            if key in scope.cte_map:
                return scope.cte_map[key]
            scope = scope.parent
        return None

    def find_binding(self, alias: str) -> Optional[tuple[Scope, TableRef]]:
        """Resolve an alias in this scope, then in each enclosing scope.

        Returns:
            The owning scope and its TableRef, or None if no scope binds it.
        """
        scope: Optional[Scope] = self
        while scope is not None:
            if alias in scope.table_alias:
                return scope, scope.table_alias[alias]
            scope = scope.parent
        return None

    def single_alias(self) -> Optional[str]:
        """Return the only registered alias, if exactly one is registered."""
        if len(self.table_alias) == 1:
            return next(iter(self.table_alias))
        return None

    def find_alias_for_column(self, column: str) -> Optional[str]:
        """Return the first alias whose known columns include ``column``.

        Comparison is case-insensitive. Only this scope is searched.
        """
        wanted = column.lower()
        for alias, names in self.columns.items():
            if any(name.lower() == wanted for name in names):
                return alias
        return None

    def aliases(self) -> list[str]:
        """Return registered aliases in registration order."""
        return list(self.table_alias)
