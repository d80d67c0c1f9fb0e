"""
Lineage analyzer main entry point.

This module defines the LineageAnalyzer class, which wires the SQL parser,
the tree builder and the lineage extractor together. Each ``analyze`` call
builds its own syntax tree and scopes; nothing is carried between calls.
"""

from __future__ import annotations

import logging
from typing import Optional

from column_lineage.analyzer.extractor import LineageExtractor
from column_lineage.ast.nodes import Statement
from column_lineage.catalog.provider import Catalog
from column_lineage.exceptions import LineageError, QueryDepthExceededError
from column_lineage.models.config import LineageConfig
from column_lineage.models.result import AnalysisOutcome, LineageResult
from column_lineage.parser.script_splitter import ScriptSplitter
from column_lineage.parser.sql_parser import SQLParser

logger = logging.getLogger(__name__)


class LineageAnalyzer:
    """Column-level lineage analyzer - main entry point.

    Usage:
        >>> analyzer = LineageAnalyzer(DictCatalog({"orders": ["id", "amount"]}))
        >>> result = analyzer.analyze("SELECT SUM(amount) AS total FROM orders")
        >>> print(result.to_json())

    Attributes:
        catalog: Catalog consulted for table columns (may be None).
        config: LineageConfig object containing analyzer configuration.
        dialect: sqlglot dialect used to split scripts into statements.

    Example:
        >>> analyzer = LineageAnalyzer()
        >>> result = analyzer.analyze("SELECT u.name AS n FROM users u")
        >>> result.columns[0].target.column, result.columns[0].operators
        ('n', ['u.name'])
    """

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        config: Optional[LineageConfig] = None,
        dialect: Optional[str] = None,
    ) -> None:
        """Initialize analyzer.

        Args:
            catalog: Catalog for star expansion and column attribution.
                Without one, lineage is still produced but ``*`` cannot be
                expanded and unqualified columns over joins stay unattributed.
            config: LineageConfig object (if None, uses default config).
            dialect: sqlglot dialect name for ``analyze_script``.
        """
        self.catalog = catalog
        self.config = config or LineageConfig()
        self.dialect = dialect
        self.parser = SQLParser()

    def parse(self, sql: str) -> Statement:
        """Parse one statement into its syntax tree.

        Raises:
            UnsupportedSQLError: If the SQL does not parse.
        """
        return self.parser.parse(sql)

    def analyze(self, sql: str) -> LineageResult:
        """Analyze one SQL statement.

        Workflow:
        1. Parse SQL -> parse tree (syntax errors stop here)
        2. Build the typed syntax tree
        3. Extract lineage with a fresh extractor and scope
        4. Return the LineageResult

        Args:
            sql: One SQL statement, optionally terminated by ``;``.

        Returns:
            LineageResult with one entry per output column.

        Raises:
            LineageError: UnsupportedSQLError for unparseable input,
                TreeBuilderError for internal inconsistencies, and the
                FAIL-mode errors selected by the config.

        Example:
            >>> result = LineageAnalyzer().analyze("SELECT a + b AS c FROM t")
            >>> result.columns[0].source_names()
            ['t.a', 't.b']
        """
        try:
            statement = self.parse(sql)
            logger.debug("Parsed %s", type(statement).__name__)
            extractor = LineageExtractor(self.catalog, self.config)
            result = extractor.extract(statement)
        except RecursionError as e:
            raise QueryDepthExceededError(
                "Statement is nested too deeply to analyze", self.config.max_depth
            ) from e
        result.sql = sql
        logger.debug(
            "Extracted %d column(s), %d warning(s)", len(result.columns), len(result.warnings)
        )
        return result

    def analyze_script(self, script: str) -> list[AnalysisOutcome]:
        """Analyze every statement of a multi-statement script.

        A failing statement does not stop the script; its outcome carries
        the error instead of a result.

        Args:
            script: SQL text with statements separated by semicolons.

        Returns:
            One AnalysisOutcome per statement, in script order.

        Raises:
            LineageError: If the script cannot be split into statements.
        """
        outcomes: list[AnalysisOutcome] = []
        for statement in ScriptSplitter(self.dialect).split(script):
            try:
                outcomes.append(AnalysisOutcome(sql=statement, result=self.analyze(statement)))
            except LineageError as e:
                logger.debug("Statement failed: %s", e.message)
                outcomes.append(AnalysisOutcome(sql=statement, error=e))
        return outcomes
