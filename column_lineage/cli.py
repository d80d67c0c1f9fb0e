"""
Command-line interface for column-lineage.

This module provides the ``column-lineage`` command, which analyzes one or
more SQL statements from a file, from ``-e`` or from standard input, with an
optional catalog loaded from JSON or DDL, and prints the lineage as JSON, a
table, a readable report or a Graphviz graph.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from colorama import Fore, Style, init
from tabulate import tabulate

from column_lineage import (
    ErrorMode,
    LineageAnalyzer,
    LineageConfig,
    MetadataBuilder,
    __version__,
)
from column_lineage.exceptions import LineageError
from column_lineage.graph.dependency_graph import DependencyGraph
from column_lineage.models.result import AnalysisOutcome

USE_COLOR = True


def paint(text: str, color: str) -> str:
    """Wrap text in a colorama color when color output is enabled."""
    if not USE_COLOR:
        return text
    return f"{color}{text}{Style.RESET_ALL}"


def print_success(msg: str) -> None:
    """Print success message."""
    print(paint(f"[OK] {msg}", Fore.GREEN), file=sys.stderr)


def print_error(msg: str) -> None:
    """Print error message."""
    print(paint(f"[ERROR] {msg}", Fore.RED), file=sys.stderr)


def print_warning(msg: str) -> None:
    """Print warning message."""
    print(paint(f"[WARN] {msg}", Fore.YELLOW), file=sys.stderr)


def print_info(msg: str) -> None:
    """Print info message."""
    print(paint(msg, Fore.CYAN), file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="column-lineage",
        description="SQL column-level lineage extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Analyze a SQL file
  %(prog)s query.sql

  # Analyze inline SQL with a catalog
  %(prog)s -e "SELECT * FROM orders" --catalog catalog.json

  # Bootstrap the catalog from DDL and print a table
  %(prog)s etl.sql --ddl schema.sql --format table

  # Graphviz output
  %(prog)s etl.sql --format graph | dot -Tpng -o lineage.png
        """,
    )

    input_group = parser.add_argument_group("Input Options")
    input_group.add_argument(
        "sql_file", nargs="?", help="SQL file to analyze ('-' for standard input)"
    )
    input_group.add_argument("--execute", "-e", metavar="SQL", help="Analyze SQL given inline")
    input_group.add_argument(
        "--catalog",
        "-c",
        metavar="JSON",
        help="Catalog file: {\"table\": [columns]} or a list of table metadata objects",
    )
    input_group.add_argument("--ddl", metavar="FILE", help="CREATE TABLE/VIEW script for the catalog")
    input_group.add_argument("--dialect", "-d", help="sqlglot dialect for DDL and script splitting")

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--format",
        "-f",
        choices=["json", "table", "pretty", "graph"],
        default="pretty",
        help="Output format (default: pretty)",
    )
    output_group.add_argument("--no-color", action="store_true", help="Disable colored output")

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument(
        "--strict",
        action="store_true",
        help="Fail on unresolved qualifiers and column count mismatches",
    )
    config_group.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """
    CLI main entry point.

    Exit status is 0 when every statement was analyzed, 1 otherwise.
    """
    global USE_COLOR

    args = build_parser().parse_args(argv)
    if args.no_color:
        USE_COLOR = False
    init(autoreset=True)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
            stream=sys.stderr,
        )

    try:
        sql = read_sql(args)
        builder = load_metadata(args)
        config = LineageConfig(
            on_unresolved=ErrorMode.FAIL if args.strict else ErrorMode.WARN,
            on_column_mismatch=ErrorMode.FAIL if args.strict else ErrorMode.WARN,
        )
        analyzer = LineageAnalyzer(
            catalog=builder.build_catalog(), config=config, dialect=args.dialect
        )
        outcomes = analyzer.analyze_script(sql)
    except LineageError as e:
        print_error(f"Lineage analysis failed: {e}")
        sys.exit(1)
    except OSError as e:
        print_error(str(e))
        sys.exit(1)

    if not outcomes:
        print_error("No SQL statements found")
        sys.exit(1)

    render(outcomes, args.format)
    show_warnings(outcomes)

    failed = [outcome for outcome in outcomes if not outcome.ok]
    for outcome in failed:
        print_error(f"{outcome.error} ({first_line(outcome.sql)})")
    if failed:
        sys.exit(1)
    print_success(f"Analyzed {len(outcomes)} statement(s)")


def read_sql(args: argparse.Namespace) -> str:
    if args.execute is not None:
        return args.execute
    if args.sql_file is None or args.sql_file == "-":
        return sys.stdin.read()
    path = Path(args.sql_file)
    if not path.exists():
        raise LineageError(f"File not found: {args.sql_file}")
    print_info(f"Reading SQL from: {path}")
    return path.read_text(encoding="utf-8")


def load_metadata(args: argparse.Namespace) -> MetadataBuilder:
    builder = MetadataBuilder(dialect=args.dialect)
    if args.catalog:
        path = Path(args.catalog)
        if not path.exists():
            raise LineageError(f"Catalog file not found: {args.catalog}")
        print_info(f"Loading catalog from: {path}")
        text = path.read_text(encoding="utf-8")
        try:
            data: Any = json.loads(text)
        except json.JSONDecodeError as e:
            raise LineageError(f"Invalid catalog JSON: {e}") from e
        if isinstance(data, dict) and all(isinstance(v, list) for v in data.values()):
            for key, columns in data.items():
                database, _, table = key.rpartition(".")
                builder.add_table(database or None, table, columns)
        else:
            builder.load_from_json_string(text)

    if args.ddl:
        path = Path(args.ddl)
        if not path.exists():
            raise LineageError(f"DDL file not found: {args.ddl}")
        print_info(f"Loading DDL from: {path}")
        builder.load_from_ddl(path.read_text(encoding="utf-8"))
        for outcome in builder.failed_statements():
            print_warning(f"Skipped DDL statement: {outcome.error}")
    return builder


def render(outcomes: list[AnalysisOutcome], fmt: str) -> None:
    succeeded = [outcome for outcome in outcomes if outcome.result is not None]

    if fmt == "json":
        if len(outcomes) == 1 and succeeded:
            print(succeeded[0].result.to_json())
        else:
            print(json.dumps([o.to_dict() for o in outcomes], indent=2, ensure_ascii=False))
    elif fmt == "graph":
        graph = DependencyGraph()
        for outcome in succeeded:
            for column in outcome.result.columns:
                graph.add_lineage(column)
        print(graph.to_dot())
    elif fmt == "table":
        for index, outcome in enumerate(succeeded, 1):
            if len(outcomes) > 1:
                print(paint(f"Statement {index}: {first_line(outcome.sql)}", Fore.CYAN))
            rows = [
                [
                    column.target.to_qualified_name(),
                    "\n".join(column.source_names()) or "-",
                    "\n".join(column.operators) or "-",
                ]
                for column in outcome.result.columns
            ]
            print(tabulate(rows, headers=["Target", "Sources", "Operators"], tablefmt="grid"))
    else:
        for outcome in succeeded:
            print(paint(outcome.result.to_formatted_string(), Style.BRIGHT))


def show_warnings(outcomes: list[AnalysisOutcome]) -> None:
    """Show WARNING and ERROR level findings of every statement."""
    warnings = [
        warning
        for outcome in outcomes
        if outcome.result is not None
        for warning in outcome.result.warnings
        if warning.level != "INFO"
    ]
    if warnings:
        print_warning(f"{len(warnings)} warning(s):")
        for i, warning in enumerate(warnings, 1):
            print(f"  {i}. {warning.message}", file=sys.stderr)


def first_line(sql: str, width: int = 60) -> str:
    line = sql.strip().splitlines()[0] if sql.strip() else ""
    return line if len(line) <= width else line[: width - 3] + "..."


if __name__ == "__main__":
    main()
