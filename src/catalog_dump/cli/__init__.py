"""CLI module for catalog collection and predata rendering.

Usage:
    catalog-dump render catalog.json --output predata.sql
    catalog-dump collect --profile dev --output catalog.json
    catalog-dump tables --profile dev
    catalog-dump --verbose render catalog.json

Commands:
    render   - Render a catalog snapshot to predata SQL
    collect  - Collect table facts from a live database into a snapshot
    tables   - Summarize the tables of a live database
"""

import argparse
import logging
import sys
from pathlib import Path

import psycopg
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from catalog_dump.catalog.postgres import PostgresCatalogSource
from catalog_dump.catalog.snapshot import load_snapshot, save_snapshot
from catalog_dump.config.loader import get_profile, load_config
from catalog_dump.config.models import CatalogDumpConfig
from catalog_dump.ddl.predata import render_predata
from catalog_dump.ddl.writer import StatementWriter
from catalog_dump.errors import CatalogDumpError
from catalog_dump.schema.assembler import construct_definitions_for_tables

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("catalog_dump")

# Errors reported as a one-line message with exit code 1
HANDLED_ERRORS = (CatalogDumpError, FileNotFoundError, ValidationError, psycopg.Error)


# ============================================================================
# Helpers
# ============================================================================


def _configure_logging(level: str, verbose: bool) -> None:
    """Route package logs through rich on stderr."""
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=err_console, show_path=False))
    logger.setLevel(logging.DEBUG if verbose else level)


def _load_optional_config(config_path: str | None) -> CatalogDumpConfig:
    """Load the config file; fall back to defaults when none was given and none exists."""
    try:
        return load_config(config_path)
    except FileNotFoundError:
        if config_path is not None:
            raise
        return CatalogDumpConfig()


def _partition_label(level: str) -> str:
    return {"p": "parent", "i": "intermediate", "l": "leaf"}.get(level, "")


# ============================================================================
# Commands
# ============================================================================


def cmd_render(args: argparse.Namespace) -> int:
    """Render a snapshot JSON file to predata SQL.

    Args:
        args: Parsed arguments with snapshot, output and config.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = _load_optional_config(args.config)
        _configure_logging(config.log_level, args.verbose)
        snapshot = load_snapshot(args.snapshot)

        output = args.output or config.output_file
        if output == "-":
            writer = StatementWriter(sys.stdout)
            render_predata(snapshot, writer)
            writer.close()
            return 0

        # Render in memory first so a structural error leaves no partial file
        writer = StatementWriter()
        tables = render_predata(snapshot, writer)
        writer.close()
        output_path = Path(output)
        output_path.write_text(writer.getvalue())
    except HANDLED_ERRORS as e:
        err_console.print(f"[red]Error: {e}[/red]")
        return 1

    console.print(
        f"[bold green]v[/bold green] Wrote predata for {len(tables)} table(s) to "
        f"[cyan]{output_path}[/cyan]"
    )
    return 0


def cmd_collect(args: argparse.Namespace) -> int:
    """Collect table facts from a configured profile into a snapshot file.

    Args:
        args: Parsed arguments with profile, output and config.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = load_config(args.config)
        _configure_logging(config.log_level, args.verbose)
        profile = get_profile(config, args.profile)
        with PostgresCatalogSource(profile.url, profile.connect_timeout) as source:
            snapshot = source.collect_table_snapshot()
        path = save_snapshot(snapshot, args.output)
    except HANDLED_ERRORS as e:
        err_console.print(f"[red]Error: {e}[/red]")
        return 1

    console.print(
        f"[bold green]v[/bold green] Collected {len(snapshot.relations)} relation(s) "
        f"from [bold cyan]{args.profile}[/bold cyan] into [cyan]{path}[/cyan]"
    )
    return 0


def cmd_tables(args: argparse.Namespace) -> int:
    """Print a summary of the tables in a configured database.

    Args:
        args: Parsed arguments with profile and config.

    Returns:
        0 on success, 1 on failure.
    """
    try:
        config = load_config(args.config)
        _configure_logging(config.log_level, args.verbose)
        profile = get_profile(config, args.profile)
        with PostgresCatalogSource(profile.url, profile.connect_timeout) as source:
            relations = source.get_relations()
            tables = construct_definitions_for_tables(source, relations)
    except HANDLED_ERRORS as e:
        err_console.print(f"[red]Error: {e}[/red]")
        return 1

    table = Table(
        title=f"Tables in {args.profile}", show_header=True, header_style="bold"
    )
    table.add_column("Relation")
    table.add_column("Partition")
    table.add_column("Distribution")
    table.add_column("Data")

    for entry in tables:
        definition = entry.definition
        table.add_row(
            entry.fqn,
            _partition_label(definition.partition_level_info.level),
            definition.dist_policy,
            "[dim]skipped[/dim]" if entry.skip_data_backup() else "backed up",
        )

    console.print(table)
    return 0


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="catalog-dump",
        description="Render database catalog state as restorable DDL",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to catalog-dump.toml (default: ./catalog-dump.toml)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # render command
    p_render = subparsers.add_parser(
        "render",
        help="Render a catalog snapshot to predata SQL",
    )
    p_render.add_argument(
        "snapshot",
        help="Path to a catalog snapshot JSON file",
    )
    p_render.add_argument(
        "--output",
        "-o",
        default=None,
        help="Output SQL file, or - for stdout (default: [render] output)",
    )
    p_render.set_defaults(func=cmd_render)

    # collect command
    p_collect = subparsers.add_parser(
        "collect",
        help="Collect table facts from a live database into a snapshot",
    )
    p_collect.add_argument(
        "--profile",
        "-p",
        required=True,
        help="Database profile from the config file",
    )
    p_collect.add_argument(
        "--output",
        "-o",
        default="catalog.json",
        help="Snapshot file to write (default: catalog.json)",
    )
    p_collect.set_defaults(func=cmd_collect)

    # tables command
    p_tables = subparsers.add_parser(
        "tables",
        help="Summarize the tables of a live database",
    )
    p_tables.add_argument(
        "--profile",
        "-p",
        required=True,
        help="Database profile from the config file",
    )
    p_tables.set_defaults(func=cmd_tables)

    args = parser.parse_args()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
