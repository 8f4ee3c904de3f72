"""Read-only commands: ``queries`` and ``lookup``."""

import argparse
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from sqlalchemy import create_engine

from ru_mapping_sync.config import DestinationConfig, load_settings
from ru_mapping_sync.domain.models import RU_MAPPING_COLUMNS
from ru_mapping_sync.exceptions import ConfigurationError
from ru_mapping_sync.io.queries.sql_provider import SqlFileQueryProvider
from ru_mapping_sync.io.repositories.ru_mapping_repository import RuMappingRepository


def queries_main(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="ru_mapping_sync.cli queries",
        description="List vendor/technology pairs that have an extraction query",
    )
    parser.add_argument("--sql-dir", help="Override SQL_DIR")
    args = parser.parse_args(argv)

    console = console or Console()
    try:
        sql_dir = Path(args.sql_dir or load_settings().sql_dir)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        return 2
    pairs = SqlFileQueryProvider(sql_dir).available()
    if not pairs:
        console.print(f"[yellow]No query files found in {sql_dir}[/yellow]")
        return 1

    table = Table(title=f"Queries in {sql_dir}")
    table.add_column("vendor")
    table.add_column("technology")
    for vendor, technology in pairs:
        table.add_row(vendor, technology)
    console.print(table)
    return 0


def lookup_main(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="ru_mapping_sync.cli lookup",
        description="Show replicated mappings for one RU parameter",
    )
    parser.add_argument("--ru-param", required=True, help="RU parameter to look up")
    parser.add_argument("--sqlite-path", help="Override SQLITE_PATH")
    args = parser.parse_args(argv)

    console = console or Console()
    try:
        sqlite_path = args.sqlite_path or load_settings().sqlite_path
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        return 2
    if not sqlite_path:
        console.print("[red]SQLITE_PATH is not configured[/red]")
        return 2
    if not Path(sqlite_path).exists():
        console.print(f"[red]Replica not found: {sqlite_path}[/red]")
        return 1

    engine = create_engine(DestinationConfig(Path(sqlite_path)).sqlalchemy_url())
    try:
        with engine.connect() as conn:
            records = RuMappingRepository(conn).get(args.ru_param)
    finally:
        engine.dispose()

    if not records:
        console.print(f"No mappings for ru_param={args.ru_param}")
        return 1

    table = Table(title=f"ru_param={args.ru_param} ({len(records)} rows)")
    for col in RU_MAPPING_COLUMNS:
        table.add_column(col)
    for record in records:
        table.add_row(*[getattr(record, col) or "" for col in RU_MAPPING_COLUMNS])
    console.print(table)
    return 0
