"""
Unified CLI entry point for RU Mapping Sync.

Usage:
    python -m ru_mapping_sync.cli <command> [options]

Available commands:
    sync     - Extract the vendor query and upsert it into the SQLite replica
    queries  - List vendor/technology pairs that have an extraction query
    lookup   - Show replicated mappings for one RU parameter

Examples:
    # One sync run with settings from .env / environment
    python -m ru_mapping_sync.cli sync

    # Override vendor and technology for a single run
    python -m ru_mapping_sync.cli sync --vendor samsung --technology NR

    # Inspect the replica
    python -m ru_mapping_sync.cli lookup --ru-param 1-2-3
"""

import argparse
import sys
from typing import List, Optional


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point with subcommand routing.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = argparse.ArgumentParser(
        prog="ru_mapping_sync.cli",
        description="RU Mapping Sync CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ru_mapping_sync.cli sync
  python -m ru_mapping_sync.cli sync --vendor samsung --technology NR
  python -m ru_mapping_sync.cli queries --sql-dir ./sql
  python -m ru_mapping_sync.cli lookup --ru-param 1-2-3
        """,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
        help="Command to execute",
    )

    # Each command parses its own options
    subparsers.add_parser(
        "sync",
        help="Run one extraction + replication job",
        add_help=False,
    )
    subparsers.add_parser(
        "queries",
        help="List available vendor/technology queries",
        add_help=False,
    )
    subparsers.add_parser(
        "lookup",
        help="Show replicated mappings for an RU parameter",
        add_help=False,
    )

    args, remaining_args = parser.parse_known_args(argv)

    if args.command == "sync":
        from ru_mapping_sync.cli.sync import main as sync_main

        return sync_main(remaining_args)

    elif args.command == "queries":
        from ru_mapping_sync.cli.readback import queries_main

        return queries_main(remaining_args)

    elif args.command == "lookup":
        from ru_mapping_sync.cli.readback import lookup_main

        return lookup_main(remaining_args)

    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
