"""
``sync`` command: run one RU mapping sync and map the outcome to an exit code.

This is the only place that turns errors into a process status:

- 0: run completed, processed row count logged
- 2: configuration error (missing values, unsupported vendor/technology)
- 1: source, destination or unexpected failure
"""

import argparse
from typing import List, Optional

from ru_mapping_sync.config import load_settings
from ru_mapping_sync.exceptions import ConfigurationError, SyncError
from ru_mapping_sync.orchestration.sync_job import RuMappingSyncJob
from ru_mapping_sync.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ru_mapping_sync.cli sync",
        description="Replicate vendor RU mapping rows into the SQLite replica",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--vendor", help="Override VENDOR")
    parser.add_argument(
        "--technology",
        help="Override MOBILE_GEN (LTE, NR, 4G or 5G)",
    )
    parser.add_argument("--sqlite-path", help="Override SQLITE_PATH")
    parser.add_argument("--sql-dir", help="Override SQL_DIR")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Flush staged rows every N rows inside the single transaction",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        default=None,
        help="Override LOG_LEVEL",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.log_level:
        configure_logging(args.log_level)

    try:
        settings = load_settings()
        overrides = {
            "vendor": args.vendor,
            "mobile_gen": args.technology,
            "sqlite_path": args.sqlite_path,
            "sql_dir": args.sql_dir,
            "batch_size": args.batch_size,
        }
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if overrides:
            settings = settings.model_copy(update=overrides)

        config = settings.to_sync_config()
        result = RuMappingSyncJob(config).run()
    except ConfigurationError as e:
        logger.error("sync.configuration_error", **e.to_dict())
        return EXIT_CONFIG_ERROR
    except SyncError as e:
        logger.error("sync.failed", **e.to_dict())
        return EXIT_FAILURE
    except Exception as e:
        logger.exception("sync.unexpected_error", error=str(e))
        return EXIT_FAILURE

    logger.info(
        "sync.rows_processed",
        vendor=result.vendor,
        technology=result.technology,
        rows=result.rows_processed,
        execution_id=result.execution_id,
    )
    return EXIT_OK
