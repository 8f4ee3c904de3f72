"""Structured logging framework using structlog.

This module provides centralized logging configuration with:
- ISO-8601 timestamps
- JSON rendering for structured logs
- Automatic sanitization of sensitive fields
- Context binding support
- Dual output (stdout + optional rotating file)

Configuration is loaded from ru_mapping_sync.config.settings:
- LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: INFO
- LOG_TO_FILE: Enable file logging (1, true, yes). Default: disabled
- LOG_FILE_DIR: Directory for log files. Default: logs/
- LOG_RETENTION_DAYS: Rotated files kept. Default: 30

Usage:
    >>> from ru_mapping_sync.utils.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("sync.started", vendor="SAMSUNG", technology="LTE")
"""

import logging
import os
import re
import sys
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional

import structlog
from pydantic import ValidationError
from structlog.types import EventDict, Processor

from ru_mapping_sync.config import Settings, get_settings

# Sensitive key patterns for sanitization
SENSITIVE_PATTERNS = [
    re.compile(r".*password.*", re.IGNORECASE),
    re.compile(r".*token.*", re.IGNORECASE),
    re.compile(r".*secret.*", re.IGNORECASE),
    re.compile(r"^(TIBERO|SOURCE)_URL$", re.IGNORECASE),
]

# user:password@ section of a database URL
_URL_CREDENTIALS = re.compile(r"(?P<scheme>[a-zA-Z][\w+.-]*://[^:/@\s]*):[^@\s]*@")

REDACTED_VALUE = "[REDACTED]"

_HANDLER_MARKER = "_ru_mapping_sync_handler"

def _redact_value(value: Any) -> Any:
    if isinstance(value, dict):
        return sanitize_for_logging(value)
    if isinstance(value, str) and "://" in value:
        return _URL_CREDENTIALS.sub(r"\g<scheme>:***@", value)
    return value

def sanitize_for_logging(data: Dict[str, Any]) -> Dict[str, Any]:
    """Redact sensitive values from a dictionary before logging.

    Keys matching password, token or secret (case-insensitive, substring
    match) are replaced entirely; passwords embedded in database URLs are
    masked in any string value.

    Example:
        >>> sanitize_for_logging({"password": "secret123", "user": "admin"})
        {'password': '[REDACTED]', 'user': 'admin'}
    """
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        if any(pattern.match(str(key)) for pattern in SENSITIVE_PATTERNS):
            sanitized[key] = REDACTED_VALUE
        else:
            sanitized[key] = _redact_value(value)
    return sanitized

def sanitization_processor(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> MutableMapping[str, Any]:
    """Structlog processor that sanitizes sensitive fields in event_dict."""
    return sanitize_for_logging(dict(event_dict))

def _load_settings() -> Optional[Settings]:
    try:
        return get_settings()
    except ValidationError:
        # Invalid values are reported by the CLI; read LOG_* from os.environ.
        return None

def _get_log_level(level_name: Optional[str] = None) -> int:
    if level_name is None:
        settings = _load_settings()
        level_name = settings.LOG_LEVEL if settings else os.getenv("LOG_LEVEL", "INFO")
    return getattr(logging, level_name.upper(), logging.INFO)

def _should_log_to_file(settings: Optional[Settings]) -> bool:
    if settings is not None:
        return settings.LOG_TO_FILE
    return os.getenv("LOG_TO_FILE", "").lower() in ("1", "true", "yes")

def _get_retention_days(settings: Optional[Settings]) -> int:
    if settings is not None:
        return settings.LOG_RETENTION_DAYS
    try:
        return int(os.getenv("LOG_RETENTION_DAYS", "30"))
    except ValueError:
        return 30

def _get_log_file_path(log_dir: str) -> Path:
    """Get the log file path with date-based naming."""
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    # Format: ru-mapping-sync-YYYYMMDD.log
    date_str = datetime.now().strftime("%Y%m%d")
    return directory / f"ru-mapping-sync-{date_str}.log"

def configure_logging(level: Optional[str] = None) -> None:
    """Configure stdlib handlers and structlog processors.

    Safe to call more than once: handlers installed by a previous call are
    replaced, so the CLI can re-apply a ``--log-level`` override.
    """
    settings = _load_settings()
    log_level = _get_log_level(level)

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(log_level)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(log_level)
    setattr(stdout_handler, _HANDLER_MARKER, True)
    root.addHandler(stdout_handler)

    if _should_log_to_file(settings):
        log_dir = settings.LOG_FILE_DIR if settings else os.getenv("LOG_FILE_DIR", "logs")
        file_handler = TimedRotatingFileHandler(
            filename=str(_get_log_file_path(log_dir)),
            when="midnight",
            interval=1,
            backupCount=_get_retention_days(settings),
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        setattr(file_handler, _HANDLER_MARKER, True)
        root.addHandler(file_handler)

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        sanitization_processor,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

# Configure structlog on module import
configure_logging()

def get_logger(name: str) -> Any:
    """Get a structlog BoundLogger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("destination.upsert.completed", rows_staged=9)
    """
    return structlog.get_logger(name)

def bind_context(**kwargs: Any) -> Any:
    """Create a logger with bound context fields.

    Example:
        >>> logger = bind_context(vendor="SAMSUNG", execution_id="3f2a...")
        >>> logger.info("sync.stage", stage="extract")
    """
    return structlog.get_logger().bind(**kwargs)
