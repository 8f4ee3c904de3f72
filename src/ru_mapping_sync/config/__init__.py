"""Configuration management for RU Mapping Sync.

Usage:
    >>> from ru_mapping_sync.config import get_settings
    >>> config = get_settings().to_sync_config()
"""

from ru_mapping_sync.config.settings import Settings, get_settings, load_settings
from ru_mapping_sync.config.sync_config import (
    DestinationConfig,
    SourceConnectionConfig,
    SyncConfig,
)

__all__ = [
    "Settings",
    "get_settings",
    "load_settings",
    "SyncConfig",
    "SourceConnectionConfig",
    "DestinationConfig",
]
