"""
Configuration management for RU Mapping Sync.

Settings are read from environment variables and an optional ``.env`` file
using Pydantic BaseSettings. Each value accepts a ``RU_SYNC_`` prefixed name
plus the unprefixed names used by existing deployments (``VENDOR``,
``TIBERO_URL``, ``SQLITE_PATH`` ...).
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import structlog
from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ru_mapping_sync.config.sync_config import (
    DestinationConfig,
    SourceConnectionConfig,
    SyncConfig,
)
from ru_mapping_sync.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

ENV_FILE_OVERRIDE = os.getenv("RU_SYNC_ENV_FILE")
SETTINGS_ENV_FILE = Path(ENV_FILE_OVERRIDE).expanduser() if ENV_FILE_OVERRIDE else Path(".env")

DEFAULT_SQL_DIR = "/app/sql"

# (field name, env name shown to operators)
REQUIRED_FIELDS = [
    ("vendor", "VENDOR"),
    ("mobile_gen", "MOBILE_GEN"),
    ("source_url", "TIBERO_URL"),
    ("source_user", "TIBERO_USER"),
    ("source_password", "TIBERO_PASSWORD"),
    ("sqlite_path", "SQLITE_PATH"),
]


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Required values are declared optional here so that settings can always be
    constructed (logging setup reads LOG_LEVEL before anything is validated);
    ``to_sync_config`` is the fail-fast check.
    """

    vendor: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RU_SYNC_VENDOR", "VENDOR"),
        description="Equipment vendor whose query is extracted",
    )
    mobile_gen: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RU_SYNC_MOBILE_GEN", "MOBILE_GEN"),
        description="Access-technology tag (LTE/NR, 4G/5G)",
    )
    source_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RU_SYNC_SOURCE_URL", "SOURCE_URL", "TIBERO_URL"),
        description="SQLAlchemy URL of the source database",
    )
    source_user: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RU_SYNC_SOURCE_USER", "SOURCE_USER", "TIBERO_USER"),
        description="Source database user",
    )
    source_password: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "RU_SYNC_SOURCE_PASSWORD", "SOURCE_PASSWORD", "TIBERO_PASSWORD"
        ),
        description="Source database password",
        repr=False,
    )
    sqlite_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RU_SYNC_SQLITE_PATH", "SQLITE_PATH"),
        description="Path of the destination SQLite file",
    )
    sql_dir: str = Field(
        default=DEFAULT_SQL_DIR,
        validation_alias=AliasChoices("RU_SYNC_SQL_DIR", "SQL_DIR"),
        description="Directory holding <vendor>_<technology>.sql files",
    )
    fetch_size: int = Field(
        default=1000,
        validation_alias=AliasChoices("RU_SYNC_FETCH_SIZE", "FETCH_SIZE"),
        description="Rows buffered per fetch from the source cursor",
    )
    batch_size: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("RU_SYNC_BATCH_SIZE", "BATCH_SIZE"),
        description="Rows per executemany flush (None = whole result set)",
    )

    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_FILE_DIR: str = Field(default="logs", validation_alias="LOG_FILE_DIR")
    LOG_RETENTION_DAYS: int = Field(default=30, validation_alias="LOG_RETENTION_DAYS")

    @field_validator(
        "vendor",
        "mobile_gen",
        "source_url",
        "source_user",
        "source_password",
        "sqlite_path",
        "batch_size",
        mode="before",
    )
    @classmethod
    def _blank_as_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    def missing_required(self) -> List[str]:
        """Return the operator-facing names of required values that are unset."""
        return [env for name, env in REQUIRED_FIELDS if getattr(self, name) is None]

    def to_sync_config(self) -> SyncConfig:
        """
        Build the immutable run configuration.

        Raises:
            ConfigurationError: If any required value is missing
        """
        missing = self.missing_required()
        if missing:
            for key in missing:
                logger.error("configuration.missing_value", key=key)
            raise ConfigurationError(
                "Missing required environment variables: "
                f"{', '.join(missing)}. Check the .env file."
            )

        return SyncConfig(
            vendor=self.vendor,
            technology=self.mobile_gen,
            sql_dir=Path(self.sql_dir),
            source=SourceConnectionConfig(
                url=self.source_url,
                user=self.source_user,
                password=self.source_password,
                fetch_size=self.fetch_size,
            ),
            destination=DestinationConfig(
                sqlite_path=Path(self.sqlite_path).expanduser(),
                batch_size=self.batch_size,
            ),
        )

    model_config = SettingsConfigDict(
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance with loaded configuration
    """
    return Settings()


def load_settings() -> Settings:
    """
    Get cached settings, reporting invalid values as a configuration error.

    Raises:
        ConfigurationError: If any environment or ``.env`` value fails
            validation (e.g. a non-numeric batch size)
    """
    try:
        return get_settings()
    except ValidationError as e:
        invalid = sorted(
            {".".join(str(part) for part in error["loc"]) for error in e.errors()}
        )
        for key in invalid:
            logger.error("configuration.invalid_value", key=key)
        raise ConfigurationError(
            f"Invalid configuration values: {', '.join(invalid)}",
            original_error=e,
        ) from e
