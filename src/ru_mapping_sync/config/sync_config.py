"""Immutable run configuration passed into the sync core."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from sqlalchemy.engine import URL, make_url

from ru_mapping_sync.exceptions import ConfigurationError


@dataclass(frozen=True)
class SourceConnectionConfig:
    """Connection parameters for the source store."""

    url: str
    user: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    fetch_size: int = 1000

    def sqlalchemy_url(self) -> URL:
        """Build the SQLAlchemy URL, merging separately supplied credentials."""
        try:
            url = make_url(self.url)
        except Exception as e:
            raise ConfigurationError(
                f"Invalid source URL: {e}", original_error=e
            ) from e

        overrides = {}
        if self.user:
            overrides["username"] = self.user
        if self.password:
            overrides["password"] = self.password
        return url.set(**overrides) if overrides else url

    def display_url(self) -> str:
        return self.sqlalchemy_url().render_as_string(hide_password=True)


@dataclass(frozen=True)
class DestinationConfig:
    """Location of the local SQLite replica."""

    sqlite_path: Path
    batch_size: Optional[int] = None

    def sqlalchemy_url(self) -> URL:
        return URL.create("sqlite", database=str(self.sqlite_path))


@dataclass(frozen=True)
class SyncConfig:
    """Everything one sync run needs, resolved once at startup."""

    vendor: str
    technology: str
    sql_dir: Path
    source: SourceConnectionConfig
    destination: DestinationConfig

    def validate(self) -> None:
        """Reject blank values the core cannot run without."""
        blanks = [
            name
            for name, value in (
                ("vendor", self.vendor),
                ("technology", self.technology),
                ("source.url", self.source.url),
                ("destination.sqlite_path", str(self.destination.sqlite_path)),
            )
            if value is None or not str(value).strip()
        ]
        if blanks:
            raise ConfigurationError(
                f"Missing required configuration values: {', '.join(blanks)}"
            )
        if self.destination.batch_size is not None and self.destination.batch_size < 1:
            raise ConfigurationError("batch_size must be a positive integer")
        if self.source.fetch_size < 1:
            raise ConfigurationError("fetch_size must be a positive integer")
