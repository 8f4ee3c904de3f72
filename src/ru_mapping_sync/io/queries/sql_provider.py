"""
Extraction query lookup.

Queries live as static SQL files named ``<vendor>_<technology>.sql`` (both
lower-case) in a configured directory. ``QuerySelector`` is the entry point
used by the sync job; it canonicalises the vendor and technology and turns a
missing file into ``UnsupportedVendorError``.
"""

import logging
from pathlib import Path
from typing import List, Protocol, Tuple, Union

from ru_mapping_sync.domain.models import AccessTechnology
from ru_mapping_sync.exceptions import (
    ConfigurationError,
    QueryNotFoundError,
    UnsupportedVendorError,
)

logger = logging.getLogger(__name__)

SQL_SUFFIX = ".sql"


class QueryProvider(Protocol):
    """Anything that can return query text for a vendor/technology pair."""

    def provide_query(self, vendor: str, technology: str) -> str:
        ...


class SqlFileQueryProvider:
    """Reads extraction queries from ``<vendor>_<technology>.sql`` files."""

    def __init__(self, sql_dir: Union[str, Path], encoding: str = "utf-8"):
        self.sql_dir = Path(sql_dir)
        self.encoding = encoding

    def query_path(self, vendor: str, technology: str) -> Path:
        return self.sql_dir / f"{vendor.lower()}_{technology.lower()}{SQL_SUFFIX}"

    def provide_query(self, vendor: str, technology: str) -> str:
        """
        Load the query text for a vendor/technology pair.

        Raises:
            QueryNotFoundError: If the file is missing, unreadable or empty
        """
        path = self.query_path(vendor, technology)
        try:
            query = path.read_text(encoding=self.encoding)
        except OSError as e:
            raise QueryNotFoundError(
                f"Cannot read SQL file: {path}", original_error=e
            ) from e

        query = query.strip()
        if query.endswith(";"):
            # DB-API drivers reject a trailing statement terminator.
            query = query[:-1].rstrip()
        if not query:
            raise QueryNotFoundError(f"SQL file is empty: {path}")

        logger.debug(f"Loaded extraction query from {path} ({len(query)} chars)")
        return query

    def available(self) -> List[Tuple[str, str]]:
        """List the (VENDOR, TECHNOLOGY) pairs that have a query file."""
        if not self.sql_dir.is_dir():
            return []

        pairs = []
        for path in sorted(self.sql_dir.glob(f"*_*{SQL_SUFFIX}")):
            vendor, _, technology = path.stem.rpartition("_")
            if vendor and technology:
                pairs.append((vendor.upper(), technology.upper()))
        return pairs


class QuerySelector:
    """Resolves the extraction query for the configured vendor and technology."""

    def __init__(self, provider: QueryProvider):
        self.provider = provider

    def resolve(self, vendor: str, technology: str) -> str:
        """
        Return the query text for ``vendor`` and ``technology``.

        Raises:
            ConfigurationError: If vendor is blank or technology is unknown
            UnsupportedVendorError: If no query exists for the pair
        """
        canonical_vendor = (vendor or "").strip().upper()
        if not canonical_vendor:
            raise ConfigurationError("Vendor must be a non-blank value")
        tech = AccessTechnology.parse(technology)

        try:
            return self.provider.provide_query(canonical_vendor, tech.value)
        except QueryNotFoundError as e:
            list_available = getattr(self.provider, "available", None)
            available = list_available() if callable(list_available) else []
            raise UnsupportedVendorError(
                canonical_vendor, tech.value, available=available, original_error=e
            ) from e
