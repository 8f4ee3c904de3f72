"""Error taxonomy for the sync job.

Every failure raised by the core is a ``SyncError`` tagged with the job stage
it happened in, so the CLI boundary can log one structured record and pick an
exit status without inspecting driver exceptions.
"""

from enum import Enum
from typing import Dict, Optional


class SyncStage(str, Enum):
    """States of a single sync run."""

    START = "start"
    VALIDATE_CONFIG = "validate_config"
    SELECT_QUERY = "select_query"
    EXTRACT = "extract"
    ENSURE_SCHEMA = "ensure_schema"
    UPSERT_BATCH = "upsert_batch"
    COMMIT = "commit"
    DONE = "done"
    ABORT = "abort"


class SyncError(Exception):
    """Base error carrying stage context and the underlying cause."""

    default_stage: Optional[SyncStage] = None

    def __init__(
        self,
        message: str,
        stage: Optional[SyncStage] = None,
        original_error: Optional[BaseException] = None,
    ):
        self.stage = stage or self.default_stage
        self.original_error = original_error
        super().__init__(message)

    def to_dict(self) -> Dict[str, Optional[str]]:
        """Convert to structured dict for logging."""
        return {
            "error_type": type(self).__name__,
            "failed_stage": self.stage.value if self.stage else None,
            "message": str(self),
            "original_error_type": (
                type(self.original_error).__name__ if self.original_error else None
            ),
            "original_error_message": (
                str(self.original_error) if self.original_error else None
            ),
        }


class ConfigurationError(SyncError):
    """Missing or invalid configuration; nothing has been extracted or written."""

    default_stage = SyncStage.VALIDATE_CONFIG


class QueryNotFoundError(ConfigurationError):
    """No SQL file exists for a vendor/technology pair."""

    default_stage = SyncStage.SELECT_QUERY


class UnsupportedVendorError(ConfigurationError):
    """The configured vendor has no extraction query for the technology."""

    default_stage = SyncStage.SELECT_QUERY

    def __init__(
        self,
        vendor: str,
        technology: str,
        available: Optional[list] = None,
        original_error: Optional[BaseException] = None,
    ):
        self.vendor = vendor
        self.technology = technology
        self.available = list(available or [])
        message = f"Unsupported VENDOR value: {vendor} (technology {technology})"
        if self.available:
            pairs = ", ".join(f"{v}/{t}" for v, t in self.available)
            message += f"; available: {pairs}"
        super().__init__(message, original_error=original_error)


class SourceQueryError(SyncError):
    """Connecting to, querying or reading from the source store failed."""

    default_stage = SyncStage.EXTRACT


class MissingColumnError(SourceQueryError):
    """The source result set lacks one or more required columns."""

    def __init__(self, missing: list, available: list):
        self.missing = list(missing)
        self.available = list(available)
        super().__init__(
            f"Source result set is missing required columns: {', '.join(self.missing)}"
        )


class InvalidRecordError(SourceQueryError):
    """A source row cannot be mapped to a record (e.g. NULL key column)."""


class DestinationWriteError(SyncError):
    """Schema creation, batch execution or commit failed; nothing was applied."""

    default_stage = SyncStage.UPSERT_BATCH
