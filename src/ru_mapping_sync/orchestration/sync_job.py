"""
Single-run sync job.

Drives one full re-sync through a linear state machine::

    START -> VALIDATE_CONFIG -> SELECT_QUERY -> EXTRACT -> ENSURE_SCHEMA
          -> UPSERT_BATCH -> COMMIT -> DONE

Any failure moves the job to ABORT and is re-raised unchanged; deciding the
process exit status is left to the caller.
"""

import time
import uuid
from dataclasses import dataclass
from typing import List, Optional

from ru_mapping_sync.config.sync_config import SyncConfig
from ru_mapping_sync.domain.models import AccessTechnology
from ru_mapping_sync.exceptions import SyncError, SyncStage
from ru_mapping_sync.io.connectors.source_extractor import SourceExtractor
from ru_mapping_sync.io.loader.replicator import RuMappingReplicator
from ru_mapping_sync.io.queries.sql_provider import (
    QueryProvider,
    QuerySelector,
    SqlFileQueryProvider,
)
from ru_mapping_sync.utils.logging import bind_context

_TRANSITIONS = {
    SyncStage.START: SyncStage.VALIDATE_CONFIG,
    SyncStage.VALIDATE_CONFIG: SyncStage.SELECT_QUERY,
    SyncStage.SELECT_QUERY: SyncStage.EXTRACT,
    SyncStage.EXTRACT: SyncStage.ENSURE_SCHEMA,
    SyncStage.ENSURE_SCHEMA: SyncStage.UPSERT_BATCH,
    SyncStage.UPSERT_BATCH: SyncStage.COMMIT,
    SyncStage.COMMIT: SyncStage.DONE,
}


@dataclass
class SyncResult:
    """Outcome of a successful run."""

    vendor: str
    technology: str
    rows_processed: int
    duration_ms: float
    execution_id: str


class RuMappingSyncJob:
    """One extraction + replication run for a configured vendor/technology."""

    def __init__(
        self,
        config: SyncConfig,
        query_provider: Optional[QueryProvider] = None,
        extractor: Optional[SourceExtractor] = None,
        replicator: Optional[RuMappingReplicator] = None,
    ):
        self.config = config
        self.selector = QuerySelector(
            query_provider or SqlFileQueryProvider(config.sql_dir)
        )
        self.extractor = extractor or SourceExtractor(config.source)
        self.replicator = replicator or RuMappingReplicator(config.destination)
        self.execution_id = uuid.uuid4().hex
        self.state = SyncStage.START
        self.history: List[SyncStage] = [SyncStage.START]
        self._logger = bind_context(
            job="ru_mapping_sync",
            vendor=(config.vendor or "").strip().upper(),
            technology=config.technology,
            execution_id=self.execution_id,
        )

    def _advance(self, stage: SyncStage) -> None:
        expected = _TRANSITIONS.get(self.state)
        if stage != expected:
            raise RuntimeError(
                f"Illegal sync transition {self.state.value} -> {stage.value}"
            )
        self.state = stage
        self.history.append(stage)
        self._logger.debug("sync.stage", stage=stage.value)

    def _abort(self, exc: BaseException) -> None:
        failed_stage = self.state
        self.state = SyncStage.ABORT
        self.history.append(SyncStage.ABORT)
        details = exc.to_dict() if isinstance(exc, SyncError) else {
            "error_type": type(exc).__name__,
            "message": str(exc),
        }
        self._logger.error("sync.aborted", stage=failed_stage.value, **details)

    def run(self) -> SyncResult:
        """
        Execute the run once.

        Returns:
            SyncResult with the processed row count

        Raises:
            ConfigurationError: Invalid config or unsupported vendor/technology
            SourceQueryError: Source connection, query or row mapping failed
            DestinationWriteError: Schema, batch or commit failed (rolled back)
        """
        if self.state != SyncStage.START:
            raise RuntimeError("A sync job instance can only run once")

        start_time = time.perf_counter()
        self._logger.info("sync.started")
        try:
            self._advance(SyncStage.VALIDATE_CONFIG)
            self.config.validate()
            technology = AccessTechnology.parse(self.config.technology)

            self._advance(SyncStage.SELECT_QUERY)
            query = self.selector.resolve(self.config.vendor, technology.value)

            self._advance(SyncStage.EXTRACT)
            with self.extractor.extract(query) as records:
                rows = self.replicator.replicate(
                    records, on_stage=self._on_replica_stage
                )

            self._advance(SyncStage.DONE)
        except Exception as exc:
            self._abort(exc)
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        self._logger.info(
            "sync.completed", rows_processed=rows, duration_ms=duration_ms
        )
        return SyncResult(
            vendor=self.config.vendor.strip().upper(),
            technology=technology.value,
            rows_processed=rows,
            duration_ms=duration_ms,
            execution_id=self.execution_id,
        )

    def _on_replica_stage(self, stage: SyncStage) -> None:
        self._advance(stage)
