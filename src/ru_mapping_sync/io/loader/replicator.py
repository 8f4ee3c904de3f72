import time
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ru_mapping_sync.config.sync_config import DestinationConfig
from ru_mapping_sync.domain.models import RuMappingRecord
from ru_mapping_sync.exceptions import DestinationWriteError, SyncStage
from ru_mapping_sync.io.loader.insert_builder import (
    RU_MAPPING_TABLE,
    build_create_table_sql,
    build_ru_mapping_upsert_sql,
)
from ru_mapping_sync.utils.logging import get_logger

logger = get_logger(__name__)

StageListener = Callable[[SyncStage], None]


class RuMappingReplicator:
    """Transactional SQLite replica writer with composite-key upserts."""

    def __init__(
        self,
        destination: DestinationConfig,
        table: str = RU_MAPPING_TABLE,
        engine_factory: Optional[Callable[..., Engine]] = None,
    ):
        self.destination = destination
        self.table = table
        self.batch_size = destination.batch_size
        self._engine_factory = engine_factory or create_engine
        self._upsert_sql = text(build_ru_mapping_upsert_sql(table))
        self._logger = logger

    def _create_engine(self) -> Engine:
        path = Path(self.destination.sqlite_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return self._engine_factory(self.destination.sqlalchemy_url())
        except (OSError, SQLAlchemyError) as e:
            raise DestinationWriteError(
                f"Cannot open destination {path}: {e}",
                stage=SyncStage.ENSURE_SCHEMA,
                original_error=e,
            ) from e

    @staticmethod
    def _notify(listener: Optional[StageListener], stage: SyncStage) -> None:
        if listener is not None:
            listener(stage)

    def ensure_schema(self, engine: Optional[Engine] = None) -> None:
        """Create the destination table if it does not exist."""
        owns_engine = engine is None
        engine = engine or self._create_engine()
        try:
            with engine.begin() as conn:
                conn.execute(text(build_create_table_sql(self.table)))
            self._logger.debug("destination.schema.ensured", table=self.table)
        except SQLAlchemyError as e:
            self._logger.error(
                "destination.schema.failed", table=self.table, error=str(e)
            )
            raise DestinationWriteError(
                f"Failed to create table {self.table}: {e}",
                stage=SyncStage.ENSURE_SCHEMA,
                original_error=e,
            ) from e
        finally:
            if owns_engine:
                engine.dispose()

    def _flush(self, conn: Connection, staged: List[Dict[str, Any]]) -> None:
        # A list of parameter sets makes SQLAlchemy use executemany
        conn.execute(self._upsert_sql, staged)

    def replicate(
        self,
        records: Iterable[RuMappingRecord],
        on_stage: Optional[StageListener] = None,
    ) -> int:
        """
        Upsert ``records`` into the destination as one atomic transaction.

        Args:
            records: Records to apply, consumed once
            on_stage: Optional callback told when ENSURE_SCHEMA, UPSERT_BATCH
                and COMMIT begin

        Returns:
            Number of records staged (inserts and updates alike)

        Raises:
            DestinationWriteError: If schema creation, batch execution or
                commit fails; the transaction is rolled back first.
            SourceQueryError: Propagated unchanged from the record stream,
                after rolling back.
        """
        execution_id = uuid.uuid4().hex
        engine = self._create_engine()
        try:
            self._notify(on_stage, SyncStage.ENSURE_SCHEMA)
            self.ensure_schema(engine)

            self._notify(on_stage, SyncStage.UPSERT_BATCH)
            return self._apply(engine, records, execution_id, on_stage)
        finally:
            engine.dispose()

    def _apply(
        self,
        engine: Engine,
        records: Iterable[RuMappingRecord],
        execution_id: str,
        on_stage: Optional[StageListener],
    ) -> int:
        start_time = time.perf_counter()
        rows_staged = 0
        flushes = 0
        stage = SyncStage.UPSERT_BATCH

        self._logger.info(
            "destination.upsert.started",
            table=self.table,
            sqlite_path=str(self.destination.sqlite_path),
            batch_size=self.batch_size,
            execution_id=execution_id,
        )

        with engine.connect() as conn:
            trans = conn.begin()
            try:
                staged: List[Dict[str, Any]] = []
                for record in records:
                    staged.append(record.as_params())
                    rows_staged += 1
                    if self.batch_size and len(staged) >= self.batch_size:
                        self._flush(conn, staged)
                        flushes += 1
                        staged = []
                if staged:
                    self._flush(conn, staged)
                    flushes += 1

                stage = SyncStage.COMMIT
                self._notify(on_stage, stage)
                trans.commit()
            except Exception as exc:
                try:
                    trans.rollback()
                except SQLAlchemyError as rollback_error:
                    self._logger.warning(
                        "destination.rollback.failed",
                        execution_id=execution_id,
                        error=str(rollback_error),
                    )
                duration_ms = (time.perf_counter() - start_time) * 1000
                self._logger.error(
                    "destination.upsert.failed",
                    table=self.table,
                    stage=stage.value,
                    rows_staged=rows_staged,
                    execution_id=execution_id,
                    duration_ms=duration_ms,
                    error=str(exc),
                )
                if isinstance(exc, SQLAlchemyError):
                    raise DestinationWriteError(
                        f"Upsert into {self.table} failed at {stage.value}; "
                        f"rolled back {rows_staged} staged rows: {exc}",
                        stage=stage,
                        original_error=exc,
                    ) from exc
                raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        self._logger.info(
            "destination.upsert.completed",
            table=self.table,
            rows_staged=rows_staged,
            flushes=flushes,
            execution_id=execution_id,
            duration_ms=duration_ms,
        )
        return rows_staged
