"""
Source extractor for RU mapping rows.

Opens a single connection to the source database, runs the vendor query
through one streamed cursor and hands back a ``RecordStream`` that maps rows
to ``RuMappingRecord`` lazily. The stream owns the engine, connection and
cursor and releases all of them when it is exhausted, closed, or fails.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from ru_mapping_sync.config.sync_config import SourceConnectionConfig
from ru_mapping_sync.domain.models import (
    RU_MAPPING_COLUMNS,
    SOURCE_COLUMNS,
    RuMappingRecord,
)
from ru_mapping_sync.exceptions import (
    InvalidRecordError,
    MissingColumnError,
    SourceQueryError,
)

logger = logging.getLogger(__name__)


def map_result_columns(columns: List[str]) -> Dict[str, str]:
    """
    Match result columns to destination fields, ignoring case.

    Args:
        columns: Column names as reported by the driver

    Returns:
        Destination column -> actual result column name

    Raises:
        MissingColumnError: If any required column is absent
    """
    by_upper = {str(col).upper(): col for col in columns}
    missing = [col for col in SOURCE_COLUMNS if col not in by_upper]
    if missing:
        raise MissingColumnError(missing, list(columns))
    return {dest: by_upper[dest.upper()] for dest in RU_MAPPING_COLUMNS}


class RecordStream:
    """
    Single-pass iterator over mapped source rows.

    Usable as a context manager; ``close`` is idempotent. Reading a stream
    that was closed before exhaustion raises ``SourceQueryError`` rather than
    silently ending early.
    """

    def __init__(
        self,
        engine: Engine,
        connection: Connection,
        result: CursorResult,
        column_map: Dict[str, str],
    ):
        self._engine = engine
        self._connection = connection
        self._result = result
        self._rows = iter(result.mappings())
        self._column_map = column_map
        self._closed = False
        self._exhausted = False
        self.rows_read = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def __iter__(self) -> "RecordStream":
        return self

    def __next__(self) -> RuMappingRecord:
        if self._closed:
            if self._exhausted:
                raise StopIteration
            raise SourceQueryError(
                f"Record stream was closed after {self.rows_read} rows; "
                "it cannot be read again"
            )

        try:
            row = next(self._rows)
        except StopIteration:
            self._exhausted = True
            logger.info(f"Source result set exhausted after {self.rows_read} rows")
            self.close()
            raise
        except SQLAlchemyError as e:
            self.close()
            raise SourceQueryError(
                f"Failed to fetch source row {self.rows_read + 1}: {e}",
                original_error=e,
            ) from e

        self.rows_read += 1
        try:
            return RuMappingRecord.from_row(
                row, self._column_map, row_number=self.rows_read
            )
        except InvalidRecordError:
            self.close()
            raise

    def close(self) -> None:
        """Release cursor, connection and engine."""
        if self._closed:
            return
        self._closed = True

        for label, release in (
            ("cursor", self._result.close),
            ("connection", self._connection.close),
            ("engine", self._engine.dispose),
        ):
            try:
                release()
            except SQLAlchemyError as close_error:
                logger.warning(f"Error closing source {label}: {close_error}")

        logger.debug(f"Source stream closed (rows_read={self.rows_read})")

    def __enter__(self) -> "RecordStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class SourceExtractor:
    """
    Runs the extraction query against the source store.

    The engine uses ``NullPool`` so exactly one physical connection exists for
    the lifetime of a stream and disposing the engine closes it. No retries
    are attempted; scheduling and retry policy live outside the job.
    """

    def __init__(
        self,
        source: SourceConnectionConfig,
        engine_factory: Optional[Callable[..., Engine]] = None,
    ):
        self.source = source
        self._engine_factory = engine_factory or create_engine

    def _create_engine(self) -> Engine:
        url = self.source.sqlalchemy_url()
        try:
            return self._engine_factory(url, poolclass=NullPool)
        except (SQLAlchemyError, ImportError) as e:
            # ImportError: the dialect's DB-API driver is not installed
            raise SourceQueryError(
                f"Cannot create source engine for {self.source.display_url()}: {e}",
                original_error=e,
            ) from e

    def extract(self, query: str) -> RecordStream:
        """
        Execute ``query`` and return a lazy stream of records.

        The connection is opened and the query executed before this method
        returns, so connectivity, syntax and column errors surface here.

        Raises:
            SourceQueryError: On connection or execution failure
            MissingColumnError: If the result set lacks a required column
        """
        engine = self._create_engine()
        connection: Optional[Connection] = None
        result: Optional[Any] = None

        logger.info(f"Connecting to source {self.source.display_url()}")
        try:
            connection = engine.connect()
            result = connection.execution_options(
                stream_results=True, max_row_buffer=self.source.fetch_size
            ).exec_driver_sql(query)
            if not result.returns_rows:
                raise SourceQueryError("Extraction query did not return a result set")
            column_map = map_result_columns(list(result.keys()))
        except Exception as e:
            self._release(engine, connection, result)
            if isinstance(e, SQLAlchemyError):
                raise SourceQueryError(
                    f"Source query failed: {e}", original_error=e
                ) from e
            raise

        logger.info(
            f"Source query executed; streaming {len(column_map)} columns "
            f"with fetch_size={self.source.fetch_size}"
        )
        return RecordStream(engine, connection, result, column_map)

    @staticmethod
    def _release(
        engine: Engine, connection: Optional[Connection], result: Optional[Any]
    ) -> None:
        for release in (
            result.close if result is not None else None,
            connection.close if connection is not None else None,
            engine.dispose,
        ):
            if release is None:
                continue
            try:
                release()
            except SQLAlchemyError as close_error:
                logger.warning(f"Error releasing source resource: {close_error}")
