"""Pytest configuration: environment isolation and SQLite source/replica fixtures.

The source store is a throw-away SQLite file holding a ``ru_topology`` table;
vendor queries project it with the upper-case column names real vendor
databases return. The destination is another SQLite file under ``tmp_path``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest
from sqlalchemy import create_engine, text

from ru_mapping_sync.config import (
    DestinationConfig,
    SourceConnectionConfig,
    SyncConfig,
    get_settings,
)
from ru_mapping_sync.config.settings import REQUIRED_FIELDS, Settings

SOURCE_TABLE_DDL = """
CREATE TABLE ru_topology (
    seq INTEGER PRIMARY KEY,
    ru_param TEXT,
    ems_id TEXT,
    ems_name TEXT,
    du_id TEXT,
    ru_id TEXT,
    du_name TEXT,
    ru_name TEXT,
    cell_num TEXT,
    cell_id TEXT
)
"""

VENDOR_QUERY = """
SELECT ru_param AS RU_PARAM,
       ems_id   AS EMS_ID,
       ems_name AS EMS_NAME,
       du_id    AS DU_ID,
       ru_id    AS RU_ID,
       du_name  AS DU_NAME,
       ru_name  AS RU_NAME,
       cell_num AS CELL_NUM,
       cell_id  AS CELL_ID
  FROM ru_topology
 ORDER BY seq;
"""

_ENV_NAMES = {
    name
    for _, env in REQUIRED_FIELDS
    for name in (env, f"RU_SYNC_{env}")
} | {
    "SOURCE_URL",
    "SOURCE_USER",
    "SOURCE_PASSWORD",
    "RU_SYNC_SOURCE_URL",
    "RU_SYNC_SOURCE_USER",
    "RU_SYNC_SOURCE_PASSWORD",
    "SQL_DIR",
    "RU_SYNC_SQL_DIR",
    "BATCH_SIZE",
    "RU_SYNC_BATCH_SIZE",
    "FETCH_SIZE",
    "RU_SYNC_FETCH_SIZE",
    "LOG_TO_FILE",
    "LOG_FILE_DIR",
}


def make_row(ru_param: str, ru_id: str, **overrides: Optional[str]) -> Dict[str, Optional[str]]:
    """Source row with deterministic non-key values derived from the key."""
    row = {
        "ru_param": ru_param,
        "ru_id": ru_id,
        "ems_id": f"EMS-{ru_param}",
        "ems_name": f"ems {ru_param}",
        "du_id": f"DU-{ru_id}",
        "du_name": f"du {ru_id}",
        "ru_name": f"ru {ru_id}",
        "cell_num": "1",
        "cell_id": f"CELL-{ru_id}",
    }
    row.update(overrides)
    return row


def populate_source(db_path: Path, rows: Iterable[Dict[str, Optional[str]]]) -> None:
    engine = create_engine(f"sqlite:///{db_path}")
    try:
        with engine.begin() as conn:
            conn.execute(text(SOURCE_TABLE_DDL))
            for seq, row in enumerate(rows, start=1):
                conn.execute(
                    text(
                        "INSERT INTO ru_topology (seq, ru_param, ems_id, ems_name, "
                        "du_id, ru_id, du_name, ru_name, cell_num, cell_id) VALUES "
                        "(:seq, :ru_param, :ems_id, :ems_name, :du_id, :ru_id, "
                        ":du_name, :ru_name, :cell_num, :cell_id)"
                    ),
                    {"seq": seq, **row},
                )
    finally:
        engine.dispose()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep host environment and .env files out of Settings."""
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setitem(Settings.model_config, "env_file", None)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def source_rows() -> List[Dict[str, Optional[str]]]:
    return [
        make_row("P1", "R1"),
        make_row("P1", "R2"),
        make_row("P2", "R1"),
    ]


@pytest.fixture
def source_db(tmp_path: Path, source_rows) -> Path:
    db_path = tmp_path / "source.db"
    populate_source(db_path, source_rows)
    return db_path


@pytest.fixture
def sql_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "sql"
    directory.mkdir()
    (directory / "samsung_lte.sql").write_text(VENDOR_QUERY, encoding="utf-8")
    (directory / "samsung_nr.sql").write_text(VENDOR_QUERY, encoding="utf-8")
    return directory


@pytest.fixture
def replica_path(tmp_path: Path) -> Path:
    return tmp_path / "replica" / "ru_mapping.db"


@pytest.fixture
def sync_config(source_db: Path, sql_dir: Path, replica_path: Path) -> SyncConfig:
    return SyncConfig(
        vendor="samsung",
        technology="LTE",
        sql_dir=sql_dir,
        source=SourceConnectionConfig(url=f"sqlite:///{source_db}"),
        destination=DestinationConfig(sqlite_path=replica_path),
    )


def read_replica(db_path: Path) -> List[Dict[str, Optional[str]]]:
    """All replica rows ordered by key, as plain dicts."""
    engine = create_engine(f"sqlite:///{db_path}")
    try:
        with engine.connect() as conn:
            result = conn.execute(
                text("SELECT * FROM ru_mapping ORDER BY ru_param, ru_id")
            )
            return [dict(row) for row in result.mappings()]
    finally:
        engine.dispose()


@pytest.fixture
def row_factory():
    return make_row


@pytest.fixture
def replica_rows():
    return read_replica


@pytest.fixture
def source_factory():
    return populate_source


@pytest.fixture
def vendor_query() -> str:
    return VENDOR_QUERY
