"""Tests for reading the replica back through RuMappingRepository."""

import pytest
from sqlalchemy import create_engine

from ru_mapping_sync.config import DestinationConfig
from ru_mapping_sync.domain.models import RuMappingRecord
from ru_mapping_sync.io.loader.replicator import RuMappingReplicator
from ru_mapping_sync.io.repositories.ru_mapping_repository import RuMappingRepository


@pytest.fixture
def replica_engine(replica_path):
    RuMappingReplicator(DestinationConfig(sqlite_path=replica_path)).replicate(
        [
            RuMappingRecord(ru_param="P2", ru_id="R1", ems_id="E2"),
            RuMappingRecord(ru_param="P1", ru_id="R2", ems_id="E1", cell_id="C2"),
            RuMappingRecord(ru_param="P1", ru_id="R1", ems_id="E1", cell_id="C1"),
        ]
    )
    engine = create_engine(f"sqlite:///{replica_path}")
    yield engine
    engine.dispose()


@pytest.mark.integration
class TestRuMappingRepository:
    def test_get_returns_mappings_ordered_by_ru_id(self, replica_engine):
        with replica_engine.connect() as conn:
            records = RuMappingRepository(conn).get("P1")

        assert [r.ru_id for r in records] == ["R1", "R2"]
        assert records[0] == RuMappingRecord(
            ru_param="P1", ru_id="R1", ems_id="E1", cell_id="C1"
        )

    def test_get_unknown_param(self, replica_engine):
        with replica_engine.connect() as conn:
            assert RuMappingRepository(conn).get("NOPE") == []

    def test_load_grouped(self, replica_engine):
        with replica_engine.connect() as conn:
            grouped = RuMappingRepository(conn).load_grouped()

        assert sorted(grouped) == ["P1", "P2"]
        assert len(grouped["P1"]) == 2
        assert grouped["P2"][0].ems_id == "E2"

    def test_all_and_count(self, replica_engine):
        with replica_engine.connect() as conn:
            repo = RuMappingRepository(conn)
            keys = [r.key for r in repo.all()]
            count = repo.count()

        assert keys == [("P1", "R1"), ("P1", "R2"), ("P2", "R1")]
        assert count == 3


@pytest.mark.integration
def test_missing_table_reads_as_empty(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    try:
        with engine.connect() as conn:
            repo = RuMappingRepository(conn)
            assert repo.all() == []
            assert repo.load_grouped() == {}
            assert repo.count() == 0
    finally:
        engine.dispose()
