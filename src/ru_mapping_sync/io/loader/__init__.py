"""
SQLite replica loader.

Provides the transactional composite-key upsert used by the sync job, plus
the SQL builders it is assembled from.
"""

from .insert_builder import (
    RU_MAPPING_TABLE,
    build_create_table_sql,
    build_ru_mapping_upsert_sql,
    build_upsert_sql,
)
from .replicator import RuMappingReplicator
from .sql_utils import quote_ident

__all__ = [
    "RU_MAPPING_TABLE",
    "RuMappingReplicator",
    "build_create_table_sql",
    "build_ru_mapping_upsert_sql",
    "build_upsert_sql",
    "quote_ident",
]
