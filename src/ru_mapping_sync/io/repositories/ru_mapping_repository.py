"""
Read access to the replicated ru_mapping table.

Downstream parsers resolve an RU parameter to its list of DU/EMS/cell
mappings. This repository exposes the same view over the SQLite replica so
the result of a sync can be inspected from the CLI and in tests.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Optional

import sqlalchemy as sa
from sqlalchemy.engine import Connection

from ru_mapping_sync.domain.models import RuMappingRecord
from ru_mapping_sync.io.loader.insert_builder import RU_MAPPING_TABLE, build_select_sql
from ru_mapping_sync.io.loader.sql_utils import quote_ident

logger = logging.getLogger(__name__)


class RuMappingRepository:
    """
    Repository over the ru_mapping table.

    Usage:
        with engine.connect() as conn:
            repo = RuMappingRepository(conn)
            mappings = repo.get("RU_PARAM_1")
            by_param = repo.load_grouped()
    """

    def __init__(self, conn: Connection, table: str = RU_MAPPING_TABLE):
        self.conn = conn
        self.table = table
        self._table_verified = False

    def _ensure_table_exists(self) -> bool:
        """Check whether the replica table has been created yet."""
        if self._table_verified:
            return True

        exists = sa.inspect(self.conn).has_table(self.table)
        if exists:
            self._table_verified = True
        return exists

    def _fetch(self, ru_param: Optional[str] = None) -> List[RuMappingRecord]:
        if not self._ensure_table_exists():
            logger.warning(
                "ru_mapping table does not exist, returning no rows",
                extra={"table": self.table},
            )
            return []

        sql = build_select_sql(self.table, where_ru_param=ru_param is not None)
        params = {"ru_param": ru_param} if ru_param is not None else {}
        result = self.conn.execute(sa.text(sql), params)
        return [RuMappingRecord(**dict(row)) for row in result.mappings()]

    def get(self, ru_param: str) -> List[RuMappingRecord]:
        """Return every mapping for one RU parameter, ordered by ru_id."""
        return self._fetch(ru_param)

    def all(self) -> List[RuMappingRecord]:
        return self._fetch()

    def load_grouped(self) -> Dict[str, List[RuMappingRecord]]:
        """
        Load the whole table keyed by ru_param.

        Returns:
            {"RU_PARAM_1": [RuMappingRecord(...), ...], ...}
        """
        grouped: Dict[str, List[RuMappingRecord]] = defaultdict(list)
        for record in self._fetch():
            grouped[record.ru_param].append(record)
        return dict(grouped)

    def count(self) -> int:
        if not self._ensure_table_exists():
            return 0
        result = self.conn.execute(
            sa.text(f"SELECT COUNT(*) FROM {quote_ident(self.table)}")
        )
        return int(result.scalar() or 0)
