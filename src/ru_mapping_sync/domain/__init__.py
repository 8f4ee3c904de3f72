"""Domain types for RU mapping replication."""

from .models import (
    KEY_COLUMNS,
    NON_KEY_COLUMNS,
    RU_MAPPING_COLUMNS,
    SOURCE_COLUMNS,
    AccessTechnology,
    RuMappingRecord,
)

__all__ = [
    "AccessTechnology",
    "RuMappingRecord",
    "RU_MAPPING_COLUMNS",
    "KEY_COLUMNS",
    "NON_KEY_COLUMNS",
    "SOURCE_COLUMNS",
]
