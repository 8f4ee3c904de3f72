"""Record and enum types shared by the extractor, replicator and repository."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ru_mapping_sync.exceptions import ConfigurationError, InvalidRecordError

# Destination column order used by the INSERT statement.
RU_MAPPING_COLUMNS = [
    "ru_param",
    "ems_id",
    "ems_name",
    "du_id",
    "ru_id",
    "du_name",
    "ru_name",
    "cell_num",
    "cell_id",
]

KEY_COLUMNS = ["ru_param", "ru_id"]

NON_KEY_COLUMNS = [col for col in RU_MAPPING_COLUMNS if col not in KEY_COLUMNS]

# Upper-case names the source query must project.
SOURCE_COLUMNS = [col.upper() for col in RU_MAPPING_COLUMNS]


class AccessTechnology(str, Enum):
    """Radio generation selecting the extraction query variant."""

    LTE = "LTE"
    NR = "NR"

    @classmethod
    def parse(cls, tag: str) -> "AccessTechnology":
        """Resolve a configured tag, accepting 4G/5G as aliases."""
        normalized = (tag or "").strip().upper()
        normalized = _TECHNOLOGY_ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError as e:
            allowed = ", ".join(t.value for t in cls)
            raise ConfigurationError(
                f"Unknown access technology '{tag}'; expected one of {allowed} "
                "(or 4G/5G)",
                original_error=e,
            ) from e


_TECHNOLOGY_ALIASES = {"4G": "LTE", "5G": "NR"}


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class RuMappingRecord:
    """One RU to DU/EMS/cell mapping row; identified by (ru_param, ru_id)."""

    ru_param: str
    ru_id: str
    ems_id: Optional[str] = None
    ems_name: Optional[str] = None
    du_id: Optional[str] = None
    du_name: Optional[str] = None
    ru_name: Optional[str] = None
    cell_num: Optional[str] = None
    cell_id: Optional[str] = None
    # Not part of equality; only used to point at the offending source row.
    row_number: Optional[int] = field(default=None, compare=False, repr=False)

    @property
    def key(self) -> tuple:
        return (self.ru_param, self.ru_id)

    @classmethod
    def from_row(
        cls,
        row: Mapping[str, Any],
        column_map: Optional[Dict[str, str]] = None,
        row_number: Optional[int] = None,
    ) -> "RuMappingRecord":
        """
        Build a record from a result row.

        Args:
            row: Mapping of result column name to value
            column_map: Destination column -> actual result column name. When
                omitted, the row keys are matched case-insensitively.
            row_number: 1-based position in the result set, for diagnostics

        Raises:
            InvalidRecordError: If a key column is NULL or blank
        """
        if column_map is None:
            lowered = {str(k).lower(): k for k in row.keys()}
            column_map = {
                col: lowered[col] for col in RU_MAPPING_COLUMNS if col in lowered
            }

        values = {
            col: _as_text(row.get(column_map.get(col, col)))
            for col in RU_MAPPING_COLUMNS
        }

        blank_keys = [
            col for col in KEY_COLUMNS if values[col] is None or not values[col].strip()
        ]
        if blank_keys:
            where = f" {row_number}" if row_number is not None else ""
            raise InvalidRecordError(
                f"Source row{where} has empty key column(s): {', '.join(blank_keys)}"
            )

        return cls(row_number=row_number, **values)

    def as_params(self) -> Dict[str, Optional[str]]:
        """Bind parameters for the upsert statement."""
        params = asdict(self)
        params.pop("row_number")
        return params
