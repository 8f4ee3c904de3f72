from typing import List, Optional

from ru_mapping_sync.domain.models import (
    KEY_COLUMNS,
    NON_KEY_COLUMNS,
    RU_MAPPING_COLUMNS,
)

from .sql_utils import bind_param, quote_ident

RU_MAPPING_TABLE = "ru_mapping"


def build_create_table_sql(table: str = RU_MAPPING_TABLE) -> str:
    """
    Build the idempotent DDL for the destination table.

    Every column is TEXT; the primary key is (ru_id, ru_param).
    """
    column_defs = ",\n".join(f"    {quote_ident(col)} TEXT" for col in RU_MAPPING_COLUMNS)
    pk = ", ".join(quote_ident(col) for col in ("ru_id", "ru_param"))
    return (
        f"CREATE TABLE IF NOT EXISTS {quote_ident(table)} (\n"
        f"{column_defs},\n"
        f"    PRIMARY KEY ({pk})\n"
        ")"
    )


def build_upsert_sql(
    table: str,
    cols: List[str],
    conflict_cols: List[str],
    update_cols: Optional[List[str]] = None,
) -> str:
    """
    Build a parameterized INSERT ... ON CONFLICT DO UPDATE statement.

    Args:
        table: Target table name
        cols: Column names in insert order; each binds ``:<column>``
        conflict_cols: Columns of the unique/primary key checked for conflicts
        update_cols: Columns overwritten on conflict (default: every column
            not in ``conflict_cols``)

    Returns:
        SQL string for ``sqlalchemy.text``

    Example:
        >>> build_upsert_sql("t", ["k", "v"], ["k"])
        'INSERT INTO "t" ("k","v") VALUES (:k,:v) ON CONFLICT ("k") DO UPDATE SET "v" = excluded."v"'
    """
    if not table:
        raise ValueError("Table name is required")
    if not cols:
        raise ValueError("Column list cannot be empty")
    if not conflict_cols:
        raise ValueError("Conflict columns are required for an upsert")

    unknown = [col for col in conflict_cols if col not in cols]
    if unknown:
        raise ValueError(f"Conflict columns not in insert list: {unknown}")

    if update_cols is None:
        update_cols = [col for col in cols if col not in conflict_cols]
    if not update_cols:
        raise ValueError("Upsert needs at least one column to update")

    col_list = ",".join(quote_ident(col) for col in cols)
    value_list = ",".join(bind_param(col) for col in cols)
    conflict_list = ",".join(quote_ident(col) for col in conflict_cols)
    set_clause = ", ".join(
        f"{quote_ident(col)} = excluded.{quote_ident(col)}" for col in update_cols
    )

    return (
        f"INSERT INTO {quote_ident(table)} ({col_list}) VALUES ({value_list}) "
        f"ON CONFLICT ({conflict_list}) DO UPDATE SET {set_clause}"
    )


def build_ru_mapping_upsert_sql(table: str = RU_MAPPING_TABLE) -> str:
    """Upsert for ``RuMappingRecord.as_params()`` rows: full overwrite of non-key columns."""
    return build_upsert_sql(
        table,
        RU_MAPPING_COLUMNS,
        conflict_cols=KEY_COLUMNS,
        update_cols=NON_KEY_COLUMNS,
    )


def build_select_sql(table: str = RU_MAPPING_TABLE, where_ru_param: bool = False) -> str:
    """SELECT of every destination column, optionally filtered by ``:ru_param``."""
    col_list = ", ".join(quote_ident(col) for col in RU_MAPPING_COLUMNS)
    sql = f"SELECT {col_list} FROM {quote_ident(table)}"
    if where_ru_param:
        sql += f" WHERE {quote_ident('ru_param')} = {bind_param('ru_param')}"
    return sql + f" ORDER BY {quote_ident('ru_param')}, {quote_ident('ru_id')}"
