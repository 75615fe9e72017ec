"""DuckDB repository for import run bookkeeping."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime

import duckdb

from fairplay.db.duckdb_store import rows_to_dicts

_RUN_COLUMNS = (
    "run_id",
    "platform",
    "username",
    "total_fetched",
    "imported",
    "duplicates",
    "errors_count",
    "cursor_advanced",
    "started_at",
    "finished_at",
)


def _column_value(value: object) -> object:
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


class DuckDbImportRunRepository:
    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def record_run(self, row: Mapping[str, object]) -> None:
        placeholders = ", ".join("?" for _ in _RUN_COLUMNS)
        self._conn.execute(
            f"INSERT INTO import_runs ({', '.join(_RUN_COLUMNS)}) VALUES ({placeholders})",
            [_column_value(row.get(column)) for column in _RUN_COLUMNS],
        )

    def list_runs(self, limit: int = 50) -> list[dict[str, object]]:
        return rows_to_dicts(
            self._conn.execute(
                "SELECT * FROM import_runs ORDER BY finished_at DESC LIMIT ?", [limit]
            )
        )


__all__ = ["DuckDbImportRunRepository"]
