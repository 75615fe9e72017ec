"""DuckDB repository for per-player sync cursors."""

from __future__ import annotations

import duckdb

from fairplay.db.duckdb_store import rows_to_dicts, utc_now
from fairplay.models import Platform, SyncCursor
from fairplay.utils import normalize_string


def _cursor_from_row(row: dict[str, object]) -> SyncCursor:
    return SyncCursor.model_validate(row)


class DuckDbSyncCursorRepository:
    """Resumable import cursor keyed by (platform, lower(username)).

    ``advance`` is a single conditional UPDATE, so the stored timestamp can
    only move forward even when two imports race on the same key.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def read(self, platform: Platform, username: str) -> SyncCursor | None:
        rows = rows_to_dicts(
            self._conn.execute(
                "SELECT * FROM sync_cursors WHERE platform = ? AND username = ?",
                [str(platform), normalize_string(username)],
            )
        )
        return _cursor_from_row(rows[0]) if rows else None

    def ensure(self, platform: Platform, username: str) -> SyncCursor:
        now = utc_now()
        self._conn.execute(
            """
            INSERT INTO sync_cursors (
                platform, username, last_timestamp_ms, last_external_id,
                total_imported_count, created_at, updated_at
            ) VALUES (?, ?, NULL, NULL, 0, ?, ?)
            ON CONFLICT DO NOTHING
            """,
            [str(platform), normalize_string(username), now, now],
        )
        cursor = self.read(platform, username)
        if cursor is None:
            raise RuntimeError(f"Sync cursor missing after ensure: {platform}/{username}")
        return cursor

    def advance(
        self,
        platform: Platform,
        username: str,
        new_timestamp_ms: int,
        new_external_id: str | None,
        increment_count: int,
    ) -> bool:
        self.ensure(platform, username)
        row = self._conn.execute(
            """
            UPDATE sync_cursors SET
                last_timestamp_ms = ?,
                last_external_id = COALESCE(?, last_external_id),
                total_imported_count = total_imported_count + ?,
                updated_at = ?
            WHERE platform = ?
              AND username = ?
              AND (last_timestamp_ms IS NULL OR last_timestamp_ms <= ?)
            RETURNING last_timestamp_ms
            """,
            [
                new_timestamp_ms,
                new_external_id,
                max(increment_count, 0),
                utc_now(),
                str(platform),
                normalize_string(username),
                new_timestamp_ms,
            ],
        ).fetchone()
        return row is not None

    def list_cursors(self, platform: Platform | None = None) -> list[SyncCursor]:
        if platform is None:
            cursor = self._conn.execute(
                "SELECT * FROM sync_cursors ORDER BY platform, username"
            )
        else:
            cursor = self._conn.execute(
                "SELECT * FROM sync_cursors WHERE platform = ? ORDER BY username",
                [str(platform)],
            )
        return [_cursor_from_row(row) for row in rows_to_dicts(cursor)]


__all__ = ["DuckDbSyncCursorRepository"]
