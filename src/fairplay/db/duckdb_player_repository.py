"""DuckDB repository for players."""

from __future__ import annotations

import duckdb

from fairplay.db.duckdb_store import rows_to_dicts, utc_now
from fairplay.models import ProcessedGame


class DuckDbPlayerRepository:
    """Persist one row per (platform, username) hash."""

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def upsert_player(self, game: ProcessedGame) -> int:
        """Insert the player or refresh its elo; return the stable player id."""
        now = utc_now()
        row = self._conn.execute(
            """
            INSERT INTO players (hash, platform, username, elo, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (hash) DO UPDATE SET
                elo = excluded.elo,
                updated_at = excluded.updated_at
            RETURNING id
            """,
            [game.player_hash, str(game.platform), game.username, game.elo, now, now],
        ).fetchone()
        if row is None:
            raise RuntimeError(f"Player upsert returned no id for {game.player_hash}")
        return int(row[0])

    def fetch_player(self, player_hash: str) -> dict[str, object] | None:
        rows = rows_to_dicts(
            self._conn.execute("SELECT * FROM players WHERE hash = ?", [player_hash])
        )
        return rows[0] if rows else None


__all__ = ["DuckDbPlayerRepository"]
