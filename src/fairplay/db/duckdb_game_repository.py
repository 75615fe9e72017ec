"""DuckDB repository for imported games."""

from __future__ import annotations

import duckdb

from fairplay.db.duckdb_store import utc_now
from fairplay.models import Platform, ProcessedGame


class DuckDbGameRepository:
    """Persist game rows and answer (platform, external_id) lookups."""

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def exists(self, platform: Platform, external_id: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM games WHERE platform = ? AND external_id = ? LIMIT 1",
            [str(platform), external_id],
        ).fetchone()
        return row is not None

    def insert_game(self, player_id: int, game: ProcessedGame) -> int:
        """Insert a game row.

        Raises:
            duckdb.ConstraintException: When (platform, external_id) already exists.
        """
        row = self._conn.execute(
            """
            INSERT INTO games (
                player_id,
                platform,
                external_id,
                played_on,
                result,
                pgn,
                time_control,
                speed,
                opening,
                timestamp_ms,
                imported_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            [
                player_id,
                str(game.platform),
                game.external_id,
                game.played_on,
                str(game.result),
                game.pgn,
                game.time_control,
                game.speed,
                game.opening,
                game.timestamp_ms,
                utc_now(),
            ],
        ).fetchone()
        if row is None:
            raise RuntimeError(f"Game insert returned no id for {game.external_id}")
        return int(row[0])

    def count_games(self, platform: Platform | None = None) -> int:
        if platform is None:
            row = self._conn.execute("SELECT COUNT(*) FROM games").fetchone()
        else:
            row = self._conn.execute(
                "SELECT COUNT(*) FROM games WHERE platform = ?", [str(platform)]
            ).fetchone()
        return int(row[0]) if row else 0


__all__ = ["DuckDbGameRepository"]
