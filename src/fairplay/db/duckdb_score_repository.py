"""DuckDB repository for game scores."""

from __future__ import annotations

import duckdb

from fairplay.db.duckdb_store import rows_to_dicts, utc_now
from fairplay.models import Score


class DuckDbScoreRepository:
    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def insert_score(self, game_id: int, score: Score) -> int:
        row = self._conn.execute(
            """
            INSERT INTO scores (
                game_id,
                engine_match_pct,
                delta_cp,
                run_perfect_count,
                ml_prob,
                suspicion_level,
                scorer,
                created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            RETURNING id
            """,
            [
                game_id,
                score.engine_match_pct,
                score.delta_cp,
                score.run_perfect_count,
                score.ml_prob,
                score.suspicion_level,
                score.scorer,
                utc_now(),
            ],
        ).fetchone()
        if row is None:
            raise RuntimeError(f"Score insert returned no id for game {game_id}")
        return int(row[0])

    def fetch_score(self, game_id: int) -> dict[str, object] | None:
        rows = rows_to_dicts(
            self._conn.execute("SELECT * FROM scores WHERE game_id = ?", [game_id])
        )
        return rows[0] if rows else None


__all__ = ["DuckDbScoreRepository"]
