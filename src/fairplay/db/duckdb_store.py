"""DuckDB connection and schema provisioning."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import duckdb

from fairplay.utils.logger import get_logger

logger = get_logger(__name__)

PLAYERS_SCHEMA = """
CREATE TABLE IF NOT EXISTS players (
    id BIGINT PRIMARY KEY DEFAULT nextval('players_id_seq'),
    hash TEXT NOT NULL UNIQUE,
    platform TEXT NOT NULL,
    username TEXT NOT NULL,
    elo INTEGER,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
);
"""

GAMES_SCHEMA = """
CREATE TABLE IF NOT EXISTS games (
    id BIGINT PRIMARY KEY DEFAULT nextval('games_id_seq'),
    player_id BIGINT NOT NULL,
    platform TEXT NOT NULL,
    external_id TEXT NOT NULL,
    played_on DATE,
    result TEXT,
    pgn TEXT,
    time_control TEXT,
    speed TEXT,
    opening TEXT,
    timestamp_ms BIGINT,
    imported_at TIMESTAMP,
    UNIQUE (platform, external_id)
);
"""

SCORES_SCHEMA = """
CREATE TABLE IF NOT EXISTS scores (
    id BIGINT PRIMARY KEY DEFAULT nextval('scores_id_seq'),
    game_id BIGINT NOT NULL UNIQUE,
    engine_match_pct DOUBLE,
    delta_cp DOUBLE,
    run_perfect_count INTEGER,
    ml_prob DOUBLE,
    suspicion_level INTEGER,
    scorer TEXT,
    created_at TIMESTAMP
);
"""

SYNC_CURSORS_SCHEMA = """
CREATE TABLE IF NOT EXISTS sync_cursors (
    platform TEXT NOT NULL,
    username TEXT NOT NULL,
    last_timestamp_ms BIGINT,
    last_external_id TEXT,
    total_imported_count BIGINT DEFAULT 0,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY (platform, username)
);
"""

IMPORT_RUNS_SCHEMA = """
CREATE TABLE IF NOT EXISTS import_runs (
    run_id TEXT,
    platform TEXT,
    username TEXT,
    total_fetched INTEGER,
    imported INTEGER,
    duplicates INTEGER,
    errors_count INTEGER,
    cursor_advanced BOOLEAN,
    started_at TIMESTAMP,
    finished_at TIMESTAMP
);
"""

SEQUENCES = (
    "CREATE SEQUENCE IF NOT EXISTS players_id_seq",
    "CREATE SEQUENCE IF NOT EXISTS games_id_seq",
    "CREATE SEQUENCE IF NOT EXISTS scores_id_seq",
)

SCHEMAS = (
    PLAYERS_SCHEMA,
    GAMES_SCHEMA,
    SCORES_SCHEMA,
    SYNC_CURSORS_SCHEMA,
    IMPORT_RUNS_SCHEMA,
)


def utc_now() -> datetime:
    """Return naive UTC now for TIMESTAMP columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def get_connection(db_path: Path | str) -> duckdb.DuckDBPyConnection:
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Opening DuckDB at %s", path)
    return duckdb.connect(str(path))


def init_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create every table, sequence and index if missing. Idempotent."""
    for statement in (*SEQUENCES, *SCHEMAS):
        conn.execute(statement)


def rows_to_dicts(cursor: duckdb.DuckDBPyConnection) -> list[dict[str, object]]:
    columns = [desc[0] for desc in cursor.description or []]
    return [dict(zip(columns, row, strict=True)) for row in cursor.fetchall()]
