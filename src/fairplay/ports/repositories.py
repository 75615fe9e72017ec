"""Repository port interfaces for database access boundaries."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from fairplay.models import Platform, ProcessedGame, Score, SyncCursor


class SyncCursorStore(Protocol):
    """Per-(platform, username) resumable import cursor."""

    def read(self, platform: Platform, username: str) -> SyncCursor | None:
        """Return the cursor, or None when the key was never imported."""

    def ensure(self, platform: Platform, username: str) -> SyncCursor:
        """Return the cursor, creating an empty row on the first attempt."""

    def advance(
        self,
        platform: Platform,
        username: str,
        new_timestamp_ms: int,
        new_external_id: str | None,
        increment_count: int,
    ) -> bool:
        """Move the cursor forward; return False and change nothing if older."""

    def list_cursors(self, platform: Platform | None = None) -> list[SyncCursor]:
        """Return cursors, optionally for one platform."""


class DedupFilter(Protocol):
    """Point lookup on (platform, external_id)."""

    def exists(self, platform: Platform, external_id: str) -> bool:
        """Return True when the game is already stored."""


class PlayerRepository(Protocol):
    def upsert_player(self, game: ProcessedGame) -> int:
        """Insert the player for ``game.player_hash`` or refresh its elo; return the id."""

    def fetch_player(self, player_hash: str) -> dict[str, object] | None:
        """Return the player row for a hash."""


class GameRepository(DedupFilter, Protocol):
    def insert_game(self, player_id: int, game: ProcessedGame) -> int:
        """Insert a game row and return its id; raises on (platform, external_id) conflict."""

    def count_games(self, platform: Platform | None = None) -> int:
        """Return the stored game count."""


class ScoreRepository(Protocol):
    def insert_score(self, game_id: int, score: Score) -> int:
        """Insert the 1:1 score row for a game and return its id."""

    def fetch_score(self, game_id: int) -> dict[str, object] | None:
        """Return the score row for a game."""


class ImportRunRepository(Protocol):
    def record_run(self, row: Mapping[str, object]) -> None:
        """Append an import run row."""

    def list_runs(self, limit: int = 50) -> list[dict[str, object]]:
        """Return the most recent import runs."""
