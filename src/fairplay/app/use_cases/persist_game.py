"""Persist a scored game as one unit of work and maintain sync cursors."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, TypeVar

import duckdb

from fairplay.db.duckdb_game_repository import DuckDbGameRepository
from fairplay.db.duckdb_import_run_repository import DuckDbImportRunRepository
from fairplay.db.duckdb_player_repository import DuckDbPlayerRepository
from fairplay.db.duckdb_score_repository import DuckDbScoreRepository
from fairplay.db.duckdb_sync_cursor_repository import DuckDbSyncCursorRepository
from fairplay.db.duckdb_unit_of_work import DuckDbUnitOfWork
from fairplay.errors import PersistenceError
from fairplay.models import Platform, ProcessedGame, Score, SyncCursor
from fairplay.ports.repositories import SyncCursorStore
from fairplay.ports.unit_of_work import UnitOfWorkFactory
from fairplay.utils import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class PersistOutcome(StrEnum):
    IMPORTED = "imported"
    DUPLICATE = "duplicate"


def _is_duplicate_key(exc: duckdb.Error) -> bool:
    return "duplicate key" in str(exc).lower()


def advance_cursor(
    store: SyncCursorStore,
    platform: Platform,
    username: str,
    succeeded: Sequence[ProcessedGame],
) -> bool:
    """Advance ``store`` to the newest of ``succeeded``; no-op when empty.

    Args:
        store: Cursor store to update.
        platform: Imported platform.
        username: Imported username.
        succeeded: Games persisted in this batch.

    Returns:
        True when the stored cursor moved.
    """

    if not succeeded:
        return False
    newest = max(succeeded, key=lambda game: game.timestamp_ms)
    return store.advance(
        platform,
        username,
        newest.timestamp_ms,
        newest.external_id,
        len(succeeded),
    )


@dataclass
class PersistenceCoordinator:
    """Write Player, Game and Score together, and own cursor bookkeeping.

    Every public method runs in its own unit of work. The coordinator also
    satisfies the `SyncCursorStore` and `DedupFilter` ports.
    """

    db_path: Path | str
    unit_of_work_factory: UnitOfWorkFactory = DuckDbUnitOfWork
    player_repository_factory: Callable[[Any], Any] = DuckDbPlayerRepository
    game_repository_factory: Callable[[Any], Any] = DuckDbGameRepository
    score_repository_factory: Callable[[Any], Any] = DuckDbScoreRepository
    cursor_repository_factory: Callable[[Any], Any] = DuckDbSyncCursorRepository
    run_repository_factory: Callable[[Any], Any] = DuckDbImportRunRepository

    def _run_with_uow(self, handler: Callable[[Any], T]) -> T:
        with self.unit_of_work_factory(self.db_path) as conn:
            return handler(conn)

    def persist(self, game: ProcessedGame, score: Score) -> PersistOutcome:
        """Persist one game atomically.

        Args:
            game: Normalized game.
            score: Score computed for the game.

        Returns:
            ``IMPORTED`` on commit, ``DUPLICATE`` when the game already exists.

        Raises:
            PersistenceError: When any other write fails; nothing is committed.
        """

        def _write(conn: Any) -> int:
            player_id = self.player_repository_factory(conn).upsert_player(game)
            game_id = self.game_repository_factory(conn).insert_game(player_id, game)
            self.score_repository_factory(conn).insert_score(game_id, score)
            return game_id

        try:
            self._run_with_uow(_write)
        except duckdb.Error as exc:
            if _is_duplicate_key(exc):
                logger.debug("Game %s/%s already stored", game.platform, game.external_id)
                return PersistOutcome.DUPLICATE
            logger.error("Failed to persist game %s: %s", game.external_id, exc)
            raise PersistenceError(f"Failed to persist game: {exc}") from exc
        except RuntimeError as exc:
            logger.error("Failed to persist game %s: %s", game.external_id, exc)
            raise PersistenceError(str(exc)) from exc
        return PersistOutcome.IMPORTED

    def exists(self, platform: Platform, external_id: str) -> bool:
        """Report whether the game is stored.

        Raises:
            PersistenceError: When the lookup itself fails.
        """

        try:
            return self._run_with_uow(
                lambda conn: self.game_repository_factory(conn).exists(platform, external_id)
            )
        except duckdb.Error as exc:
            logger.error("Duplicate check failed for game %s: %s", external_id, exc)
            raise PersistenceError(f"Duplicate check failed: {exc}") from exc

    def read(self, platform: Platform, username: str) -> SyncCursor | None:
        return self._run_with_uow(
            lambda conn: self.cursor_repository_factory(conn).read(platform, username)
        )

    def ensure(self, platform: Platform, username: str) -> SyncCursor:
        return self._run_with_uow(
            lambda conn: self.cursor_repository_factory(conn).ensure(platform, username)
        )

    def advance(
        self,
        platform: Platform,
        username: str,
        new_timestamp_ms: int,
        new_external_id: str | None,
        increment_count: int,
    ) -> bool:
        try:
            return self._run_with_uow(
                lambda conn: self.cursor_repository_factory(conn).advance(
                    platform, username, new_timestamp_ms, new_external_id, increment_count
                )
            )
        except duckdb.Error as exc:
            logger.error("Cursor advance failed for %s/%s: %s", platform, username, exc)
            raise PersistenceError(f"Cursor advance failed: {exc}") from exc

    def list_cursors(self, platform: Platform | None = None) -> list[SyncCursor]:
        return self._run_with_uow(
            lambda conn: self.cursor_repository_factory(conn).list_cursors(platform)
        )

    def advance_cursor(
        self,
        platform: Platform,
        username: str,
        succeeded: Sequence[ProcessedGame],
    ) -> bool:
        return advance_cursor(self, platform, username, succeeded)

    def record_run(self, row: Mapping[str, object]) -> None:
        """Append an import run row; failures are logged and swallowed."""

        try:
            self._run_with_uow(lambda conn: self.run_repository_factory(conn).record_run(row))
        except duckdb.Error:
            logger.exception("Failed to record import run %s", row.get("run_id"))

    def list_runs(self, limit: int = 50) -> list[dict[str, object]]:
        return self._run_with_uow(lambda conn: self.run_repository_factory(conn).list_runs(limit))

    def fetch_player(self, player_hash: str) -> dict[str, object] | None:
        return self._run_with_uow(
            lambda conn: self.player_repository_factory(conn).fetch_player(player_hash)
        )

    def count_games(self, platform: Platform | None = None) -> int:
        return self._run_with_uow(
            lambda conn: self.game_repository_factory(conn).count_games(platform)
        )
