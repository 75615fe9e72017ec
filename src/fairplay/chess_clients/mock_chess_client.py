"""Mock platform adapter for tests and local wiring."""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from pydantic import ValidationError as PydanticValidationError

from fairplay.chess_clients.base_chess_client import (
    BaseChessClient,
    BaseChessClientContext,
)
from fairplay.chess_clients.chess_fetch_request import PlatformFetchRequest
from fairplay.errors import PlatformFetchError
from fairplay.models import Platform, ProcessedGame
from fairplay.utils import normalize_string


class MockChessClient(BaseChessClient):
    """Stub adapter that replays in-memory games.

    Games whose username matches the request are replayed on every call, most
    recent first, capped at the request limit. The cursor is ignored unless
    ``apply_since`` is set. Mapping entries are validated like raw platform
    records; invalid ones become issues.
    """

    def __init__(
        self,
        context: BaseChessClientContext,
        games: list[ProcessedGame | Mapping[str, object]] | None = None,
        *,
        platform: Platform = Platform.CHESS_COM,
        apply_since: bool = False,
        fail_with: Exception | None = None,
    ) -> None:
        super().__init__(context)
        self.platform = platform
        self._games = list(games or [])
        self._apply_since = apply_since
        self._fail_with = fail_with
        self.calls: list[PlatformFetchRequest] = []

    def fetch(self, request: PlatformFetchRequest, issues: list[str]) -> Iterator[ProcessedGame]:
        self.calls.append(request)
        if self._fail_with is not None:
            raise PlatformFetchError(f"{self.platform.label} fetch failed") from self._fail_with
        self.limiter.acquire()
        return self._iter_games(request, issues)

    def _iter_games(
        self, request: PlatformFetchRequest, issues: list[str]
    ) -> Iterator[ProcessedGame]:
        yielded = 0
        for game in self._ordered_games(request.username, issues):
            if yielded >= request.limit:
                return
            if self._apply_since and request.since_ms is not None:
                if game.timestamp_ms <= request.since_ms:
                    return
            yielded += 1
            yield game

    def _ordered_games(self, username: str, issues: list[str]) -> list[ProcessedGame]:
        wanted = normalize_string(username)
        games: list[ProcessedGame] = []
        for entry in self._games:
            if isinstance(entry, ProcessedGame):
                if normalize_string(entry.username) == wanted:
                    games.append(entry)
                continue
            if normalize_string(str(entry.get("username") or "")) != wanted:
                continue
            try:
                games.append(ProcessedGame.model_validate(dict(entry)))
            except PydanticValidationError as exc:
                game_id = entry.get("external_id") or "unknown"
                issues.append(f"Game {game_id}: Parse error: {exc.error_count()} invalid field(s)")
                self.logger.warning("Skipping malformed mock record %s", game_id)
        return sorted(games, key=lambda game: game.timestamp_ms, reverse=True)
