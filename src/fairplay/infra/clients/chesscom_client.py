"""Chess.com archive-paginated adapter."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

import requests

from fairplay.chess_clients.base_chess_client import (
    BaseChessClient,
    BaseChessClientContext,
    resolve_player_color,
)
from fairplay.chess_clients.chess_fetch_request import PlatformFetchRequest
from fairplay.errors import GameParseError, PlatformFetchError
from fairplay.http_backoff import auth_headers, get_with_backoff
from fairplay.models import GameResult, Platform, ProcessedGame
from fairplay.pgn_headers import extract_opening
from fairplay.utils import to_int

ARCHIVES_URL = "https://api.chess.com/pub/player/{username}/games/archives"

__all__ = [
    "ARCHIVES_URL",
    "ChesscomClient",
    "ChesscomClientContext",
    "extract_external_id",
]


@dataclass(slots=True)
class ChesscomClientContext(BaseChessClientContext):
    """Context for Chess.com API interactions."""


def extract_external_id(raw: Mapping[str, object]) -> str | None:
    """Return the game id from the trailing ``url`` segment, else ``uuid``."""

    url = str(raw.get("url") or "").rstrip("/")
    if url:
        tail = url.rsplit("/", 1)[-1].strip()
        if tail:
            return tail
    uuid = str(raw.get("uuid") or "").strip()
    return uuid or None


def _winner(white: Mapping[str, object], black: Mapping[str, object]) -> str | None:
    if white.get("result") == "win":
        return "white"
    if black.get("result") == "win":
        return "black"
    return None


def _end_time(raw: Mapping[str, object]) -> int:
    return to_int(raw.get("end_time")) or 0


class ChesscomClient(BaseChessClient):
    """Client for the Chess.com public archive API.

    The archive index is read when `fetch` is called; monthly archives are
    then walked lazily, newest first, as the caller consumes games.
    """

    platform = Platform.CHESS_COM

    def __init__(self, context: ChesscomClientContext) -> None:
        super().__init__(context)

    def fetch(self, request: PlatformFetchRequest, issues: list[str]) -> Iterator[ProcessedGame]:
        """Fetch recent Chess.com games for a player.

        Args:
            request: Username, limit and optional ``since_ms`` cursor.
            issues: Sink for skipped archives and malformed records.

        Returns:
            Lazy iterator of normalized games, most recent first.

        Raises:
            PlatformFetchError: When the archive index cannot be fetched.

        Example:
            >>> games = client.fetch(PlatformFetchRequest(username="hikaru", limit=20), [])
        """

        archives = self._fetch_archive_index(request.username)
        return self._iter_games(request, archives, issues)

    def _fetch_archive_index(self, username: str) -> list[str]:
        url = ARCHIVES_URL.format(username=username.strip().lower())
        try:
            payload = self._get_json(url)
        except (requests.RequestException, ValueError) as exc:
            self.logger.error("Chess.com archive index fetch failed for %s: %s", username, exc)
            raise PlatformFetchError(f"Chess.com archive index fetch failed: {exc}") from exc
        archives = [str(item) for item in payload.get("archives") or [] if item]
        if not archives:
            self.logger.info("No archives returned for %s", username)
        return sorted(archives, reverse=True)

    def _iter_games(
        self,
        request: PlatformFetchRequest,
        archives: list[str],
        issues: list[str],
    ) -> Iterator[ProcessedGame]:
        yielded = 0
        for archive_url in archives:
            records = self._safe_fetch_archive(archive_url, issues)
            for raw in sorted(records, key=_end_time, reverse=True):
                game = self._safe_normalize(raw, request, issues)
                if game is None:
                    continue
                if request.since_ms is not None and game.timestamp_ms <= request.since_ms:
                    self.logger.debug("Reached cursor %s in %s", request.since_ms, archive_url)
                    return
                yield game
                yielded += 1
                if yielded >= request.limit:
                    return
        self.logger.info("Fetched %s Chess.com games for %s", yielded, request.username)

    def _safe_fetch_archive(self, archive_url: str, issues: list[str]) -> list[Mapping]:
        """Fetch a single archive, recording failures instead of raising."""

        try:
            payload = self._get_json(archive_url)
        except (requests.RequestException, ValueError) as exc:
            self.logger.warning("Failed to fetch archive %s: %s", archive_url, exc)
            issues.append(f"Archive {archive_url}: {exc}")
            return []
        return [game for game in payload.get("games") or [] if isinstance(game, Mapping)]

    def _safe_normalize(
        self,
        raw: Mapping,
        request: PlatformFetchRequest,
        issues: list[str],
    ) -> ProcessedGame | None:
        try:
            return self._normalize(raw, request)
        except ValueError as exc:
            game_id = extract_external_id(raw) or "unknown"
            self.logger.warning("Skipping malformed Chess.com record %s: %s", game_id, exc)
            issues.append(f"Game {game_id}: Parse error: {exc}")
            return None

    def _normalize(self, raw: Mapping, request: PlatformFetchRequest) -> ProcessedGame:
        external_id = extract_external_id(raw)
        if external_id is None:
            raise GameParseError("missing game id")
        end_time = to_int(raw.get("end_time"))
        if end_time is None:
            raise GameParseError("missing end_time")
        white = raw.get("white") or {}
        black = raw.get("black") or {}
        if not isinstance(white, Mapping) or not isinstance(black, Mapping):
            raise GameParseError("missing player objects")
        color = resolve_player_color(
            request.username, (white.get("username"),), (black.get("username"),)
        )
        side = white if color == "white" else black
        pgn = str(raw.get("pgn") or "")
        return self._build_processed_game(
            request,
            external_id=external_id,
            pgn=pgn,
            timestamp_ms=end_time * 1000,
            result=GameResult.from_winner(_winner(white, black), color),
            elo=to_int(side.get("rating")),
            time_control=str(raw.get("time_control") or ""),
            speed=str(raw.get("time_class") or ""),
            opening=extract_opening(pgn),
        )

    def _get_json(self, url: str) -> dict:
        settings = self.settings
        response = get_with_backoff(
            url,
            headers={"User-Agent": settings.user_agent, **auth_headers(settings.chesscom.token)},
            timeout=settings.http_timeout_s,
            max_retries=settings.chesscom.max_retries,
            base_backoff_s=settings.chesscom.retry_backoff_ms / 1000.0,
            before_request=self.limiter.acquire,
            http_get=requests.get,
            label="Chess.com",
        )
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Unexpected Chess.com payload type: {type(payload).__name__}")
        return payload
