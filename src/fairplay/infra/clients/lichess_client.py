"""Lichess stream-filtered adapter."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass

import berserk
import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from fairplay.chess_clients.base_chess_client import (
    BaseChessClient,
    BaseChessClientContext,
    resolve_player_color,
)
from fairplay.chess_clients.chess_fetch_request import PlatformFetchRequest
from fairplay.chess_time_control import ChessTimeControl
from fairplay.config import Settings
from fairplay.errors import GameParseError, PlatformFetchError
from fairplay.models import GameResult, Platform, ProcessedGame
from fairplay.pgn_headers import extract_opening
from fairplay.utils import get_logger, to_int

logger = get_logger(__name__)

GAMES_EXPORT_URL = "https://lichess.org/api/games/user/{username}"
NDJSON_CONTENT_TYPE = "application/x-ndjson"

__all__ = [
    "GAMES_EXPORT_URL",
    "LichessClient",
    "LichessClientContext",
    "build_session",
]


def build_session(settings: Settings) -> requests.Session:
    """Build the HTTP session for the Lichess API.

    Args:
        settings: Settings carrying the optional Lichess token.

    Returns:
        A ``berserk.TokenSession`` when a token is configured, else a plain session.
    """

    if settings.lichess.token:
        session: requests.Session = berserk.TokenSession(settings.lichess.token)
    else:
        session = requests.Session()
    session.headers.update({"User-Agent": settings.user_agent})
    return session


def _extract_status_code(exc: BaseException) -> int | None:
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    return status_code if isinstance(status_code, int) else None


def _is_retryable(exc: BaseException) -> bool:
    """Retry transport errors, 429 and 5xx; give up on other client errors."""

    if not isinstance(exc, requests.RequestException):
        return False
    status_code = _extract_status_code(exc)
    return status_code is None or status_code == 429 or status_code >= 500


def _user_names(side: Mapping[str, object]) -> tuple[str | None, ...]:
    user = side.get("user") or {}
    if not isinstance(user, Mapping):
        return ()
    return (user.get("name"), user.get("id"))


def _player_side(payload: Mapping[str, object], color: str) -> Mapping[str, object]:
    players = payload.get("players")
    side = players.get(color) if isinstance(players, Mapping) else None
    return side if isinstance(side, Mapping) else {}


def _opening_name(payload: Mapping[str, object]) -> str | None:
    opening = payload.get("opening")
    if isinstance(opening, Mapping) and opening.get("name"):
        return str(opening["name"])
    return None


@dataclass(slots=True)
class LichessClientContext(BaseChessClientContext):
    """Context for Lichess API interactions.

    Attributes:
        session: HTTP session; built from settings when omitted.
        sleep: Sleep used between retry attempts.
    """

    session: requests.Session | None = None
    sleep: Callable[[float], None] = time.sleep


class LichessClient(BaseChessClient):
    """Client for the Lichess NDJSON game export."""

    platform = Platform.LICHESS

    def __init__(self, context: LichessClientContext) -> None:
        super().__init__(context)
        self._session = context.session or build_session(context.settings)
        self._sleep = context.sleep

    def fetch(self, request: PlatformFetchRequest, issues: list[str]) -> Iterator[ProcessedGame]:
        """Stream recent Lichess games for a player.

        Args:
            request: Username, limit and optional ``since_ms`` cursor.
            issues: Sink for malformed lines and interrupted streams.

        Returns:
            Lazy iterator of normalized games, most recent first.

        Raises:
            PlatformFetchError: When the stream cannot be opened after retries.
        """

        url = GAMES_EXPORT_URL.format(username=request.username.strip())
        params = self._build_params(request)
        try:
            response = self._open_stream(url, params)
        except requests.RequestException as exc:
            self.logger.error("Lichess export failed for %s: %s", request.username, exc)
            raise PlatformFetchError(f"Lichess export failed: {exc}") from exc
        return self._iter_games(request, response, issues)

    @staticmethod
    def _build_params(request: PlatformFetchRequest) -> dict[str, object]:
        params: dict[str, object] = {
            "max": request.limit,
            "sort": "dateDesc",
            "pgnInJson": "true",
            "opening": "true",
            "clocks": "false",
            "evals": "false",
        }
        if request.since_ms is not None:
            params["since"] = request.since_ms
        return params

    def _open_stream(self, url: str, params: Mapping[str, object]) -> requests.Response:
        retryer = Retrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(max(self.settings.lichess.max_retries, 1)),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
        )
        return retryer(self._request_once, url, params)

    def _request_once(self, url: str, params: Mapping[str, object]) -> requests.Response:
        self.limiter.acquire()
        response = self._session.get(
            url,
            params=dict(params),
            headers={"Accept": NDJSON_CONTENT_TYPE},
            stream=True,
            timeout=self.settings.http_timeout_s,
        )
        response.raise_for_status()
        return response

    def _iter_games(
        self,
        request: PlatformFetchRequest,
        response: requests.Response,
        issues: list[str],
    ) -> Iterator[ProcessedGame]:
        yielded = 0
        try:
            for line in response.iter_lines():
                if not line or not line.strip():
                    continue
                self.limiter.record_bytes(len(line) + 1)
                game = self._safe_parse_line(line, request, issues)
                if game is None:
                    continue
                if request.since_ms is not None and game.timestamp_ms <= request.since_ms:
                    continue
                yield game
                yielded += 1
                if yielded >= request.limit:
                    break
        except requests.RequestException as exc:
            self.logger.warning("Lichess stream interrupted after %s games: %s", yielded, exc)
            issues.append(f"Lichess stream interrupted after {yielded} games: {exc}")
        finally:
            response.close()
        self.logger.info("Fetched %s Lichess games for %s", yielded, request.username)

    def _safe_parse_line(
        self,
        line: bytes | str,
        request: PlatformFetchRequest,
        issues: list[str],
    ) -> ProcessedGame | None:
        payload: object = None
        try:
            payload = json.loads(line)
            return self._normalize(payload, request)
        except ValueError as exc:
            game_id = payload.get("id") if isinstance(payload, Mapping) else None
            self.logger.warning("Skipping malformed Lichess record %s: %s", game_id, exc)
            issues.append(f"Game {game_id or 'unknown'}: Parse error: {exc}")
            return None

    def _normalize(self, payload: object, request: PlatformFetchRequest) -> ProcessedGame:
        if not isinstance(payload, Mapping):
            raise GameParseError("record is not an object")
        external_id = str(payload.get("id") or "").strip()
        if not external_id:
            raise GameParseError("missing game id")
        timestamp_ms = to_int(payload.get("lastMoveAt")) or to_int(payload.get("createdAt"))
        if timestamp_ms is None:
            raise GameParseError("missing lastMoveAt/createdAt")
        white = _player_side(payload, "white")
        black = _player_side(payload, "black")
        color = resolve_player_color(request.username, _user_names(white), _user_names(black))
        side = white if color == "white" else black
        clock = payload.get("clock")
        time_control = ChessTimeControl.from_clock(clock if isinstance(clock, dict) else None)
        pgn = str(payload.get("pgn") or "")
        return self._build_processed_game(
            request,
            external_id=external_id,
            pgn=pgn,
            timestamp_ms=timestamp_ms,
            result=GameResult.from_winner(payload.get("winner"), color),
            elo=to_int(side.get("rating")),
            time_control=time_control.canonical() if time_control else None,
            speed=str(payload.get("speed") or ""),
            opening=_opening_name(payload) or extract_opening(pgn),
        )
