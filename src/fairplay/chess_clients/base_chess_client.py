from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime

from fairplay.build_player_hash__players import build_player_hash
from fairplay.chess_clients.chess_fetch_request import PlatformFetchRequest
from fairplay.chess_time_control import canonical_time_control, speed_bucket
from fairplay.config import Settings
from fairplay.errors import GameParseError
from fairplay.models import GameResult, Platform, ProcessedGame
from fairplay.rate_limiter import RateLimiter
from fairplay.utils import Now, normalize_string


@dataclass(slots=True)
class BaseChessClientContext:
    """Shared context for platform adapters.

    Attributes:
        settings: Application settings used for API calls.
        logger: Logger for client-specific messages.
        limiter: Rate limiter every outbound request must pass through.
    """

    settings: Settings
    logger: logging.Logger
    limiter: RateLimiter


class BaseChessClient:
    """Base class for platform adapters.

    Subclasses set ``platform`` and implement `fetch`.
    """

    platform: Platform

    def __init__(self, context: BaseChessClientContext) -> None:
        """Initialize the client with shared context.

        Args:
            context: Base context containing settings, logger and limiter.
        """

        self._context = context

    @property
    def settings(self) -> Settings:
        return self._context.settings

    @property
    def logger(self) -> logging.Logger:
        return self._context.logger

    @property
    def limiter(self) -> RateLimiter:
        return self._context.limiter

    def fetch(self, request: PlatformFetchRequest, issues: list[str]) -> Iterator[ProcessedGame]:
        """Lazily yield normalized games, most recent first.

        Args:
            request: Username, limit and optional ``since_ms`` cursor.
            issues: Sink for recoverable problems (skipped pages, bad records).

        Yields:
            At most ``request.limit`` games newer than ``request.since_ms``.

        Raises:
            PlatformFetchError: When nothing can be fetched at all.
            NotImplementedError: When the subclass does not implement this method.
        """

        raise NotImplementedError("Subclasses must implement fetch")

    def _now_utc(self) -> datetime:
        return datetime.now(UTC)

    def _build_processed_game(  # pylint: disable=too-many-arguments
        self,
        request: PlatformFetchRequest,
        *,
        external_id: str,
        pgn: str,
        timestamp_ms: int,
        result: GameResult,
        elo: int | None,
        time_control: str | None,
        speed: str | None = None,
        opening: str | None = None,
    ) -> ProcessedGame:
        """Create a normalized game for the requested player.

        Args:
            request: Fetch request naming the target player.
            external_id: Platform game id.
            pgn: Raw PGN text.
            timestamp_ms: Sync timestamp in epoch milliseconds.
            result: Outcome from the player's perspective.
            elo: Player rating, 0 when missing.
            time_control: Raw platform time control.
            speed: Platform speed name, used for daily detection and fallback.
            opening: Opening name if known.

        Returns:
            Normalized `ProcessedGame` instance.
        """

        canonical = canonical_time_control(time_control, speed)
        return ProcessedGame(
            player_hash=build_player_hash(self.platform, request.username),
            platform=self.platform,
            username=request.username.strip(),
            external_id=external_id,
            pgn=pgn,
            played_on=Now.date_from_milliseconds(timestamp_ms),
            result=result,
            elo=max(elo or 0, 0),
            time_control=canonical,
            speed=speed_bucket(canonical),
            opening=opening,
            timestamp_ms=timestamp_ms,
            fetched_at=self._now_utc(),
        )


def resolve_player_color(
    username: str,
    white_names: tuple[str | None, ...],
    black_names: tuple[str | None, ...],
) -> str:
    """Return ``"white"`` or ``"black"`` for the side the username played.

    Raises:
        GameParseError: When neither side matches the username.
    """

    target = normalize_string(username)
    if target in {normalize_string(name) for name in white_names if name}:
        return "white"
    if target in {normalize_string(name) for name in black_names if name}:
        return "black"
    raise GameParseError(f"Player {username!r} is not a participant")
