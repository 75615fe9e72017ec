from __future__ import annotations

from enum import StrEnum

from fairplay.errors import ValidationError

_PLATFORM_ALIASES = {
    "chess_com": "chess_com",
    "chess.com": "chess_com",
    "chesscom": "chess_com",
    "lichess": "lichess",
    "lichess.org": "lichess",
}


class Platform(StrEnum):
    """
    Supported game-history platforms.

    Attributes:
        CHESS_COM: Chess.com, archive-paginated.
        LICHESS: Lichess, single filtered NDJSON stream.
    """

    CHESS_COM = "chess_com"
    LICHESS = "lichess"

    @property
    def label(self) -> str:
        """Display label, also used as the player-hash prefix."""
        return _PLATFORM_LABELS[self]

    @classmethod
    def parse(cls, value: str | Platform | None) -> Platform:
        if isinstance(value, Platform):
            return value
        key = (value or "").strip().lower()
        resolved = _PLATFORM_ALIASES.get(key)
        if resolved is None:
            raise ValidationError(f"Unsupported platform: {value!r}")
        return cls(resolved)


_PLATFORM_LABELS = {
    Platform.CHESS_COM: "Chess.com",
    Platform.LICHESS: "Lichess",
}


class GameResult(StrEnum):
    """Game outcome from the imported player's perspective."""

    WIN = "Win"
    LOSS = "Loss"
    DRAW = "Draw"

    @classmethod
    def from_winner(cls, winner: str | None, player_color: str) -> GameResult:
        if winner not in {"white", "black"}:
            return cls.DRAW
        return cls.WIN if winner == player_color else cls.LOSS
