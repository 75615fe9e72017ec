"""Normalized game record shared by all platform adapters."""

from __future__ import annotations

from datetime import UTC, date, datetime

from pydantic import BaseModel, Field, field_validator

from fairplay.models.platform import GameResult, Platform


class ProcessedGame(BaseModel):
    """A platform game normalized to the imported player's perspective.

    Attributes:
        player_hash: Deterministic hash of (platform label, username).
        platform: Source platform.
        username: Username as supplied by the caller, trimmed.
        external_id: Platform game id, unique per platform.
        pgn: Raw PGN text.
        played_on: UTC date of ``timestamp_ms``.
        result: Outcome for the imported player.
        elo: Imported player's rating for this game (0 when unknown).
        time_control: Canonical short form, e.g. ``"600+0"`` or ``"daily"``.
        speed: Speed bucket derived from ``time_control``.
        opening: Opening name when known.
        timestamp_ms: Sync timestamp in epoch milliseconds.
        fetched_at: When the adapter produced this record.
    """

    player_hash: str
    platform: Platform
    username: str = Field(min_length=1)
    external_id: str = Field(min_length=1)
    pgn: str = ""
    played_on: date
    result: GameResult
    elo: int = Field(default=0, ge=0)
    time_control: str = "unknown"
    speed: str = "unknown"
    opening: str | None = None
    timestamp_ms: int = Field(ge=0)
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("username", "external_id")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()
