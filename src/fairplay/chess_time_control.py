"""Time control parsing helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass

_SPEED_LABELS = {"bullet", "blitz", "rapid", "classical", "daily", "unknown"}
_DAILY_ALIASES = {"daily", "correspondence"}
_TIME_CONTROL_ESTIMATE_MOVES = 40
_BULLET_MAX_SECONDS = 180
_BLITZ_MAX_SECONDS = 600
_RAPID_MAX_SECONDS = 1800


def _parse_time_control_value(value: str) -> ChessTimeControl | None:
    normalized = value.strip()
    if not normalized or normalized == "-":
        return None
    for parser in (
        _parse_time_control_plus,
        _parse_time_control_seconds,
        _parse_time_control_fallback,
    ):
        parsed = parser(normalized)
        if parsed is not None:
            return parsed
    return None


def _parse_time_control_plus(value: str) -> ChessTimeControl | None:
    if "+" not in value:
        return None
    initial_str, increment_str = value.split("+", 1)
    if initial_str.isdigit() and increment_str.isdigit():
        return ChessTimeControl(initial=int(initial_str), increment=int(increment_str))
    return None


def _parse_time_control_seconds(value: str) -> ChessTimeControl | None:
    if value.isdigit():
        return ChessTimeControl(initial=int(value), increment=None)
    return None


def _parse_time_control_fallback(value: str) -> ChessTimeControl | None:
    match = re.fullmatch(r"\s*(\d+)\s*\+?\s*(\d+)?\s*", value)
    if match:
        increment = int(match.group(2)) if match.group(2) else None
        return ChessTimeControl(initial=int(match.group(1)), increment=increment)
    return None


def _is_daily(value: str, speed: str) -> bool:
    return speed in _DAILY_ALIASES or value in _DAILY_ALIASES or "/" in value


def canonical_time_control(value: str | None, speed: str | None = None) -> str:
    """Reduce a platform time control to its canonical short form.

    Args:
        value: Raw time control (``"600"``, ``"180+2"``, ``"1/259200"``).
        speed: Platform speed name used when the value is missing or opaque.

    Returns:
        ``"<seconds>+<increment>"``, ``"daily"``, the speed name, or ``"unknown"``.

    Example:
        >>> canonical_time_control("600")
        '600+0'
        >>> canonical_time_control("1/259200")
        'daily'
    """

    normalized = (value or "").strip().lower()
    normalized_speed = (speed or "").strip().lower()
    if _is_daily(normalized, normalized_speed):
        return "daily"
    parsed = _parse_time_control_value(normalized)
    if parsed is not None:
        return parsed.canonical()
    return normalized_speed or "unknown"


def speed_bucket(canonical: str | None) -> str:
    """Bucket a canonical time control into a speed label."""

    normalized = (canonical or "").strip().lower()
    if not normalized:
        return "unknown"
    if normalized in _DAILY_ALIASES:
        return "daily"
    parsed = _parse_time_control_value(normalized)
    if parsed is None:
        return normalized if normalized in _SPEED_LABELS else "unknown"
    return _bucket_time_control_seconds(parsed.estimated_total_seconds())


def _bucket_time_control_seconds(total_seconds: int) -> str:
    if total_seconds <= _BULLET_MAX_SECONDS:
        return "bullet"
    if total_seconds < _BLITZ_MAX_SECONDS:
        return "blitz"
    if total_seconds < _RAPID_MAX_SECONDS:
        return "rapid"
    return "classical"


@dataclass
class ChessTimeControl:
    """Represents a chess time control value."""

    initial: int  # seconds
    increment: int | None = None

    @classmethod
    def from_clock(cls, clock: dict[str, object] | None) -> ChessTimeControl | None:
        """Build from a Lichess ``clock`` object (``initial``/``increment`` seconds)."""
        if not clock:
            return None
        initial = clock.get("initial")
        if not isinstance(initial, int):
            return None
        increment = clock.get("increment")
        return cls(initial=initial, increment=increment if isinstance(increment, int) else 0)

    def canonical(self) -> str:
        return f"{self.initial}+{self.increment or 0}"

    def __str__(self) -> str:
        return self.canonical()

    def estimated_total_seconds(self, moves: int = _TIME_CONTROL_ESTIMATE_MOVES) -> int:
        """Return an estimated total duration in seconds for bucketing."""
        increment = self.increment or 0
        return self.initial + increment * moves
