"""Per-platform outbound request pacing."""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from fairplay.config import Settings
from fairplay.models.platform import Platform
from fairplay.utils import get_logger

logger = get_logger(__name__)

_BYTE_WINDOW_S = 60.0


@dataclass(frozen=True, slots=True)
class RateLimiterStatus:
    """Point-in-time view of a limiter for the status endpoint."""

    platform: str
    min_interval_s: float
    max_concurrency: int
    requests_made: int
    bytes_last_minute: int
    byte_ceiling_per_minute: int | None
    byte_ceiling_enforced: bool = False


class RateLimiter:
    """Interval gate shared by every outbound request to one platform.

    ``acquire`` reserves the next free slot under a lock and then sleeps
    outside it, so concurrent callers are granted slots in order at least
    ``min_interval_s`` apart. Requests are delayed, never dropped.

    ``record_bytes`` keeps a rolling one-minute byte tally and warns once the
    configured ceiling is crossed. The ceiling is observed, not enforced.
    """

    def __init__(
        self,
        platform: Platform | str,
        min_interval_s: float,
        *,
        max_concurrency: int = 1,
        byte_ceiling_per_minute: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.platform = str(platform)
        self.min_interval_s = max(0.0, float(min_interval_s))
        self.max_concurrency = max(1, int(max_concurrency))
        self.byte_ceiling_per_minute = byte_ceiling_per_minute
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_slot: float | None = None
        self._requests_made = 0
        self._byte_events: deque[tuple[float, int]] = deque()
        self._ceiling_warned = False

    def acquire(self) -> float:
        """Block until this caller's slot; return the seconds waited."""
        with self._lock:
            now = self._clock()
            slot = now if self._next_slot is None else max(now, self._next_slot)
            self._next_slot = slot + self.min_interval_s
            self._requests_made += 1
        wait = slot - now
        if wait > 0:
            logger.debug("Rate limiter %s waiting %.3fs", self.platform, wait)
            self._sleep(wait)
        return wait

    def record_bytes(self, count: int) -> None:
        if count <= 0:
            return
        with self._lock:
            now = self._clock()
            self._byte_events.append((now, count))
            total = self._bytes_in_window(now)
            over = (
                self.byte_ceiling_per_minute is not None
                and total > self.byte_ceiling_per_minute
            )
            should_warn = over and not self._ceiling_warned
            self._ceiling_warned = over
        if should_warn:
            logger.warning(
                "%s response volume %s bytes/min exceeds documented ceiling %s (not enforced)",
                self.platform,
                total,
                self.byte_ceiling_per_minute,
            )

    def bytes_last_minute(self) -> int:
        with self._lock:
            return self._bytes_in_window(self._clock())

    def _bytes_in_window(self, now: float) -> int:
        while self._byte_events and now - self._byte_events[0][0] >= _BYTE_WINDOW_S:
            self._byte_events.popleft()
        return sum(count for _, count in self._byte_events)

    def status(self) -> RateLimiterStatus:
        with self._lock:
            bytes_last_minute = self._bytes_in_window(self._clock())
            requests_made = self._requests_made
        return RateLimiterStatus(
            platform=self.platform,
            min_interval_s=self.min_interval_s,
            max_concurrency=self.max_concurrency,
            requests_made=requests_made,
            bytes_last_minute=bytes_last_minute,
            byte_ceiling_per_minute=self.byte_ceiling_per_minute,
        )


def build_rate_limiters(settings: Settings) -> dict[Platform, RateLimiter]:
    """Build one limiter per platform from settings."""

    return {
        Platform.CHESS_COM: RateLimiter(
            Platform.CHESS_COM,
            settings.chesscom.min_interval_s,
            max_concurrency=settings.chesscom.max_concurrency,
        ),
        Platform.LICHESS: RateLimiter(
            Platform.LICHESS,
            settings.lichess.min_interval_s,
            max_concurrency=settings.lichess.max_concurrency,
            byte_ceiling_per_minute=settings.lichess.max_bytes_per_minute,
        ),
    }
