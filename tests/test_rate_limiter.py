import threading
import unittest

from fairplay.config import Settings
from fairplay.models import Platform
from fairplay.rate_limiter import RateLimiter, build_rate_limiters


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class RateLimiterTests(unittest.TestCase):
    def test_first_request_is_not_delayed(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(Platform.CHESS_COM, 1.1, clock=clock, sleep=clock.sleep)
        self.assertEqual(limiter.acquire(), 0)
        self.assertEqual(clock.sleeps, [])

    def test_back_to_back_requests_are_spaced(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(Platform.CHESS_COM, 1.1, clock=clock, sleep=clock.sleep)
        limiter.acquire()
        limiter.acquire()
        limiter.acquire()
        self.assertEqual(len(clock.sleeps), 2)
        for waited in clock.sleeps:
            self.assertAlmostEqual(waited, 1.1)
        self.assertAlmostEqual(clock.now, 1002.2)

    def test_idle_time_counts_toward_interval(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(Platform.LICHESS, 1.0, clock=clock, sleep=clock.sleep)
        limiter.acquire()
        clock.now += 0.4
        waited = limiter.acquire()
        self.assertAlmostEqual(waited, 0.6)
        clock.now += 5
        self.assertEqual(limiter.acquire(), 0)

    def test_concurrent_callers_get_distinct_slots(self) -> None:
        clock = FakeClock()
        granted: list[float] = []
        guard = threading.Lock()

        def _sleep(seconds: float) -> None:
            with guard:
                granted.append(seconds)

        limiter = RateLimiter(Platform.CHESS_COM, 2.0, clock=clock, sleep=_sleep)
        threads = [threading.Thread(target=limiter.acquire) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sorted(granted), [2.0, 4.0, 6.0])
        self.assertEqual(limiter.status().requests_made, 4)

    def test_byte_window_rolls_after_a_minute(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(Platform.LICHESS, 0.0, clock=clock, sleep=clock.sleep)
        limiter.record_bytes(100)
        clock.now += 30
        limiter.record_bytes(50)
        self.assertEqual(limiter.bytes_last_minute(), 150)
        clock.now += 31
        self.assertEqual(limiter.bytes_last_minute(), 50)
        limiter.record_bytes(0)
        self.assertEqual(limiter.bytes_last_minute(), 50)

    def test_byte_ceiling_warns_once_without_blocking(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(
            Platform.LICHESS,
            0.0,
            byte_ceiling_per_minute=100,
            clock=clock,
            sleep=clock.sleep,
        )
        with self.assertLogs("fairplay.rate_limiter", level="WARNING") as logs:
            limiter.record_bytes(80)
            limiter.record_bytes(40)
            limiter.record_bytes(40)
        self.assertEqual(len(logs.records), 1)
        self.assertIn("not enforced", logs.output[0])
        self.assertEqual(clock.sleeps, [])

        status = limiter.status()
        self.assertEqual(status.bytes_last_minute, 160)
        self.assertEqual(status.byte_ceiling_per_minute, 100)
        self.assertFalse(status.byte_ceiling_enforced)

    def test_negative_interval_is_clamped(self) -> None:
        limiter = RateLimiter("custom", -5, max_concurrency=0)
        self.assertEqual(limiter.min_interval_s, 0.0)
        self.assertEqual(limiter.max_concurrency, 1)
        self.assertEqual(limiter.status().platform, "custom")

    def test_build_rate_limiters_uses_platform_settings(self) -> None:
        settings = Settings(
            chesscom_min_interval_s=1.1,
            lichess_requests_per_second=10.0,
            lichess_max_bytes_per_minute=2048,
        )
        limiters = build_rate_limiters(settings)
        chesscom = limiters[Platform.CHESS_COM]
        lichess = limiters[Platform.LICHESS]
        self.assertEqual(chesscom.min_interval_s, 1.1)
        self.assertEqual(chesscom.max_concurrency, 1)
        self.assertIsNone(chesscom.byte_ceiling_per_minute)
        self.assertAlmostEqual(lichess.min_interval_s, 0.1)
        self.assertEqual(lichess.max_concurrency, 2)
        self.assertEqual(lichess.byte_ceiling_per_minute, 2048)
        self.assertEqual(lichess.status().platform, "lichess")


if __name__ == "__main__":
    unittest.main()
