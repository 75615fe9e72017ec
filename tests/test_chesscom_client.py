import tempfile
import unittest
from datetime import date
from pathlib import Path
from unittest.mock import patch

from fairplay.chess_clients.chess_fetch_request import PlatformFetchRequest
from fairplay.errors import PlatformFetchError
from fairplay.infra.clients.chesscom_client import (
    ARCHIVES_URL,
    ChesscomClient,
    ChesscomClientContext,
    extract_external_id,
)
from fairplay.models import GameResult, Platform
from fairplay.utils import get_logger
from tests.http_fakes import FakeResponse, make_fake_get
from tests.import_helpers import free_limiter, make_settings

ARCHIVE_JAN = "https://api.chess.com/pub/player/hikaru/games/2024/01"
ARCHIVE_FEB = "https://api.chess.com/pub/player/hikaru/games/2024/02"
FEB_1_2024_S = 1_706_745_600

PGN_TEMPLATE = """[Event "Live Chess"]
[Site "Chess.com"]
[White "{white}"]
[Black "{black}"]
[Result "1-0"]
[ECO "B01"]
[Opening "Scandinavian Defense"]

1. e4 d5 2. exd5 Qxd5 1-0
"""


def chesscom_game(
    game_id: str,
    end_time: int,
    *,
    white: str = "Hikaru",
    black: str = "opponent",
    white_result: str = "win",
    black_result: str = "checkmated",
    white_rating: int = 3200,
    black_rating: int = 2500,
    time_control: str = "300",
    time_class: str = "blitz",
) -> dict:
    return {
        "url": f"https://www.chess.com/game/live/{game_id}",
        "uuid": f"uuid-{game_id}",
        "end_time": end_time,
        "time_control": time_control,
        "time_class": time_class,
        "pgn": PGN_TEMPLATE.format(white=white, black=black),
        "white": {"username": white, "rating": white_rating, "result": white_result},
        "black": {"username": black, "rating": black_rating, "result": black_result},
    }


class ChesscomClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.settings = make_settings(self.tmp_dir)
        self.limiter = free_limiter(Platform.CHESS_COM)
        self.client = ChesscomClient(
            ChesscomClientContext(
                settings=self.settings,
                logger=get_logger("fairplay.test.chesscom"),
                limiter=self.limiter,
            )
        )

    def _fetch(self, responses, request, urls=None):
        issues: list[str] = []
        with patch(
            "fairplay.infra.clients.chesscom_client.requests.get",
            side_effect=make_fake_get(responses, captured_urls=urls),
        ):
            games = list(self.client.fetch(request, issues))
        return games, issues

    def test_fetch_walks_archives_newest_first(self) -> None:
        urls: list[str] = []
        responses = [
            FakeResponse(json_data={"archives": [ARCHIVE_JAN, ARCHIVE_FEB]}),
            FakeResponse(
                json_data={
                    "games": [
                        chesscom_game("1002", FEB_1_2024_S + 120),
                        chesscom_game("1003", FEB_1_2024_S + 240),
                    ]
                }
            ),
            FakeResponse(json_data={"games": [chesscom_game("1001", FEB_1_2024_S - 3600)]}),
        ]

        games, issues = self._fetch(
            responses, PlatformFetchRequest(username="hikaru", limit=10), urls
        )

        self.assertEqual(issues, [])
        self.assertEqual([game.external_id for game in games], ["1003", "1002", "1001"])
        self.assertEqual(
            urls,
            [ARCHIVES_URL.format(username="hikaru"), ARCHIVE_FEB, ARCHIVE_JAN],
        )
        self.assertEqual(self.limiter.status().requests_made, 3)

    def test_fetch_normalizes_player_perspective(self) -> None:
        responses = [
            FakeResponse(json_data={"archives": [ARCHIVE_FEB]}),
            FakeResponse(
                json_data={
                    "games": [
                        chesscom_game("2001", FEB_1_2024_S, time_control="180+2"),
                        chesscom_game(
                            "2002",
                            FEB_1_2024_S + 60,
                            white="opponent",
                            black="Hikaru",
                            white_result="win",
                            black_result="resigned",
                            white_rating=2400,
                            black_rating=3190,
                        ),
                        chesscom_game(
                            "2003",
                            FEB_1_2024_S + 120,
                            white_result="agreed",
                            black_result="agreed",
                            time_control="1/259200",
                            time_class="daily",
                        ),
                    ]
                }
            ),
        ]

        games, issues = self._fetch(responses, PlatformFetchRequest(username="HIKARU", limit=10))

        self.assertEqual(issues, [])
        by_id = {game.external_id: game for game in games}
        win = by_id["2001"]
        self.assertEqual(win.platform, Platform.CHESS_COM)
        self.assertEqual(win.result, GameResult.WIN)
        self.assertEqual(win.elo, 3200)
        self.assertEqual(win.time_control, "180+2")
        self.assertEqual(win.speed, "blitz")
        self.assertEqual(win.opening, "Scandinavian Defense")
        self.assertEqual(win.timestamp_ms, FEB_1_2024_S * 1000)
        self.assertEqual(win.played_on, date(2024, 2, 1))
        self.assertEqual(win.username, "HIKARU")

        loss = by_id["2002"]
        self.assertEqual(loss.result, GameResult.LOSS)
        self.assertEqual(loss.elo, 3190)

        draw = by_id["2003"]
        self.assertEqual(draw.result, GameResult.DRAW)
        self.assertEqual(draw.time_control, "daily")
        self.assertEqual(draw.speed, "daily")
        self.assertEqual(win.player_hash, loss.player_hash)

    def test_fetch_stops_at_limit_without_touching_older_archives(self) -> None:
        urls: list[str] = []
        responses = [
            FakeResponse(json_data={"archives": [ARCHIVE_JAN, ARCHIVE_FEB]}),
            FakeResponse(
                json_data={
                    "games": [
                        chesscom_game("3001", FEB_1_2024_S),
                        chesscom_game("3002", FEB_1_2024_S + 60),
                    ]
                }
            ),
        ]

        games, _issues = self._fetch(
            responses, PlatformFetchRequest(username="hikaru", limit=1), urls
        )

        self.assertEqual([game.external_id for game in games], ["3002"])
        self.assertEqual(len(urls), 2)

    def test_fetch_stops_at_cursor(self) -> None:
        responses = [
            FakeResponse(json_data={"archives": [ARCHIVE_JAN, ARCHIVE_FEB]}),
            FakeResponse(
                json_data={
                    "games": [
                        chesscom_game("4001", FEB_1_2024_S),
                        chesscom_game("4002", FEB_1_2024_S + 60),
                    ]
                }
            ),
        ]

        games, issues = self._fetch(
            responses,
            PlatformFetchRequest(
                username="hikaru", limit=10, since_ms=FEB_1_2024_S * 1000
            ),
        )

        self.assertEqual([game.external_id for game in games], ["4002"])
        self.assertEqual(issues, [])

    def test_failed_archive_is_recorded_and_skipped(self) -> None:
        responses = [
            FakeResponse(json_data={"archives": [ARCHIVE_JAN, ARCHIVE_FEB]}),
            FakeResponse(status_code=500),
            FakeResponse(json_data={"games": [chesscom_game("5001", FEB_1_2024_S - 60)]}),
        ]

        games, issues = self._fetch(responses, PlatformFetchRequest(username="hikaru", limit=10))

        self.assertEqual([game.external_id for game in games], ["5001"])
        self.assertEqual(len(issues), 1)
        self.assertTrue(issues[0].startswith(f"Archive {ARCHIVE_FEB}:"))

    def test_malformed_record_is_recorded_and_skipped(self) -> None:
        stranger = chesscom_game("6002", FEB_1_2024_S + 60, white="someone", black="else")
        missing_time = chesscom_game("6003", FEB_1_2024_S + 120)
        missing_time["end_time"] = None
        responses = [
            FakeResponse(json_data={"archives": [ARCHIVE_FEB]}),
            FakeResponse(
                json_data={
                    "games": [chesscom_game("6001", FEB_1_2024_S), stranger, missing_time]
                }
            ),
        ]

        games, issues = self._fetch(responses, PlatformFetchRequest(username="hikaru", limit=10))

        self.assertEqual([game.external_id for game in games], ["6001"])
        self.assertEqual(len(issues), 2)
        self.assertTrue(any(issue.startswith("Game 6002: Parse error") for issue in issues))
        self.assertTrue(any(issue.startswith("Game 6003: Parse error") for issue in issues))

    def test_archive_index_failure_raises(self) -> None:
        with patch(
            "fairplay.infra.clients.chesscom_client.requests.get",
            side_effect=make_fake_get([FakeResponse(status_code=404)]),
        ):
            with self.assertRaises(PlatformFetchError):
                self.client.fetch(PlatformFetchRequest(username="ghost", limit=5), [])

    def test_rate_limited_index_is_retried(self) -> None:
        responses = [
            FakeResponse(status_code=429, headers={"Retry-After": "0"}),
            FakeResponse(json_data={"archives": [ARCHIVE_FEB]}),
            FakeResponse(json_data={"games": [chesscom_game("7001", FEB_1_2024_S)]}),
        ]

        games, issues = self._fetch(responses, PlatformFetchRequest(username="hikaru", limit=5))

        self.assertEqual([game.external_id for game in games], ["7001"])
        self.assertEqual(issues, [])
        self.assertEqual(self.limiter.status().requests_made, 3)

    def test_rate_limit_exhaustion_surfaces_as_fetch_error(self) -> None:
        self.settings.chesscom.max_retries = 1
        with patch(
            "fairplay.infra.clients.chesscom_client.requests.get",
            side_effect=make_fake_get(
                [FakeResponse(status_code=429), FakeResponse(status_code=429)]
            ),
        ):
            with self.assertRaises(PlatformFetchError) as ctx:
                self.client.fetch(PlatformFetchRequest(username="hikaru", limit=5), [])
        self.assertIn("rate limit", str(ctx.exception))

    def test_empty_archive_index_yields_nothing(self) -> None:
        games, issues = self._fetch(
            [FakeResponse(json_data={"archives": []})],
            PlatformFetchRequest(username="newcomer", limit=5),
        )
        self.assertEqual(games, [])
        self.assertEqual(issues, [])

    def test_extract_external_id(self) -> None:
        self.assertEqual(
            extract_external_id({"url": "https://www.chess.com/game/live/123/"}), "123"
        )
        self.assertEqual(extract_external_id({"uuid": "abc"}), "abc")
        self.assertIsNone(extract_external_id({}))


if __name__ == "__main__":
    unittest.main()
