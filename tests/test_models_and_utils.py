from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from fairplay.errors import ValidationError
from fairplay.models import BatchImportResult, GameResult, ImportResult, Platform, ProcessedGame
from fairplay.trace_context import get_op_id, get_run_id, trace_context
from fairplay.utils import Hasher, Now, normalize_string, to_int
from tests.import_helpers import make_game


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("chess_com", Platform.CHESS_COM),
        ("Chess.com", Platform.CHESS_COM),
        (" chesscom ", Platform.CHESS_COM),
        ("LICHESS", Platform.LICHESS),
        ("lichess.org", Platform.LICHESS),
        (Platform.LICHESS, Platform.LICHESS),
    ],
)
def test_platform_parse_accepts_aliases(value, expected) -> None:
    assert Platform.parse(value) is expected


@pytest.mark.parametrize("value", [None, "", "fics", "chess"])
def test_platform_parse_rejects_unknown(value) -> None:
    with pytest.raises(ValidationError):
        Platform.parse(value)


def test_platform_labels() -> None:
    assert Platform.CHESS_COM.label == "Chess.com"
    assert Platform.LICHESS.label == "Lichess"


def test_game_result_from_winner() -> None:
    assert GameResult.from_winner("white", "white") is GameResult.WIN
    assert GameResult.from_winner("white", "black") is GameResult.LOSS
    assert GameResult.from_winner(None, "black") is GameResult.DRAW
    assert GameResult.from_winner("draw", "white") is GameResult.DRAW


def test_processed_game_strips_identifiers() -> None:
    payload = {**make_game(1).model_dump(), "username": " alice ", "external_id": " 42 "}
    stripped = ProcessedGame.model_validate(payload)
    assert stripped.username == "alice"
    assert stripped.external_id == "42"


def test_processed_game_rejects_negative_elo() -> None:
    payload = make_game(1).model_dump()
    payload["elo"] = -1
    with pytest.raises(PydanticValidationError):
        ProcessedGame.model_validate(payload)


def test_batch_total_imported() -> None:
    batch = BatchImportResult(
        results=[
            ImportResult(platform=Platform.LICHESS, username="a", imported=3),
            ImportResult(platform="fics", username="b", errors=["Import failed: bad"]),
        ]
    )
    assert batch.total_imported == 3
    assert batch.model_dump()["total_imported"] == 3


def test_to_int() -> None:
    assert to_int("12") == 12
    assert to_int(3.0) == 3
    assert to_int(3.5) is None
    assert to_int(True) is None
    assert to_int("x") is None
    assert to_int(None) is None


def test_normalize_string_and_hasher() -> None:
    assert normalize_string("  Hikaru ") == "hikaru"
    assert normalize_string(None) == ""
    digest = Hasher.hash_string("chess.com_hikaru")
    assert len(digest) == 64
    assert digest == Hasher.hash_string("chess.com_hikaru")


def test_now_conversions() -> None:
    assert Now.date_from_milliseconds(1_706_745_600_000) == date(2024, 2, 1)
    assert Now.from_milliseconds(0).year == 1970
    assert Now.as_milliseconds() > 1_706_745_600_000


def test_trace_context_nests_and_resets() -> None:
    assert get_run_id() is None
    with trace_context(run_id="run-1", op_id="op-1"):
        with trace_context(op_id="op-2"):
            assert get_run_id() == "run-1"
            assert get_op_id() == "op-2"
        assert get_op_id() == "op-1"
    assert get_run_id() is None
    assert get_op_id() is None
