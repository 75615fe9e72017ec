"""Public exports for platform adapter abstractions."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

from fairplay.chess_clients.base_chess_client import BaseChessClient, BaseChessClientContext
from fairplay.chess_clients.chess_fetch_request import PlatformFetchRequest

__all__ = [
    "BaseChessClient",
    "BaseChessClientContext",
    "ChesscomClient",
    "LichessClient",
    "MockChessClient",
    "PlatformFetchRequest",
]


def __getattr__(name: str):
    if name == "ChesscomClient":
        return import_module("fairplay.infra.clients.chesscom_client").ChesscomClient
    if name == "LichessClient":
        return import_module("fairplay.infra.clients.lichess_client").LichessClient
    if name == "MockChessClient":
        return import_module("fairplay.chess_clients.mock_chess_client").MockChessClient
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> list[str]:
    return sorted(__all__)


if TYPE_CHECKING:
    from fairplay.chess_clients.mock_chess_client import MockChessClient
    from fairplay.infra.clients.chesscom_client import ChesscomClient
    from fairplay.infra.clients.lichess_client import LichessClient
