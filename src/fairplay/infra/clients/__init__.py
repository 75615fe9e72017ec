"""Infrastructure client adapters."""

from fairplay.infra.clients.chesscom_client import ChesscomClient, ChesscomClientContext
from fairplay.infra.clients.lichess_client import LichessClient, LichessClientContext

__all__ = [
    "ChesscomClient",
    "ChesscomClientContext",
    "LichessClient",
    "LichessClientContext",
]
