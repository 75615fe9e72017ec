from fairplay.models.import_result import BatchImportResult, ImportResult, ImportTarget
from fairplay.models.platform import GameResult, Platform
from fairplay.models.processed_game import ProcessedGame
from fairplay.models.score import Score
from fairplay.models.sync_cursor import SyncCursor

__all__ = [
    "BatchImportResult",
    "GameResult",
    "ImportResult",
    "ImportTarget",
    "Platform",
    "ProcessedGame",
    "Score",
    "SyncCursor",
]
