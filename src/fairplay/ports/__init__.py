"""Port interfaces for the import pipeline."""

from fairplay.ports.platform_adapter import PlatformAdapter
from fairplay.ports.repositories import (
    DedupFilter,
    GameRepository,
    ImportRunRepository,
    PlayerRepository,
    ScoreRepository,
    SyncCursorStore,
)
from fairplay.ports.scoring_strategy import ScoringStrategy
from fairplay.ports.unit_of_work import UnitOfWork, UnitOfWorkFactory

__all__ = [
    "DedupFilter",
    "GameRepository",
    "ImportRunRepository",
    "PlatformAdapter",
    "PlayerRepository",
    "ScoreRepository",
    "ScoringStrategy",
    "SyncCursorStore",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
