"""Use cases for the import pipeline."""

from fairplay.app.use_cases.import_games import ImportOrchestrator, validate_import_args
from fairplay.app.use_cases.persist_game import (
    PersistenceCoordinator,
    PersistOutcome,
    advance_cursor,
)

__all__ = [
    "ImportOrchestrator",
    "PersistOutcome",
    "PersistenceCoordinator",
    "advance_cursor",
    "validate_import_args",
]
