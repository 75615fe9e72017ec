"""Scoring strategy port."""

from __future__ import annotations

from typing import Protocol

from fairplay.models import ProcessedGame, Score


class ScoringStrategy(Protocol):
    """Produce suspicion metrics for a game."""

    name: str

    def score(self, game: ProcessedGame) -> Score:
        """Return the score for ``game``."""
