"""Placeholder suspicion scorer.

The numbers produced here are simulated from the player's rating and a random
source. No engine analysis takes place; swap in a real `ScoringStrategy` when
one exists.
"""

from __future__ import annotations

import random

from fairplay.models import ProcessedGame, Score

_BASE_ACCURACY = 75.0
_ACCURACY_SPREAD = 20.0
_ELO_SCALE = 2000.0
_MAX_ELO_FACTOR = 1.2
_MAX_ENGINE_MATCH = 98.0
_HIGH_ELO = 2200


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class HeuristicSuspicionScorer:
    """Rating-weighted random heuristic.

    Args:
        rng: Random source to draw from; takes precedence over ``seed``.
        seed: Seed for a private ``random.Random`` when ``rng`` is omitted.
    """

    name = "heuristic"

    def __init__(self, rng: random.Random | None = None, seed: int | None = None) -> None:
        self._rng = rng if rng is not None else random.Random(seed)

    def score(self, game: ProcessedGame) -> Score:
        rng = self._rng
        base_accuracy = _BASE_ACCURACY + rng.uniform(0, _ACCURACY_SPREAD)
        elo_factor = min(game.elo / _ELO_SCALE, _MAX_ELO_FACTOR)
        engine_match = min(base_accuracy * elo_factor, _MAX_ENGINE_MATCH)

        suspicion = 0.0
        if engine_match > 95:
            suspicion += 40
        if engine_match > 90:
            suspicion += 20
        if game.elo > _HIGH_ELO and engine_match > 92:
            suspicion += 15
        suspicion += rng.uniform(-10, 10)
        suspicion = _clamp(suspicion, 0, 100)

        return Score(
            engine_match_pct=round(engine_match, 1),
            delta_cp=round(rng.uniform(-25, 25), 1),
            run_perfect_count=rng.randint(0, 14),
            ml_prob=round(suspicion / 100, 3),
            suspicion_level=int(round(suspicion)),
            scorer=self.name,
        )
