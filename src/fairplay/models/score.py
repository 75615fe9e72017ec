from __future__ import annotations

from pydantic import BaseModel, Field


class Score(BaseModel):
    """Suspicion metrics attached 1:1 to an imported game."""

    engine_match_pct: float = Field(ge=0, le=100)
    delta_cp: float
    run_perfect_count: int = Field(ge=0)
    ml_prob: float = Field(ge=0, le=1)
    suspicion_level: int = Field(ge=0, le=100)
    scorer: str = "heuristic"
