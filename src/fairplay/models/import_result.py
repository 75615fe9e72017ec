"""Result models returned by the import orchestrator."""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field

from fairplay.models.platform import Platform


class ImportTarget(BaseModel):
    """One (platform, username) pair inside a batch import."""

    platform: str
    username: str


class ImportResult(BaseModel):
    """Outcome of importing one player's recent games.

    Attributes:
        run_id: Identifier bound to the import's trace context.
        platform: Platform the games came from (raw input when validation failed).
        username: Username as supplied.
        imported: Games newly persisted.
        total_fetched: Valid candidates produced by the adapter.
        duplicates: Candidates skipped because they were already stored.
        errors: Human-readable per-game and per-batch problems.
        cursor_advanced: Whether the sync cursor moved forward.
    """

    run_id: str | None = None
    platform: Platform | str
    username: str
    imported: int = 0
    total_fetched: int = 0
    duplicates: int = 0
    errors: list[str] = Field(default_factory=list)
    cursor_advanced: bool = False


class BatchImportResult(BaseModel):
    results: list[ImportResult] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_imported(self) -> int:
        return sum(result.imported for result in self.results)
