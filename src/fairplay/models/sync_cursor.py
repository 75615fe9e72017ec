from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from fairplay.models.platform import Platform


class SyncCursor(BaseModel):
    """Per-(platform, username) import high-water mark.

    A null ``last_timestamp_ms`` means no import has succeeded yet, so the
    next fetch is a full fetch bounded only by its limit.
    """

    platform: Platform
    username: str
    last_timestamp_ms: int | None = None
    last_external_id: str | None = None
    total_imported_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
