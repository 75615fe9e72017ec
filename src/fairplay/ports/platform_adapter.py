"""Platform adapter port."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from fairplay.chess_clients.chess_fetch_request import PlatformFetchRequest
from fairplay.models import Platform, ProcessedGame


class PlatformAdapter(Protocol):
    """Source of normalized games for one platform."""

    platform: Platform

    def fetch(self, request: PlatformFetchRequest, issues: list[str]) -> Iterator[ProcessedGame]:
        """Yield games most recent first, appending recoverable problems to ``issues``."""
