"""Entry points called by the external scheduler."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from fairplay.app.wiring import build_import_services
from fairplay.config import Settings
from fairplay.models import BatchImportResult, ImportResult, ImportTarget, Platform
from fairplay.utils import funclogger


@funclogger
def run_import(
    platform: Platform | str,
    username: str,
    limit: int,
    *,
    settings: Settings | None = None,
) -> ImportResult:
    """Import one player's recent games.

    Raises:
        ValidationError: For invalid arguments, before any network call.
    """

    with build_import_services(settings) as services:
        return services.orchestrator.import_one(platform, username, limit)


@funclogger
def run_batch_import(
    targets: Sequence[ImportTarget | Mapping[str, object]],
    limit: int,
    *,
    settings: Settings | None = None,
    concurrent: bool = False,
) -> BatchImportResult:
    """Import several players; a failing target never stops the others."""

    with build_import_services(settings) as services:
        return services.orchestrator.import_batch(targets, limit, concurrent=concurrent)
