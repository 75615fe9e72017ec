"""Import recent games for one or many players."""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Callable, Iterator, Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from datetime import datetime

from fairplay.app.use_cases.persist_game import (
    PersistenceCoordinator,
    PersistOutcome,
    advance_cursor,
)
from fairplay.chess_clients.chess_fetch_request import PlatformFetchRequest
from fairplay.config import Settings
from fairplay.errors import PersistenceError, PlatformFetchError, ValidationError
from fairplay.models import (
    BatchImportResult,
    ImportResult,
    ImportTarget,
    Platform,
    ProcessedGame,
)
from fairplay.ports.platform_adapter import PlatformAdapter
from fairplay.ports.repositories import DedupFilter, SyncCursorStore
from fairplay.ports.scoring_strategy import ScoringStrategy
from fairplay.rate_limiter import RateLimiter
from fairplay.trace_context import trace_context
from fairplay.utils import Now, get_logger, normalize_string

logger = get_logger(__name__)


def validate_import_args(
    platform: Platform | str,
    username: str | None,
    limit: int,
    max_limit: int,
) -> tuple[Platform, str]:
    """Validate import arguments before any fetch work.

    Args:
        platform: Platform value or alias.
        username: Target username.
        limit: Requested number of games.
        max_limit: Largest accepted limit.

    Returns:
        Parsed platform and trimmed username.

    Raises:
        ValidationError: For an unknown platform, blank username or out-of-range limit.
    """

    resolved = Platform.parse(platform)
    name = (username or "").strip()
    if not name:
        raise ValidationError("Username is required")
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}, got {limit!r}")
    return resolved, name


def _coerce_target(target: ImportTarget | Mapping[str, object]) -> ImportTarget:
    if isinstance(target, ImportTarget):
        return target
    return ImportTarget.model_validate(dict(target))


@dataclass
class ImportOrchestrator:  # pylint: disable=too-many-instance-attributes
    """Fetch, dedup, score and persist games; then advance the sync cursor.

    ``cursor_store`` and ``dedup`` default to the persistence coordinator.
    """

    settings: Settings
    adapters: Mapping[Platform, PlatformAdapter]
    scorer: ScoringStrategy
    persistence: PersistenceCoordinator
    cursor_store: SyncCursorStore | None = None
    dedup: DedupFilter | None = None
    limiters: Mapping[Platform, RateLimiter] = field(default_factory=dict)
    sleep: Callable[[float], None] = time.sleep
    _key_locks: dict[tuple[Platform, str], threading.Lock] = field(
        default_factory=dict, init=False, repr=False
    )
    _key_locks_guard: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    @property
    def _cursors(self) -> SyncCursorStore:
        return self.cursor_store or self.persistence

    @property
    def _dedup(self) -> DedupFilter:
        return self.dedup or self.persistence

    def import_one(self, platform: Platform | str, username: str, limit: int) -> ImportResult:
        """Import up to ``limit`` recent games for one player.

        Args:
            platform: Platform value or alias.
            username: Target username.
            limit: Number of games to fetch, 1..``settings.max_import_limit``.

        Returns:
            Counts plus every per-game and per-batch error.

        Raises:
            ValidationError: Before any fetch when arguments are invalid.
        """

        resolved, name = validate_import_args(
            platform, username, limit, self.settings.max_import_limit
        )
        adapter = self.adapters.get(resolved)
        if adapter is None:
            raise ValidationError(f"No adapter configured for {resolved.label}")
        run_id = uuid.uuid4().hex
        op_id = f"import:{resolved}:{normalize_string(name)}"
        with trace_context(run_id=run_id, op_id=op_id), self._key_lock(resolved, name):
            return self._run_import(adapter, resolved, name, limit, run_id)

    @contextmanager
    def _key_lock(self, platform: Platform, username: str) -> Iterator[None]:
        key = (platform, normalize_string(username))
        with self._key_locks_guard:
            lock = self._key_locks.setdefault(key, threading.Lock())
        with lock:
            yield

    def _run_import(
        self,
        adapter: PlatformAdapter,
        platform: Platform,
        username: str,
        limit: int,
        run_id: str,
    ) -> ImportResult:
        started_at = Now.as_datetime()
        self._cursors.ensure(platform, username)
        cursor = self._cursors.read(platform, username)
        since_ms = cursor.last_timestamp_ms if cursor else None
        logger.info(
            "Import %s started for %s/%s (limit=%s, since_ms=%s)",
            run_id,
            platform,
            username,
            limit,
            since_ms,
        )

        result = ImportResult(run_id=run_id, platform=platform, username=username)
        issues: list[str] = []
        succeeded: list[ProcessedGame] = []
        request = PlatformFetchRequest(username=username, limit=limit, since_ms=since_ms)
        try:
            for game in adapter.fetch(request, issues):
                result.total_fetched += 1
                self._process_game(game, result, succeeded)
        except PlatformFetchError as exc:
            logger.warning("Fetch failed for %s/%s: %s", platform, username, exc)
            result.errors.append(str(exc))
        result.errors.extend(issues)

        try:
            result.cursor_advanced = advance_cursor(self._cursors, platform, username, succeeded)
        except PersistenceError as exc:
            result.errors.append(str(exc))
        self._record_run(result, started_at)
        logger.info(
            "Import %s finished for %s/%s: imported=%s fetched=%s duplicates=%s errors=%s",
            run_id,
            platform,
            username,
            result.imported,
            result.total_fetched,
            result.duplicates,
            len(result.errors),
        )
        return result

    def _process_game(
        self,
        game: ProcessedGame,
        result: ImportResult,
        succeeded: list[ProcessedGame],
    ) -> None:
        try:
            duplicate = self._dedup.exists(game.platform, game.external_id)
        except PersistenceError as exc:
            result.errors.append(f"Game {game.external_id}: {exc}")
            return
        if duplicate:
            result.duplicates += 1
            return
        try:
            score = self.scorer.score(game)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning("Scoring failed for game %s: %s", game.external_id, exc)
            result.errors.append(f"Game {game.external_id}: Scoring failed: {exc}")
            return
        try:
            outcome = self.persistence.persist(game, score)
        except PersistenceError as exc:
            result.errors.append(f"Game {game.external_id}: {exc}")
            return
        if outcome is PersistOutcome.DUPLICATE:
            result.duplicates += 1
            return
        result.imported += 1
        succeeded.append(game)

    def _record_run(self, result: ImportResult, started_at: datetime) -> None:
        self.persistence.record_run(
            {
                "run_id": result.run_id,
                "platform": str(result.platform),
                "username": result.username,
                "total_fetched": result.total_fetched,
                "imported": result.imported,
                "duplicates": result.duplicates,
                "errors_count": len(result.errors),
                "cursor_advanced": result.cursor_advanced,
                "started_at": started_at,
                "finished_at": Now.as_datetime(),
            }
        )

    def import_batch(
        self,
        targets: Sequence[ImportTarget | Mapping[str, object]],
        limit: int,
        *,
        concurrent: bool = False,
    ) -> BatchImportResult:
        """Import several players, one result per target in input order.

        A failing target never stops the batch; its exception becomes that
        target's result. Sequential runs pause ``settings.batch_delay_s``
        between targets. ``concurrent=True`` runs each platform's targets on a
        pool sized to that platform limiter's ``max_concurrency``.
        """

        normalized = [_coerce_target(target) for target in targets]
        if concurrent:
            results = self._import_concurrent(normalized, limit)
        else:
            results = self._import_sequential(normalized, limit)
        batch = BatchImportResult(results=results)
        logger.info(
            "Batch import finished: %s targets, %s imported", len(results), batch.total_imported
        )
        return batch

    def _safe_import(self, target: ImportTarget, limit: int) -> ImportResult:
        try:
            return self.import_one(target.platform, target.username, limit)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning("Import failed for %s/%s: %s", target.platform, target.username, exc)
            return ImportResult(
                platform=target.platform,
                username=target.username,
                errors=[f"Import failed: {exc}"],
            )

    def _import_sequential(self, targets: list[ImportTarget], limit: int) -> list[ImportResult]:
        results: list[ImportResult] = []
        for index, target in enumerate(targets):
            if index and self.settings.batch_delay_s > 0:
                self.sleep(self.settings.batch_delay_s)
            results.append(self._safe_import(target, limit))
        return results

    def _import_concurrent(self, targets: list[ImportTarget], limit: int) -> list[ImportResult]:
        results: list[ImportResult | None] = [None] * len(targets)
        groups: dict[Platform, list[int]] = {}
        for index, target in enumerate(targets):
            try:
                groups.setdefault(Platform.parse(target.platform), []).append(index)
            except ValidationError:
                results[index] = self._safe_import(target, limit)

        futures: dict[int, Future[ImportResult]] = {}
        with ExitStack() as stack:
            for platform, indexes in groups.items():
                limiter = self.limiters.get(platform)
                workers = limiter.max_concurrency if limiter is not None else 1
                executor = stack.enter_context(
                    ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"import-{platform}")
                )
                for index in indexes:
                    futures[index] = executor.submit(self._safe_import, targets[index], limit)
        for index, future in futures.items():
            results[index] = future.result()
        return [result for result in results if result is not None]
