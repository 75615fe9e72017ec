"""Default dependency wiring for the import use cases."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from functools import partial

import duckdb

from fairplay.app.use_cases.import_games import ImportOrchestrator
from fairplay.app.use_cases.persist_game import PersistenceCoordinator
from fairplay.chess_clients.base_chess_client import BaseChessClientContext
from fairplay.config import Settings, get_settings
from fairplay.db.duckdb_store import get_connection, init_schema
from fairplay.db.duckdb_unit_of_work import DuckDbUnitOfWork
from fairplay.infra.clients.chesscom_client import ChesscomClient, ChesscomClientContext
from fairplay.infra.clients.lichess_client import LichessClient, LichessClientContext
from fairplay.models import Platform
from fairplay.ports.platform_adapter import PlatformAdapter
from fairplay.ports.scoring_strategy import ScoringStrategy
from fairplay.rate_limiter import RateLimiter, build_rate_limiters
from fairplay.suspicion_scorer import HeuristicSuspicionScorer
from fairplay.utils import get_logger

logger = get_logger(__name__)


def build_adapters(
    settings: Settings,
    limiters: Mapping[Platform, RateLimiter],
) -> dict[Platform, PlatformAdapter]:
    """Build the live platform adapters, each bound to its limiter."""

    return {
        Platform.CHESS_COM: ChesscomClient(
            ChesscomClientContext(
                settings=settings,
                logger=get_logger("fairplay.chesscom"),
                limiter=limiters[Platform.CHESS_COM],
            )
        ),
        Platform.LICHESS: LichessClient(
            LichessClientContext(
                settings=settings,
                logger=get_logger("fairplay.lichess"),
                limiter=limiters[Platform.LICHESS],
            )
        ),
    }


def adapter_context(
    settings: Settings,
    limiter: RateLimiter,
    name: str = "fairplay.adapter",
) -> BaseChessClientContext:
    return BaseChessClientContext(settings=settings, logger=get_logger(name), limiter=limiter)


@dataclass
class ImportServices:
    """Long-lived collaborators for one process.

    ``connection`` stays open for the lifetime of the services; each unit of
    work runs on its own cursor of it.
    """

    settings: Settings
    connection: duckdb.DuckDBPyConnection
    limiters: dict[Platform, RateLimiter]
    persistence: PersistenceCoordinator
    orchestrator: ImportOrchestrator

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> ImportServices:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


def build_import_services(
    settings: Settings | None = None,
    *,
    adapters: Mapping[Platform, PlatformAdapter] | None = None,
    scorer: ScoringStrategy | None = None,
    limiters: dict[Platform, RateLimiter] | None = None,
) -> ImportServices:
    """Open the database, provision the schema and assemble the orchestrator.

    Args:
        settings: Settings; loaded from the environment when omitted.
        adapters: Platform adapters; live clients when omitted.
        scorer: Scoring strategy; the seeded heuristic when omitted.
        limiters: Per-platform limiters; built from settings when omitted.

    Returns:
        Ready-to-use `ImportServices`; close it when done.
    """

    settings = settings or get_settings()
    limiters = limiters if limiters is not None else build_rate_limiters(settings)
    connection = get_connection(settings.duckdb_path)
    init_schema(connection)
    persistence = PersistenceCoordinator(
        db_path=settings.duckdb_path,
        unit_of_work_factory=partial(
            DuckDbUnitOfWork, connection_factory=lambda _path: connection.cursor()
        ),
    )
    orchestrator = ImportOrchestrator(
        settings=settings,
        adapters=adapters if adapters is not None else build_adapters(settings, limiters),
        scorer=scorer or HeuristicSuspicionScorer(seed=settings.scorer_seed),
        persistence=persistence,
        limiters=limiters,
    )
    logger.debug("Import services ready at %s", settings.duckdb_path)
    return ImportServices(
        settings=settings,
        connection=connection,
        limiters=limiters,
        persistence=persistence,
        orchestrator=orchestrator,
    )
