"""DuckDB unit-of-work implementation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

import duckdb

from fairplay.db.duckdb_store import get_connection
from fairplay.ports.unit_of_work import UnitOfWork
from fairplay.utils import get_logger

logger = get_logger(__name__)


@dataclass
class DuckDbUnitOfWork(UnitOfWork[duckdb.DuckDBPyConnection]):
    """Run one import step inside a DuckDB transaction.

    ``connection_factory`` opens a file connection by default. The API and
    pipeline wiring pass a factory returning cursors of one shared
    connection, so closing the unit of work only closes that cursor.
    """

    db_path: Path | str
    connection_factory: Callable[[Path | str], duckdb.DuckDBPyConnection] = get_connection
    _conn: duckdb.DuckDBPyConnection | None = None
    _active: bool = False

    def begin(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            self._conn = self.connection_factory(self.db_path)
        if not self._active:
            self._conn.execute("BEGIN TRANSACTION")
            self._active = True
        return self._conn

    def commit(self) -> None:
        if self._conn is None or not self._active:
            return
        self._conn.execute("COMMIT")
        self._active = False

    def rollback(self) -> None:
        if self._conn is None or not self._active:
            return
        self._conn.execute("ROLLBACK")
        self._active = False

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            self.rollback()
        finally:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> duckdb.DuckDBPyConnection:
        return self.begin()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        try:
            if exc_type is None:
                self.commit()
            else:
                logger.debug("Rolling back %s after %s", self.db_path, exc_type.__name__)
                self.rollback()
        finally:
            self.close()
