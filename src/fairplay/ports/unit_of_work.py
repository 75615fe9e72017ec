"""Transaction boundary used by the persistence coordinator."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from types import TracebackType
from typing import Any, Protocol, TypeVar

ConnT = TypeVar("ConnT")


class UnitOfWork(Protocol[ConnT]):
    """One atomic step of an import: a game write, a dedup lookup or a cursor move.

    Used as a context manager, the block commits on a clean exit and rolls
    back when it raises. Either way the connection is released.
    """

    def begin(self) -> ConnT:
        """Open the transaction and return the connection to write through."""

    def commit(self) -> None:
        """Commit the open transaction."""

    def rollback(self) -> None:
        """Discard the open transaction."""

    def close(self) -> None:
        """Release the connection, rolling back anything still open."""

    def __enter__(self) -> ConnT: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None: ...


UnitOfWorkFactory = Callable[[Path | str], UnitOfWork[Any]]
"""Builds a unit of work for the store at the given database path."""
