"""Context helpers for run-level traceability."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

_RUN_ID: ContextVar[str | None] = ContextVar("fairplay_run_id", default=None)
_OP_ID: ContextVar[str | None] = ContextVar("fairplay_op_id", default=None)


def get_run_id() -> str | None:
    """Return the active run id for the current context."""
    return _RUN_ID.get()


def get_op_id() -> str | None:
    """Return the active operation id for the current context."""
    return _OP_ID.get()


@contextmanager
def trace_context(
    *,
    run_id: str | None = None,
    op_id: str | None = None,
) -> Iterator[None]:
    """Temporarily bind run/op identifiers to the current context."""
    run_token = _RUN_ID.set(run_id) if run_id is not None else None
    op_token = _OP_ID.set(op_id) if op_id is not None else None
    try:
        yield
    finally:
        if op_token is not None:
            _OP_ID.reset(op_token)
        if run_token is not None:
            _RUN_ID.reset(run_token)
