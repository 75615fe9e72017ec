"""PGN header helpers backed by python-chess."""

from __future__ import annotations

from io import StringIO

import chess.pgn


def read_pgn_headers(pgn: str | None) -> dict[str, str]:
    """Return the first game's PGN headers as a plain dict.

    Args:
        pgn: PGN text, possibly empty.

    Returns:
        Header tags keyed by name; empty when the text has no headers.
    """

    if not pgn:
        return {}
    headers = chess.pgn.read_headers(StringIO(pgn))
    if headers is None:
        return {}
    return dict(headers)


def _clean_header_value(value: str | None) -> str | None:
    cleaned = (value or "").strip()
    if not cleaned or cleaned == "?":
        return None
    return cleaned


def extract_opening(pgn: str | None) -> str | None:
    """Return the ``Opening`` tag, falling back to ``ECO``."""

    headers = read_pgn_headers(pgn)
    return _clean_header_value(headers.get("Opening")) or _clean_header_value(
        headers.get("ECO")
    )
