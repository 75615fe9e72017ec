"""FairPlay Scout game import and synchronization pipeline."""

import argparse
import logging

from fairplay.pipeline import run_batch_import, run_import
from fairplay.utils import set_level


def main(argv: list[str] | None = None) -> None:
    """Run a single import for one player."""
    parser = argparse.ArgumentParser(prog="fairplay-import")
    parser.add_argument("platform", help="chess_com or lichess")
    parser.add_argument("username")
    parser.add_argument("--limit", type=int, default=100)
    parser.add_argument("--verbose", action="store_true", help="log at DEBUG level")
    args = parser.parse_args(argv)
    if args.verbose:
        set_level(logging.DEBUG)
    result = run_import(args.platform, args.username, args.limit)
    print(result.model_dump_json(indent=2))


__all__ = [
    "main",
    "run_batch_import",
    "run_import",
]
