from __future__ import annotations

from fairplay.models.platform import Platform
from fairplay.utils import Hasher, normalize_string


def build_player_hash(platform: Platform | str, username: str) -> str:
    """Return the deterministic player hash for a (platform, username) pair.

    The hash is ``sha256(lower(platform_label) + "_" + lower(username))`` so the
    same player maps to the same row regardless of username casing.

    Args:
        platform: Platform or any accepted alias.
        username: Username as supplied.

    Returns:
        Hex digest.

    Example:
        >>> build_player_hash("lichess", "DrNykterstein") == build_player_hash(
        ...     "Lichess", "drnykterstein"
        ... )
        True
    """

    label = Platform.parse(platform).label
    return Hasher.hash_string(f"{normalize_string(label)}_{normalize_string(username)}")
