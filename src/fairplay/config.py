from __future__ import annotations

import os
from dataclasses import MISSING, dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_MISSING = object()
_SETTINGS_ALIAS_PREFIXES = ("chesscom_", "lichess_")

load_dotenv()

DEFAULT_USER_AGENT = "FairPlay-Scout/1.0 (Chess Analysis Tool)"
CHESSCOM_MIN_INTERVAL_S = 1.1
LICHESS_REQUESTS_PER_SECOND = 15.0
LICHESS_MAX_BYTES_PER_MINUTE = 5 * 1024 * 1024
MAX_IMPORT_LIMIT = 100


def _env_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip()


def _env_optional(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _default_data_dir() -> Path:
    return Path(_env_str("FAIRPLAY_DATA_DIR", "data"))


def _default_duckdb_path() -> Path:
    explicit = _env_optional("FAIRPLAY_DUCKDB_PATH")
    if explicit:
        return Path(explicit)
    return _default_data_dir() / "fairplay.duckdb"


def _default_scorer_seed() -> int | None:
    value = _env_optional("FAIRPLAY_SCORER_SEED")
    return int(value) if value is not None else None


def _field_value(name: str, field_info: object, kwargs: dict[str, object]) -> object:
    value = kwargs.pop(name, _MISSING)
    if value is not _MISSING:
        return value
    default_factory = getattr(field_info, "default_factory", MISSING)
    if default_factory is not MISSING:
        return default_factory()
    default = getattr(field_info, "default", MISSING)
    if default is not MISSING:
        return default
    raise TypeError(f"Missing required argument: {name}")


def _apply_settings_aliases(settings: Settings, kwargs: dict[str, object]) -> None:
    """Route flat ``chesscom_*``/``lichess_*`` kwargs onto the nested platform settings."""
    for alias in list(kwargs):
        prefix = next((p for p in _SETTINGS_ALIAS_PREFIXES if alias.startswith(p)), None)
        if prefix is None:
            continue
        nested = getattr(settings, prefix.rstrip("_"))
        attr = alias[len(prefix) :]
        if attr in nested.__dataclass_fields__:
            setattr(nested, attr, kwargs.pop(alias))


def _raise_on_unexpected_kwargs(kwargs: dict[str, object]) -> None:
    if kwargs:
        unexpected = next(iter(kwargs))
        raise TypeError(f"Settings.__init__() got an unexpected keyword argument '{unexpected}'")


@dataclass(slots=True)
class ChesscomSettings:
    """Chess.com-specific configuration."""

    token: str | None = field(default_factory=lambda: _env_optional("CHESSCOM_TOKEN"))
    max_retries: int = field(default_factory=lambda: _env_int("CHESSCOM_MAX_RETRIES", 3))
    retry_backoff_ms: int = field(
        default_factory=lambda: _env_int("CHESSCOM_RETRY_BACKOFF_MS", 500)
    )
    min_interval_s: float = field(
        default_factory=lambda: _env_float("CHESSCOM_MIN_INTERVAL_S", CHESSCOM_MIN_INTERVAL_S)
    )
    max_concurrency: int = 1


@dataclass(slots=True)
class LichessSettings:
    """Lichess-specific configuration."""

    token: str | None = field(default_factory=lambda: _env_optional("LICHESS_TOKEN"))
    requests_per_second: float = field(
        default_factory=lambda: _env_float(
            "LICHESS_REQUESTS_PER_SECOND", LICHESS_REQUESTS_PER_SECOND
        )
    )
    max_bytes_per_minute: int = field(
        default_factory=lambda: _env_int(
            "LICHESS_MAX_BYTES_PER_MINUTE", LICHESS_MAX_BYTES_PER_MINUTE
        )
    )
    max_retries: int = field(default_factory=lambda: _env_int("LICHESS_MAX_RETRIES", 3))
    max_concurrency: int = 2

    @property
    def min_interval_s(self) -> float:
        if self.requests_per_second <= 0:
            return 0.0
        return 1.0 / self.requests_per_second


@dataclass(slots=True, init=False)
class Settings:
    """Central configuration for imports, persistence and the HTTP surface."""

    api_token: str = field(
        default_factory=lambda: _env_str("FAIRPLAY_API_TOKEN", "local-dev-token")
    )
    data_dir: Path = field(default_factory=_default_data_dir)
    duckdb_path: Path = field(default_factory=_default_duckdb_path)
    user_agent: str = field(
        default_factory=lambda: _env_str("FAIRPLAY_USER_AGENT", DEFAULT_USER_AGENT)
    )
    http_timeout_s: float = field(
        default_factory=lambda: _env_float("FAIRPLAY_HTTP_TIMEOUT_S", 20.0)
    )
    batch_delay_s: float = field(default_factory=lambda: _env_float("FAIRPLAY_BATCH_DELAY_S", 2.0))
    max_concurrent_jobs: int = field(
        default_factory=lambda: _env_int("FAIRPLAY_MAX_CONCURRENT_JOBS", 3)
    )
    scorer_seed: int | None = field(default_factory=_default_scorer_seed)
    max_import_limit: int = MAX_IMPORT_LIMIT

    chesscom: ChesscomSettings = field(default_factory=ChesscomSettings)
    lichess: LichessSettings = field(default_factory=LichessSettings)

    def __init__(self, **kwargs: object) -> None:
        for name, field_info in self.__dataclass_fields__.items():
            setattr(self, name, _field_value(name, field_info, kwargs))
        _apply_settings_aliases(self, kwargs)
        _raise_on_unexpected_kwargs(kwargs)

    def ensure_dirs(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.duckdb_path.parent.mkdir(parents=True, exist_ok=True)


def get_settings(**overrides: object) -> Settings:
    load_dotenv()
    settings = Settings(**overrides)
    settings.ensure_dirs()
    return settings
