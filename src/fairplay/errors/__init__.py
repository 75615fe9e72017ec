"""Custom error types used in fairplay."""

import requests


class FairplayError(Exception):
    """Base class for import pipeline errors."""


class ValidationError(FairplayError, ValueError):
    """Raised when import arguments are invalid; aborts before any fetch."""


class PlatformFetchError(FairplayError):
    """Raised when a platform page or batch could not be fetched."""


class GameParseError(FairplayError, ValueError):
    """Raised when a single raw platform record cannot be normalized."""


class PersistenceError(FairplayError):
    """Raised when the writes for one game could not be committed."""


class RateLimitError(requests.HTTPError):
    """HTTP rate limit error."""


__all__ = [
    "FairplayError",
    "GameParseError",
    "PersistenceError",
    "PlatformFetchError",
    "RateLimitError",
    "ValidationError",
]
