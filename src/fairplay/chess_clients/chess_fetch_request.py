"""Request model for platform fetches."""

from pydantic import BaseModel, Field


class PlatformFetchRequest(BaseModel):
    """Request model for one adapter fetch.

    Attributes:
        username: Target username as supplied by the caller.
        limit: Maximum number of games to yield.
        since_ms: Exclusive lower bound from the sync cursor; None means full fetch.

    Example:
        >>> PlatformFetchRequest(username="hikaru", limit=20, since_ms=None)
    """

    username: str = Field(min_length=1)
    limit: int = Field(ge=1)
    since_ms: int | None = None
