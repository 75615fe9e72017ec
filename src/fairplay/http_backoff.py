"""Retry-After parsing and 429 backoff for plain ``requests`` calls."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime

import requests

from fairplay.errors import RateLimitError
from fairplay.utils import get_logger

logger = get_logger(__name__)

HTTP_STATUS_TOO_MANY_REQUESTS = 429


def _parse_retry_after_seconds(value: str) -> float | None:
    try:
        seconds = float(value)
    except ValueError:
        return None
    return max(seconds, 0.0)


def _parse_retry_after_date(value: str) -> float | None:
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    delta = (dt - datetime.now(UTC)).total_seconds()
    return max(delta, 0.0)


def parse_retry_after(value: str | None) -> float | None:
    """Parse Retry-After header values.

    Args:
        value: Header value, either delta-seconds or an HTTP date.

    Returns:
        Number of seconds to wait, or None.
    """

    if not value:
        return None
    seconds = _parse_retry_after_seconds(value)
    if seconds is not None:
        return seconds
    return _parse_retry_after_date(value)


def auth_headers(token: str | None) -> dict[str, str]:
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


def get_with_backoff(
    url: str,
    *,
    headers: Mapping[str, str],
    timeout: float,
    max_retries: int,
    base_backoff_s: float,
    before_request: Callable[[], object] | None = None,
    http_get: Callable[..., requests.Response] | None = None,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "upstream",
) -> requests.Response:
    """Fetch a URL with exponential backoff on 429 responses.

    Args:
        url: URL to request.
        headers: Request headers.
        timeout: Timeout in seconds.
        max_retries: Retries allowed after the first 429.
        base_backoff_s: Base backoff, doubled per attempt.
        before_request: Hook run before every attempt (the platform limiter).
        http_get: GET implementation; defaults to ``requests.get``.
        sleep: Sleep implementation, injectable for tests.
        label: Platform name for log messages.

    Returns:
        Successful response.

    Raises:
        RateLimitError: When retries are exhausted.
        requests.HTTPError: For other non-2xx statuses.
    """

    get = http_get or requests.get
    max_retries = max(max_retries, 0)
    base_backoff_s = max(base_backoff_s, 0.0)
    attempt = 0
    while True:
        if before_request is not None:
            before_request()
        response = get(url, headers=dict(headers), timeout=timeout)
        if response.status_code != HTTP_STATUS_TOO_MANY_REQUESTS:
            response.raise_for_status()
            return response
        retry_after = parse_retry_after((response.headers or {}).get("Retry-After"))
        if attempt >= max_retries:
            raise RateLimitError(f"{label} rate limit exceeded", response=response)
        wait_seconds = max(base_backoff_s * (2**attempt), retry_after or 0.0)
        logger.warning(
            "%s rate limited (429). Retrying in %.2fs (attempt %s/%s).",
            label,
            wait_seconds,
            attempt + 1,
            max_retries,
        )
        if wait_seconds:
            sleep(wait_seconds)
        attempt += 1
