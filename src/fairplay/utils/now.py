from datetime import UTC, date, datetime


class Now:
    @staticmethod
    def as_datetime() -> datetime:
        """Return the current UTC time as a datetime object."""

        return datetime.now(UTC)

    @staticmethod
    def as_milliseconds() -> int:
        """Return the current UTC time as an integer timestamp in milliseconds."""

        return int(datetime.now(UTC).timestamp() * 1000)

    @staticmethod
    def from_milliseconds(value: int) -> datetime:
        """Convert an epoch-milliseconds value to an aware UTC datetime."""

        return datetime.fromtimestamp(value / 1000, tz=UTC)

    @staticmethod
    def date_from_milliseconds(value: int) -> date:
        """Return the UTC calendar date for an epoch-milliseconds value."""

        return Now.from_milliseconds(value).date()
