"""UTC datetime and calendar-date utilities."""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    This function should be used instead of datetime.now() or datetime.utcnow()
    to ensure all timestamps are timezone-aware and stored in UTC.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def parse_iso_date(value: str | date) -> date:
    """
    Parse a YYYY-MM-DD string into a calendar date.

    Datetimes and strings carrying a time component are truncated to their
    day, so callers never compare instants where calendar days are meant.

    Raises:
        ValueError: If the value is not an ISO calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def add_days(value: str | date, days: int) -> str:
    """Shift an ISO date by a number of days and return it as an ISO string."""
    return (parse_iso_date(value) + timedelta(days=days)).isoformat()


def iter_nights(check_in: str | date, check_out: str | date) -> Iterator[str]:
    """
    Yield the ISO date of every night in the half-open range [check_in, check_out).

    Example:
        >>> list(iter_nights("2025-07-01", "2025-07-03"))
        ['2025-07-01', '2025-07-02']
    """
    current = parse_iso_date(check_in)
    end = parse_iso_date(check_out)
    while current < end:
        yield current.isoformat()
        current += timedelta(days=1)


def count_nights(check_in: str | date, check_out: str | date) -> int:
    """Number of nights between two ISO dates (negative if reversed)."""
    return (parse_iso_date(check_out) - parse_iso_date(check_in)).days
