"""Date and time helpers."""

from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def week_start(day: date | None = None) -> date:
    """
    Return the Monday of the week containing ``day``.

    Examples:
        >>> week_start(date(2024, 5, 16))
        datetime.date(2024, 5, 13)
    """
    day = day or utcnow().date()
    return day - timedelta(days=day.weekday())
