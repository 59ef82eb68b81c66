"""Date helpers for Oura queries.

Oura daily collections take ``YYYY-MM-DD`` dates interpreted in the ring
owner's local day; the server's local date is used for defaults.
"""

from datetime import UTC, date, datetime, timedelta


def get_today_date() -> str:
    """Today's date as YYYY-MM-DD."""
    return date.today().isoformat()


def get_days_ago(days: int) -> str:
    """The date ``days`` days before today as YYYY-MM-DD.

    Examples:
        >>> get_days_ago(0) == get_today_date()
        True
    """
    return (date.today() - timedelta(days=days)).isoformat()


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def duration_seconds(start: datetime, end: datetime) -> float:
    """Seconds between two datetimes, treating naive values as UTC."""
    return (ensure_aware(end) - ensure_aware(start)).total_seconds()
