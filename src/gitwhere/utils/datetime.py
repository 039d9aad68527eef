"""Datetime handling for dates passed to git.

Naive datetimes are assumed to be UTC (not local time) so a date typed on
the command line means the same instant on every machine.
"""

from datetime import datetime, timezone

__all__ = ["ensure_utc", "format_git_date"]


def ensure_utc(dt: datetime) -> datetime:
    """Return a timezone-aware datetime in UTC.

    Examples:
        >>> ensure_utc(datetime(2024, 12, 14, 10, 30))
        datetime.datetime(2024, 12, 14, 10, 30, tzinfo=datetime.timezone.utc)
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_git_date(dt: datetime) -> str:
    """Format a datetime for git's --after/--before options.

    Git accepts strict ISO 8601, which keeps the offset explicit.

    Examples:
        >>> format_git_date(datetime(2024, 12, 14))
        '2024-12-14T00:00:00+00:00'
    """
    return ensure_utc(dt).isoformat()
