"""
UTC helpers.

Every timestamp stored or compared by the settlement engine is aware UTC.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Aware current time in UTC."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a timestamp to aware UTC.

    SQLite hands back naive values for ``DateTime(timezone=True)``
    columns; those are taken to be UTC already.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def start_of_day(moment: datetime) -> datetime:
    """UTC midnight opening the day of ``moment`` (daily limit window)."""
    return ensure_utc(moment).replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(moment: datetime) -> datetime:
    """UTC midnight opening the month of ``moment`` (monthly limit window)."""
    return start_of_day(moment).replace(day=1)
