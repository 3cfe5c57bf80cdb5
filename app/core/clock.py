from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC.

    SQLite hands back naive datetimes for DateTime(timezone=True) columns;
    those are stored as UTC wall time, so naive means UTC here.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def event_time(value: Optional[datetime]) -> datetime:
    """Client-supplied event timestamp, or now."""
    return as_utc(value) if value is not None else utcnow()


def utc_date(value: datetime) -> date:
    return as_utc(value).date()


def start_of_utc_day(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    return as_utc(value).isoformat() if value is not None else None
