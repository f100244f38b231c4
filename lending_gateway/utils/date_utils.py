"""Date manipulation utilities"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Timezone-aware current time; the default clock for the services"""
    return datetime.now(timezone.utc)


def add_days(from_date: datetime, days: int) -> datetime:
    """Add calendar days to a timestamp (no business-day adjustment)"""
    return from_date + timedelta(days=days)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes coming back from stores without tz support"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
