"""
Timezone utilities for the Artspace booking core.

Bookings are stored as UTC instants; operating windows and blackouts are
expressed in the resource's local timezone. These helpers convert between
the two using pytz.
"""

from datetime import date, datetime, time, timezone

import pytz


def get_zone(tz_name: str) -> pytz.BaseTzInfo:
    """
    Resolve an IANA timezone name.

    Raises:
        pytz.UnknownTimeZoneError: If the name is not a known zone
    """
    return pytz.timezone(tz_name)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def local_to_utc(day: date, wall_time: time, tz: pytz.BaseTzInfo) -> datetime:
    """Convert a local wall-clock time on ``day`` into an aware UTC datetime."""
    local_dt = tz.localize(datetime.combine(day, wall_time))
    return local_dt.astimezone(pytz.UTC)


def to_local(dt: datetime, tz: pytz.BaseTzInfo) -> datetime:
    """Convert an instant into the given timezone."""
    return ensure_utc(dt).astimezone(tz)


def local_date_of(dt: datetime, tz: pytz.BaseTzInfo) -> date:
    """Calendar date of an instant as seen in ``tz``."""
    return to_local(dt, tz).date()
