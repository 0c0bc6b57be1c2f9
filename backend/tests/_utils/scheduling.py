"""Dates, instants and headers shared by the booking tests."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Dict

ORG_ID = "org-riverside"
OTHER_ORG_ID = "org-harbor"


def booking_day(offset_days: int = 7) -> date:
    """A date safely in the future so creation never trips the past-start check."""
    return datetime.now(timezone.utc).date() + timedelta(days=offset_days)


def at(day: date, hhmm: str) -> datetime:
    """Aware UTC instant for ``HH:MM`` on ``day``."""
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return datetime.combine(day, time(hours, minutes), tzinfo=timezone.utc)


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def auth_headers(
    requester_id: str = "visitor-1",
    role: str = "public",
    organization_id: str = ORG_ID,
) -> Dict[str, str]:
    return {
        "X-Organization-Id": organization_id,
        "X-Requester-Id": requester_id,
        "X-Requester-Role": role,
    }
