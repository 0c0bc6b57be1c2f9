# backend/artspace/tasks/beat_schedule.py
"""
Celery Beat schedule configuration for Artspace.

Pending-booking expiry is opt-in: the entry exists only when
``pending_booking_ttl_minutes`` is configured.
"""

from datetime import timedelta
from typing import Any, Dict

from ..core.config import settings

EXPIRE_PENDING_TASK = "artspace.tasks.booking_tasks.expire_stale_pending_bookings"


def get_beat_schedule() -> Dict[str, Dict[str, Any]]:
    schedule: Dict[str, Dict[str, Any]] = {}
    if settings.pending_expiry_enabled:
        ttl = settings.pending_booking_ttl_minutes or 1
        # Four sweeps per TTL
        interval = max(1, ttl // 4)
        schedule["expire-stale-pending-bookings"] = {
            "task": EXPIRE_PENDING_TASK,
            "schedule": timedelta(minutes=interval),
            "options": {"expires": interval * 60},
        }
    return schedule
