# backend/artspace/tasks/booking_tasks.py
"""Periodic booking maintenance tasks."""

import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from ..database import SessionLocal
from ..services.booking_service import BookingService
from .beat_schedule import EXPIRE_PENDING_TASK
from .celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name=EXPIRE_PENDING_TASK, ignore_result=True)
def expire_stale_pending_bookings() -> Dict[str, Any]:
    """
    Cancel PENDING bookings whose payment never arrived.

    Returns:
        Dict with the number of expired bookings
    """
    db: Session = SessionLocal()
    try:
        expired = BookingService(db).expire_stale_pending()
        if expired:
            logger.info(f"Expired {expired} stale pending bookings")
        return {"expired": expired}
    finally:
        db.close()
