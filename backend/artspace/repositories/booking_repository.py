# backend/artspace/repositories/booking_repository.py
"""
Booking Repository for the Artspace booking ledger.

Implements all data access operations for booking management,
following the same patterns as the resource repository. Overlap queries
use half-open intervals: ``[a_start, a_end)`` and ``[b_start, b_end)``
intersect when ``a_start < b_end and a_end > b_start``.
"""

from datetime import datetime
import logging
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import ACTIVE_STATUSES, Booking, BookingStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """
    Repository for booking data access.

    Every read that serves a request is scoped by ``organization_id``.
    """

    def __init__(self, db: Session):
        super().__init__(db, Booking)

    def get_for_organization(self, organization_id: str, booking_id: str) -> Optional[Booking]:
        """Get a booking by id within one organization."""
        try:
            return (
                self.db.query(Booking)
                .filter(Booking.id == booking_id, Booking.organization_id == organization_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to get booking: {str(e)}")

    def get_active_bookings_overlapping(
        self,
        resource_id: str,
        window_start: datetime,
        window_end: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Get PENDING/CONFIRMED bookings on a resource that intersect a window.

        Args:
            resource_id: The resource
            window_start: Inclusive start of the window (UTC)
            window_end: Exclusive end of the window (UTC)
            exclude_booking_id: Optional booking to ignore (reschedule)

        Returns:
            Bookings ordered by start time
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.resource_id == resource_id,
                Booking.status.in_(sorted(ACTIVE_STATUSES)),
                # Time overlap check
                Booking.start_at < window_end,
                Booking.end_at > window_start,
            )

            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)

            return query.order_by(Booking.start_at).populate_existing().all()

        except SQLAlchemyError as e:
            self.logger.error(f"Error checking time conflict: {str(e)}")
            raise RepositoryException(f"Failed to check conflict: {str(e)}")

    def list_bookings(
        self,
        organization_id: str,
        *,
        resource_id: Optional[str] = None,
        requester_id: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None,
        starts_from: Optional[datetime] = None,
        starts_before: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Booking]:
        """
        Filtered booking listing for calendar views.

        Returns:
            Bookings ordered by start time
        """
        try:
            query = self.db.query(Booking).filter(Booking.organization_id == organization_id)

            if resource_id:
                query = query.filter(Booking.resource_id == resource_id)
            if requester_id:
                query = query.filter(Booking.requester_id == requester_id)
            if statuses:
                query = query.filter(Booking.status.in_(list(statuses)))
            if starts_from:
                query = query.filter(Booking.start_at >= starts_from)
            if starts_before:
                query = query.filter(Booking.start_at < starts_before)

            return query.order_by(Booking.start_at, Booking.id).offset(skip).limit(limit).all()

        except SQLAlchemyError as e:
            self.logger.error(f"Error listing bookings: {str(e)}")
            raise RepositoryException(f"Failed to list bookings: {str(e)}")

    def get_stale_pending(
        self, created_before: datetime, organization_id: Optional[str] = None
    ) -> List[Booking]:
        """PENDING bookings created before a cutoff, oldest first."""
        try:
            query = self.db.query(Booking).filter(
                Booking.status == BookingStatus.PENDING.value,
                Booking.created_at < created_before,
            )
            if organization_id:
                query = query.filter(Booking.organization_id == organization_id)
            return query.order_by(Booking.created_at).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading stale pending bookings: {str(e)}")
            raise RepositoryException(f"Failed to load pending bookings: {str(e)}")
