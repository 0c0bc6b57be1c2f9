# backend/artspace/models/booking.py
"""
Booking model for the Artspace booking ledger.

A booking reserves ``participant_count`` places on a resource for the
half-open UTC interval ``[start_at, end_at)``. Price, currency and the
requester's role are snapshotted at creation so later catalog edits never
change what a member was quoted.

Lifecycle:
    PENDING -> CONFIRMED -> COMPLETED | CANCELLED | NO_SHOW
    PENDING -> CANCELLED
COMPLETED, CANCELLED and NO_SHOW are terminal.
"""

from datetime import datetime
from enum import Enum
import logging
from typing import Any, Dict, FrozenSet, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import PaymentStatus
from ..core.timezone_utils import utc_now
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "PENDING"  # Created, awaiting payment
    CONFIRMED = "CONFIRMED"  # Paid or free access
    COMPLETED = "COMPLETED"  # Time range elapsed
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"  # Requester did not attend


# Statuses that hold capacity on the resource
ACTIVE_STATUSES: FrozenSet[str] = frozenset(
    {BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value}
)

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    BookingStatus.PENDING.value: frozenset(
        {BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value}
    ),
    BookingStatus.CONFIRMED.value: frozenset(
        {
            BookingStatus.COMPLETED.value,
            BookingStatus.CANCELLED.value,
            BookingStatus.NO_SHOW.value,
        }
    ),
    BookingStatus.COMPLETED.value: frozenset(),
    BookingStatus.CANCELLED.value: frozenset(),
    BookingStatus.NO_SHOW.value: frozenset(),
}


def _status_value(status: Any) -> str:
    return status.value if isinstance(status, BookingStatus) else str(status)


class Booking(Base):
    """One reservation of a resource by one requester."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(String(64), nullable=False, index=True)
    resource_id = Column(String(26), ForeignKey("resources.id"), nullable=False, index=True)

    start_at = Column(UTCDateTime, nullable=False)
    end_at = Column(UTCDateTime, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value, index=True)
    participant_count = Column(Integer, nullable=False, default=1)

    # Pricing snapshot
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    requester_role = Column(String(50), nullable=False)
    requester_id = Column(String(64), nullable=False, index=True)

    title = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)

    # Payment
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.AWAITING.value)
    payment_reference = Column(String(255), nullable=True)
    payment_failure_reason = Column(String(255), nullable=True)

    # Timestamps
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utc_now)
    confirmed_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)

    # Cancellation tracking
    cancelled_by_id = Column(String(64), nullable=True)
    cancellation_reason = Column(String(255), nullable=True)

    resource = relationship("Resource")

    __table_args__ = (
        CheckConstraint("end_at > start_at", name="ck_bookings_time_order"),
        CheckConstraint("participant_count >= 1", name="ck_bookings_participants_positive"),
        CheckConstraint("price >= 0", name="ck_bookings_price_non_negative"),
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'COMPLETED', 'CANCELLED', 'NO_SHOW')",
            name="ck_bookings_status",
        ),
        Index("ix_bookings_resource_window", "resource_id", "start_at", "end_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: resource={self.resource_id}, "
            f"{self.start_at}-{self.end_at}, status={self.status}>"
        )

    @property
    def is_active(self) -> bool:
        """Check if booking still holds capacity."""
        return self.status in ACTIVE_STATUSES

    def can_transition_to(self, target: Any) -> bool:
        return _status_value(target) in ALLOWED_TRANSITIONS.get(self.status, frozenset())

    def confirm(self, payment_reference: Optional[str] = None) -> None:
        """Mark booking as confirmed."""
        self.status = BookingStatus.CONFIRMED.value
        self.confirmed_at = utc_now()
        if payment_reference:
            self.payment_reference = payment_reference
        logger.info(f"Booking {self.id} confirmed")

    def cancel(self, cancelled_by_id: str, reason: Optional[str] = None) -> None:
        """Cancel this booking."""
        self.status = BookingStatus.CANCELLED.value
        self.cancelled_at = utc_now()
        self.cancelled_by_id = cancelled_by_id
        self.cancellation_reason = reason
        logger.info(f"Booking {self.id} cancelled by {cancelled_by_id}")

    def complete(self) -> None:
        """Mark booking as completed."""
        self.status = BookingStatus.COMPLETED.value
        self.completed_at = utc_now()
        logger.info(f"Booking {self.id} marked as completed")

    def mark_no_show(self) -> None:
        """Mark booking as no-show."""
        self.status = BookingStatus.NO_SHOW.value
        logger.info(f"Booking {self.id} marked as no-show")

    def has_started(self, now: datetime) -> bool:
        return bool(self.start_at <= now)

    def has_ended(self, now: datetime) -> bool:
        return bool(self.end_at <= now)
