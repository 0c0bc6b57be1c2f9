# backend/artspace/schemas/booking.py
"""
Booking schemas for the Artspace booking core.

Request models only check shapes and types. Time-range and participant
rules are enforced by BookingService so they surface as the booking
error kinds (InvalidTimeRange, InvalidParticipantCount) rather than as
generic request validation failures.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.constants import (
    DEFAULT_QUERY_LIMIT,
    MAX_QUERY_LIMIT,
    MAX_REASON_LENGTH,
    MAX_TITLE_LENGTH,
)
from ..models.booking import BookingStatus
from .base import Money, StandardizedModel, StrictModel


class BookingCreate(StrictModel):
    """
    Request to reserve a resource for an interval.

    ``start_at``/``end_at`` should carry a UTC offset; naive values are
    read as UTC.
    """

    resource_id: str = Field(..., description="Resource to book")
    start_at: datetime
    end_at: datetime
    participant_count: int = Field(1, description="Places to reserve")
    title: Optional[str] = Field(None, max_length=MAX_TITLE_LENGTH)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("title", "notes")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        """Clean up free text."""
        return v.strip() if v else v


class BookingCreateResponse(StandardizedModel):
    booking_id: str
    status: BookingStatus
    price: Money
    currency: str


class PaymentResult(StrictModel):
    """Outcome reported by the payment processor for a pending booking."""

    success: bool
    payment_reference: Optional[str] = Field(None, max_length=255)
    failure_reason: Optional[str] = Field(None, max_length=255)


class BookingCancel(StrictModel):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class BookingReschedule(StrictModel):
    start_at: datetime
    end_at: datetime


class BookingStatusResponse(StandardizedModel):
    booking_id: str
    status: BookingStatus


class BookingResponse(StandardizedModel):
    id: str
    organization_id: str
    resource_id: str
    start_at: datetime
    end_at: datetime
    status: BookingStatus
    participant_count: int
    price: Money
    currency: str
    requester_id: str
    requester_role: str
    title: Optional[str] = None
    notes: Optional[str] = None
    payment_status: str
    payment_reference: Optional[str] = None
    payment_failure_reason: Optional[str] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by_id: Optional[str] = None
    cancellation_reason: Optional[str] = None


class BookingFilters(StrictModel):
    """Calendar listing filters; dates are tenant-local days, ``end_date`` inclusive."""

    resource_id: Optional[str] = None
    requester_id: Optional[str] = None
    statuses: List[BookingStatus] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    skip: int = Field(0, ge=0)
    limit: int = Field(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT)


class BookingListResponse(StandardizedModel):
    bookings: List[BookingResponse]
    skip: int
    limit: int
