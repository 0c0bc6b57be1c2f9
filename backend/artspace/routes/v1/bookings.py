# backend/artspace/routes/v1/bookings.py
"""
Booking routes - API v1

Versioned booking endpoints under /api/v1/bookings.
All business logic delegated to BookingService.

Endpoints:
    GET / - List bookings with filters and pagination
    POST / - Create a booking
    GET /{booking_id} - Booking details
    POST /{booking_id}/confirm-payment - Apply a signed payment outcome
    POST /{booking_id}/cancel - Cancel a booking
    POST /{booking_id}/complete - Mark booking as completed (admin)
    POST /{booking_id}/no-show - Mark booking as no-show (admin)
    POST /{booking_id}/reschedule - Move a booking to a new interval
"""

import asyncio
from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ...api.dependencies import (
    get_booking_service,
    get_requester,
    get_tenant_context,
    verify_payment_signature,
)
from ...core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from ...core.context import Requester, TenantContext
from ...core.exceptions import BookingNotFoundException, DomainException
from ...models.booking import Booking, BookingStatus
from ...schemas.booking import (
    BookingCancel,
    BookingCreate,
    BookingCreateResponse,
    BookingFilters,
    BookingListResponse,
    BookingReschedule,
    BookingResponse,
    BookingStatusResponse,
    PaymentResult,
)
from ...services.booking_service import BookingService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def _status_response(booking: Booking) -> BookingStatusResponse:
    return BookingStatusResponse(booking_id=booking.id, status=booking.status)


# ============================================================================
# Collection routes
# ============================================================================


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    resource_id: Optional[str] = Query(None),
    requester_id: Optional[str] = Query(None),
    statuses: Optional[List[BookingStatus]] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    tenant: TenantContext = Depends(get_tenant_context),
    requester: Requester = Depends(get_requester),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingListResponse:
    """
    Calendar listing.

    Non-admin requesters only ever see their own bookings.
    """
    if not requester.is_admin():
        requester_id = requester.id

    filters = BookingFilters(
        resource_id=resource_id,
        requester_id=requester_id,
        statuses=statuses or [],
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )
    try:
        bookings = await asyncio.to_thread(booking_service.list_bookings, tenant, filters)
    except DomainException as e:
        handle_domain_exception(e)

    return BookingListResponse(
        bookings=[BookingResponse.model_validate(booking) for booking in bookings],
        skip=skip,
        limit=limit,
    )


@router.post("", response_model=BookingCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate = Body(...),
    tenant: TenantContext = Depends(get_tenant_context),
    requester: Requester = Depends(get_requester),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingCreateResponse:
    """
    Reserve a resource.

    Free bookings come back CONFIRMED; priced bookings come back PENDING
    and are confirmed through /confirm-payment.
    """
    try:
        booking = await asyncio.to_thread(
            booking_service.create_booking, tenant, requester, booking_data
        )
    except DomainException as e:
        handle_domain_exception(e)

    return BookingCreateResponse(
        booking_id=booking.id,
        status=booking.status,
        price=booking.price,
        currency=booking.currency,
    )


# ============================================================================
# Item routes
# ============================================================================


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    tenant: TenantContext = Depends(get_tenant_context),
    requester: Requester = Depends(get_requester),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(booking_service.get_booking, tenant, booking_id)
    except DomainException as e:
        handle_domain_exception(e)

    if booking.requester_id != requester.id and not requester.is_admin():
        # Other members' bookings are indistinguishable from missing ones
        handle_domain_exception(BookingNotFoundException(booking_id))
    return BookingResponse.model_validate(booking)


@router.post(
    "/{booking_id}/confirm-payment",
    response_model=BookingStatusResponse,
    dependencies=[Depends(verify_payment_signature)],
)
async def confirm_payment(
    booking_id: str,
    result: PaymentResult = Body(...),
    tenant: TenantContext = Depends(get_tenant_context),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingStatusResponse:
    """Payment processor callback, signed with X-Payment-Signature; safe to repeat."""
    try:
        booking = await asyncio.to_thread(
            booking_service.confirm_payment, tenant, booking_id, result
        )
    except DomainException as e:
        handle_domain_exception(e)
    return _status_response(booking)


@router.post("/{booking_id}/cancel", response_model=BookingStatusResponse)
async def cancel_booking(
    booking_id: str,
    cancel_data: Optional[BookingCancel] = Body(None),
    tenant: TenantContext = Depends(get_tenant_context),
    requester: Requester = Depends(get_requester),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingStatusResponse:
    reason = cancel_data.reason if cancel_data else None
    try:
        booking = await asyncio.to_thread(
            booking_service.cancel_booking, tenant, booking_id, requester, reason
        )
    except DomainException as e:
        handle_domain_exception(e)
    return _status_response(booking)


@router.post("/{booking_id}/complete", response_model=BookingStatusResponse)
async def complete_booking(
    booking_id: str,
    tenant: TenantContext = Depends(get_tenant_context),
    requester: Requester = Depends(get_requester),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingStatusResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.complete_booking, tenant, booking_id, requester
        )
    except DomainException as e:
        handle_domain_exception(e)
    return _status_response(booking)


@router.post("/{booking_id}/no-show", response_model=BookingStatusResponse)
async def mark_no_show(
    booking_id: str,
    tenant: TenantContext = Depends(get_tenant_context),
    requester: Requester = Depends(get_requester),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingStatusResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.mark_no_show, tenant, booking_id, requester
        )
    except DomainException as e:
        handle_domain_exception(e)
    return _status_response(booking)


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
async def reschedule_booking(
    booking_id: str,
    payload: BookingReschedule = Body(...),
    tenant: TenantContext = Depends(get_tenant_context),
    requester: Requester = Depends(get_requester),
    booking_service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = await asyncio.to_thread(
            booking_service.reschedule_booking,
            tenant,
            booking_id,
            requester,
            payload.start_at,
            payload.end_at,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return BookingResponse.model_validate(booking)
