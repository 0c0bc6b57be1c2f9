# backend/artspace/services/booking_service.py
"""
Booking Service for the Artspace booking core.

Owns the booking lifecycle:

    PENDING -> CONFIRMED -> COMPLETED | CANCELLED | NO_SHOW
    PENDING -> CANCELLED

Every write that can change how much of a resource is held (create,
reschedule) re-checks capacity inside ``resource_lock`` and a single
database transaction, and the transaction commits before the lock is
released. Status changes take the same lock so a cancel can never race a
payment confirmation on the same resource.
"""

from contextlib import contextmanager
from datetime import datetime, time, timedelta
from decimal import Decimal
import logging
from typing import Iterator, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.booking_lock import resource_lock
from ..core.config import settings
from ..core.constants import CANCEL_REASON_PAYMENT_TIMEOUT
from ..core.context import SYSTEM_REQUESTER, Requester, TenantContext
from ..core.enums import PaymentStatus
from ..core.exceptions import (
    BookingNotFoundException,
    ForbiddenException,
    InvalidParticipantCountException,
    InvalidStateTransitionException,
    InvalidTimeRangeException,
    PaymentFailedException,
    PaymentReferenceMismatchException,
    ResourceNotFoundException,
    SlotUnavailableException,
)
from ..core.timezone_utils import ensure_utc, get_zone, local_to_utc, utc_now
from ..models.booking import Booking, BookingStatus
from ..models.resource import Resource
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.resource_repository import ResourceRepository
from ..schemas.booking import BookingCreate, BookingFilters, PaymentResult
from .availability_service import fits_operating_hours, peak_concurrent_load, search_window
from .base import BaseService
from .payment_gateway import PaymentGateway, get_payment_gateway
from .pricing_service import PricingService

logger = logging.getLogger(__name__)


class BookingService(BaseService):
    """
    Service layer for booking operations.

    Tenant and requester are passed into every call; the service keeps no
    per-request state of its own.
    """

    def __init__(
        self,
        db: Session,
        pricing_service: Optional[PricingService] = None,
        payment_gateway: Optional[PaymentGateway] = None,
        booking_repository: Optional[BookingRepository] = None,
        resource_repository: Optional[ResourceRepository] = None,
    ):
        super().__init__(db)
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )
        self.resource_repository = (
            resource_repository or RepositoryFactory.create_resource_repository(db)
        )
        self.pricing_service = pricing_service or PricingService(
            db, resource_repository=self.resource_repository
        )
        self.payment_gateway = payment_gateway or get_payment_gateway()

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _normalize_range(
        self, start_at: datetime, end_at: datetime, now: datetime
    ) -> Tuple[datetime, datetime]:
        start = ensure_utc(start_at)
        end = ensure_utc(end_at)
        if end <= start:
            raise InvalidTimeRangeException(
                "end_at must be after start_at",
                details={"start_at": start.isoformat(), "end_at": end.isoformat()},
            )
        if start < now:
            raise InvalidTimeRangeException(
                "Cannot book a time in the past",
                details={"start_at": start.isoformat()},
            )
        return start, end

    def _ensure_within_operating_hours(
        self, resource: Resource, start: datetime, end: datetime
    ) -> None:
        if not fits_operating_hours(resource, start, end):
            raise InvalidTimeRangeException(
                "Requested time is outside the resource's operating hours",
                details={
                    "resource_id": resource.id,
                    "start_at": start.isoformat(),
                    "end_at": end.isoformat(),
                },
            )

    def _ensure_participants(self, resource: Resource, participant_count: int) -> None:
        if participant_count < 1 or participant_count > resource.capacity:
            raise InvalidParticipantCountException(participant_count, resource.capacity)

    def _ensure_capacity(
        self,
        resource: Resource,
        start: datetime,
        end: datetime,
        participant_count: int,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        """
        Fail unless ``participant_count`` more places fit at every instant of
        ``[start, end)``. Must run under ``resource_lock``.
        """
        window_start, window_end = search_window(resource, start, end)
        overlapping = self.booking_repository.get_active_bookings_overlapping(
            resource.id, window_start, window_end, exclude_booking_id=exclude_booking_id
        )
        peak = peak_concurrent_load(overlapping, resource, (start, end))
        if peak + participant_count > resource.capacity:
            raise SlotUnavailableException(
                details={
                    "resource_id": resource.id,
                    "start_at": start.isoformat(),
                    "end_at": end.isoformat(),
                    "requested": participant_count,
                    "capacity": resource.capacity,
                    "held": peak,
                    "conflicting_booking_ids": [booking.id for booking in overlapping],
                }
            )

    def _ensure_can_manage(self, booking: Booking, actor: Requester) -> None:
        if actor.id != booking.requester_id and not actor.is_admin():
            raise ForbiddenException(
                "Only the requester or an administrator can change this booking",
                code="BOOKING_FORBIDDEN",
                details={"booking_id": booking.id},
            )

    def _ensure_admin(self, booking: Booking, actor: Requester) -> None:
        if not actor.is_admin():
            raise ForbiddenException(
                "Only an administrator can perform this action",
                code="BOOKING_FORBIDDEN",
                details={"booking_id": booking.id, "role": actor.role},
            )

    def _ensure_transition(self, booking: Booking, target: BookingStatus) -> str:
        """Return the current status, or raise if the lifecycle forbids ``target``."""
        current = str(booking.status)
        if not booking.can_transition_to(target):
            raise InvalidStateTransitionException(booking.id, current, target.value)
        return current

    def _reject_transition(self, booking: Booking, target: BookingStatus, reason: str) -> None:
        raise InvalidStateTransitionException(booking.id, str(booking.status), target.value, reason)

    def _load_resource(self, tenant: TenantContext, resource_id: str) -> Resource:
        resource = self.resource_repository.get_bookable_resource(
            tenant.organization_id, resource_id
        )
        if resource is None:
            raise ResourceNotFoundException(resource_id)
        return resource

    def _lock_resource_row(self, tenant: TenantContext, resource_id: str) -> Resource:
        resource = self.resource_repository.lock_for_update(tenant.organization_id, resource_id)
        if resource is None:
            raise ResourceNotFoundException(resource_id)
        return resource

    @contextmanager
    def _booking_for_update(self, tenant: TenantContext, booking_id: str) -> Iterator[Booking]:
        """Hold the resource lock and a transaction around a fresh copy of the booking."""
        booking = self.get_booking(tenant, booking_id)
        with resource_lock(str(booking.resource_id)):
            with self.transaction():
                self.booking_repository.refresh(booking)
                yield booking

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        tenant: TenantContext,
        requester: Requester,
        booking_data: BookingCreate,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Reserve a resource for an interval.

        Free bookings are confirmed immediately. Priced bookings stay
        PENDING until ``confirm_payment``; the payment gateway is asked to
        start a charge once the booking is committed.

        Returns:
            The persisted booking

        Raises:
            InvalidTimeRangeException: Malformed, past, or outside operating hours
            ResourceNotFoundException: Resource not bookable in this organization
            InvalidParticipantCountException: Count outside 1..capacity
            SlotUnavailableException: Not enough capacity left for the interval
            ResourceBusyException: Lock wait timed out
        """
        reference = ensure_utc(now) if now is not None else utc_now()
        start, end = self._normalize_range(booking_data.start_at, booking_data.end_at, reference)

        self.log_operation(
            "create_booking",
            organization_id=tenant.organization_id,
            resource_id=booking_data.resource_id,
            requester_id=requester.id,
            start_at=start.isoformat(),
            end_at=end.isoformat(),
            participant_count=booking_data.participant_count,
        )

        resource = self._load_resource(tenant, booking_data.resource_id)
        self._ensure_within_operating_hours(resource, start, end)
        self._ensure_participants(resource, booking_data.participant_count)

        with resource_lock(str(resource.id)):
            with self.transaction():
                resource = self._lock_resource_row(tenant, str(resource.id))
                self._ensure_capacity(resource, start, end, booking_data.participant_count)

                price = self.pricing_service.compute_price(
                    resource, requester.role, booking_data.participant_count
                )
                booking = self.booking_repository.create(
                    organization_id=tenant.organization_id,
                    resource_id=resource.id,
                    start_at=start,
                    end_at=end,
                    participant_count=booking_data.participant_count,
                    price=price,
                    currency=resource.currency,
                    requester_id=requester.id,
                    requester_role=requester.role,
                    title=booking_data.title,
                    notes=booking_data.notes,
                    status=BookingStatus.PENDING.value,
                    payment_status=PaymentStatus.AWAITING.value,
                )
                if price == 0:
                    booking.confirm()
                    booking.payment_status = PaymentStatus.NOT_REQUIRED.value
                    self.booking_repository.flush()

        prometheus_metrics.record_booking_transition("NEW", str(booking.status))
        self.logger.info(
            f"Booking {booking.id} created for resource {resource.id} "
            f"({booking.status}, {booking.price} {booking.currency})"
        )

        if Decimal(booking.price) > 0:
            self._request_payment(booking)

        return booking

    def _request_payment(self, booking: Booking) -> None:
        """
        Ask the gateway to start collecting a priced booking.

        Gateway failures leave the booking PENDING with no reference so the
        charge can be retried; they are not surfaced to the booker.
        """
        try:
            intent = self.payment_gateway.start_payment(
                str(booking.id), Decimal(booking.price), str(booking.currency)
            )
        except Exception:
            logger.exception(
                "Payment gateway failed to start payment",
                extra={"booking_id": booking.id},
            )
            return

        with self.transaction():
            self.booking_repository.refresh(booking)
            if booking.status == BookingStatus.PENDING.value and not booking.payment_reference:
                booking.payment_reference = intent.reference

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    @BaseService.measure_operation("confirm_payment")
    def confirm_payment(
        self, tenant: TenantContext, booking_id: str, result: PaymentResult
    ) -> Booking:
        """
        Apply a payment outcome to a PENDING booking.

        Idempotent: a booking that is no longer PENDING is returned as-is.
        A failed payment is recorded on the booking before
        PaymentFailedException is raised; the booking stays PENDING.

        Raises:
            PaymentReferenceMismatchException: The result names a charge other
                than the one started by the gateway
            PaymentFailedException: The processor reported a failed charge
        """
        self.log_operation(
            "confirm_payment",
            organization_id=tenant.organization_id,
            booking_id=booking_id,
            success=result.success,
        )

        with self._booking_for_update(tenant, booking_id) as booking:
            if booking.status != BookingStatus.PENDING.value:
                self.logger.info(
                    f"Payment result for booking {booking_id} ignored; status is {booking.status}"
                )
                return booking

            # Once a charge was started only its own reference may settle it
            expected = booking.payment_reference
            if expected and (result.success or result.payment_reference):
                if result.payment_reference != expected:
                    self.logger.warning(
                        f"Payment result for booking {booking_id} names an unknown charge"
                    )
                    raise PaymentReferenceMismatchException(booking_id)

            if result.success:
                booking.confirm(payment_reference=result.payment_reference)
                booking.payment_status = PaymentStatus.SUCCEEDED.value
                booking.payment_failure_reason = None
            else:
                booking.payment_status = PaymentStatus.FAILED.value
                booking.payment_failure_reason = result.failure_reason
                if result.payment_reference:
                    booking.payment_reference = result.payment_reference

        if not result.success:
            self.logger.warning(
                f"Payment failed for booking {booking_id}: {result.failure_reason}"
            )
            raise PaymentFailedException(booking_id, result.failure_reason)

        prometheus_metrics.record_booking_transition(
            BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value
        )
        return booking

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        tenant: TenantContext,
        booking_id: str,
        actor: Requester,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Cancel a PENDING or CONFIRMED booking before it ends.

        Raises:
            BookingNotFoundException: Unknown booking in this organization
            ForbiddenException: Actor is neither the requester nor an admin
            InvalidStateTransitionException: Terminal status or already ended
        """
        reference = ensure_utc(now) if now is not None else utc_now()
        self.log_operation("cancel_booking", booking_id=booking_id, actor_id=actor.id)

        with self._booking_for_update(tenant, booking_id) as booking:
            self._ensure_can_manage(booking, actor)
            previous = self._ensure_transition(booking, BookingStatus.CANCELLED)
            if booking.has_ended(reference):
                self._reject_transition(
                    booking, BookingStatus.CANCELLED, "booking has already ended"
                )
            booking.cancel(actor.id, reason)

        prometheus_metrics.record_booking_transition(previous, BookingStatus.CANCELLED.value)
        return booking

    @BaseService.measure_operation("complete_booking")
    def complete_booking(
        self,
        tenant: TenantContext,
        booking_id: str,
        actor: Requester,
        now: Optional[datetime] = None,
    ) -> Booking:
        """Mark a CONFIRMED booking as completed once its end has passed."""
        reference = ensure_utc(now) if now is not None else utc_now()

        with self._booking_for_update(tenant, booking_id) as booking:
            self._ensure_admin(booking, actor)
            previous = self._ensure_transition(booking, BookingStatus.COMPLETED)
            if not booking.has_ended(reference):
                self._reject_transition(
                    booking, BookingStatus.COMPLETED, "booking has not ended yet"
                )
            booking.complete()

        prometheus_metrics.record_booking_transition(previous, BookingStatus.COMPLETED.value)
        return booking

    @BaseService.measure_operation("mark_no_show")
    def mark_no_show(
        self,
        tenant: TenantContext,
        booking_id: str,
        actor: Requester,
        now: Optional[datetime] = None,
    ) -> Booking:
        """Record that the requester of a CONFIRMED booking did not attend."""
        reference = ensure_utc(now) if now is not None else utc_now()

        with self._booking_for_update(tenant, booking_id) as booking:
            self._ensure_admin(booking, actor)
            previous = self._ensure_transition(booking, BookingStatus.NO_SHOW)
            if not booking.has_started(reference):
                self._reject_transition(
                    booking, BookingStatus.NO_SHOW, "booking has not started yet"
                )
            booking.mark_no_show()

        prometheus_metrics.record_booking_transition(previous, BookingStatus.NO_SHOW.value)
        return booking

    @BaseService.measure_operation("reschedule_booking")
    def reschedule_booking(
        self,
        tenant: TenantContext,
        booking_id: str,
        actor: Requester,
        new_start: datetime,
        new_end: datetime,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Move an active booking to a new interval on the same resource.

        Capacity is re-checked under the resource lock with the booking
        itself excluded. A PENDING booking is re-priced from its role
        snapshot; a CONFIRMED booking keeps the price that was paid.
        """
        reference = ensure_utc(now) if now is not None else utc_now()
        start, end = self._normalize_range(new_start, new_end, reference)
        self.log_operation(
            "reschedule_booking",
            booking_id=booking_id,
            actor_id=actor.id,
            start_at=start.isoformat(),
            end_at=end.isoformat(),
        )

        with self._booking_for_update(tenant, booking_id) as booking:
            self._ensure_can_manage(booking, actor)
            if not booking.is_active:
                raise InvalidStateTransitionException(
                    booking.id, str(booking.status), str(booking.status), "booking is not active"
                )

            resource = self._lock_resource_row(tenant, str(booking.resource_id))
            self._ensure_within_operating_hours(resource, start, end)
            self._ensure_capacity(
                resource, start, end, booking.participant_count, exclude_booking_id=booking.id
            )

            booking.start_at = start
            booking.end_at = end
            if booking.status == BookingStatus.PENDING.value:
                booking.price = self.pricing_service.compute_price(
                    resource, str(booking.requester_role), booking.participant_count
                )
                booking.currency = resource.currency
            self.booking_repository.flush()

        self.logger.info(f"Booking {booking_id} rescheduled to {start.isoformat()}")
        return booking

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_booking(self, tenant: TenantContext, booking_id: str) -> Booking:
        """
        Raises:
            BookingNotFoundException: Unknown booking in this organization
        """
        booking = self.booking_repository.get_for_organization(tenant.organization_id, booking_id)
        if booking is None:
            raise BookingNotFoundException(booking_id)
        return booking

    @BaseService.measure_operation("list_bookings")
    def list_bookings(self, tenant: TenantContext, filters: BookingFilters) -> List[Booking]:
        """Bookings for calendar views, filtered and paginated."""
        if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
            raise InvalidTimeRangeException(
                "start_date must not be after end_date",
                details={
                    "start_date": filters.start_date.isoformat(),
                    "end_date": filters.end_date.isoformat(),
                },
            )

        tz = get_zone(tenant.timezone)
        starts_from = local_to_utc(filters.start_date, time.min, tz) if filters.start_date else None
        starts_before = (
            local_to_utc(filters.end_date + timedelta(days=1), time.min, tz)
            if filters.end_date
            else None
        )
        return self.booking_repository.list_bookings(
            tenant.organization_id,
            resource_id=filters.resource_id,
            requester_id=filters.requester_id,
            statuses=[BookingStatus(status).value for status in filters.statuses],
            starts_from=starts_from,
            starts_before=starts_before,
            skip=filters.skip,
            limit=filters.limit,
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    @BaseService.measure_operation("expire_stale_pending")
    def expire_stale_pending(
        self, tenant: Optional[TenantContext] = None, now: Optional[datetime] = None
    ) -> int:
        """
        Cancel PENDING bookings whose payment never arrived.

        Only runs when ``pending_booking_ttl_minutes`` is configured.

        Returns:
            Number of bookings cancelled
        """
        ttl = settings.pending_booking_ttl_minutes
        if ttl is None:
            return 0

        reference = ensure_utc(now) if now is not None else utc_now()
        cutoff = reference - timedelta(minutes=ttl)
        stale = self.booking_repository.get_stale_pending(
            cutoff, organization_id=tenant.organization_id if tenant else None
        )

        expired = 0
        for candidate in stale:
            with resource_lock(str(candidate.resource_id)):
                with self.transaction():
                    self.booking_repository.refresh(candidate)
                    if candidate.status != BookingStatus.PENDING.value:
                        continue
                    candidate.cancel(SYSTEM_REQUESTER.id, CANCEL_REASON_PAYMENT_TIMEOUT)
            prometheus_metrics.record_booking_transition(
                BookingStatus.PENDING.value, BookingStatus.CANCELLED.value
            )
            expired += 1

        if expired:
            self.logger.info(f"Expired {expired} unpaid pending bookings older than {ttl} minutes")
        return expired
