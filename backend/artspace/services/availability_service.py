# backend/artspace/services/availability_service.py
"""
Availability Service for the Artspace booking core.

Answers "when can this resource still be booked?" by tiling each day's
operating windows into ``slot_minutes`` slots and subtracting the places
already held by PENDING and CONFIRMED bookings.

Time model:
- Operating windows and blackout dates are wall-clock values in the
  resource's timezone.
- Bookings and returned slots are UTC instants.
- Every active booking blocks its own interval widened by the resource's
  ``buffer_before_minutes`` / ``buffer_after_minutes``.

Reads here are lock-free; a slot shown as open can still be lost to a
concurrent writer, which BookingService re-checks under the resource lock.
"""

from datetime import date, datetime, timedelta
import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.context import TenantContext
from ..core.exceptions import InvalidTimeRangeException, ResourceNotFoundException
from ..core.timezone_utils import (
    ensure_utc,
    get_zone,
    local_date_of,
    local_to_utc,
    to_local,
    utc_now,
)
from ..models.booking import Booking
from ..models.resource import Resource
from ..repositories.booking_repository import BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.resource_repository import ResourceRepository
from ..schemas.availability import AvailabilityResponse, AvailableSlot
from .base import BaseService

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]
Interval = Tuple[datetime, datetime]


def buffers(resource: Resource) -> Tuple[timedelta, timedelta]:
    """(before, after) turnaround around each active booking."""
    return (
        timedelta(minutes=resource.buffer_before_minutes or 0),
        timedelta(minutes=resource.buffer_after_minutes or 0),
    )


def blocked_interval(booking: Booking, resource: Resource) -> Interval:
    """Interval a booking holds on its resource, buffers included."""
    before, after = buffers(resource)
    return booking.start_at - before, booking.end_at + after


def search_window(resource: Resource, start: datetime, end: datetime) -> Interval:
    """
    Widen ``[start, end)`` so a plain overlap query also finds bookings
    whose buffers reach into it.
    """
    before, after = buffers(resource)
    return start - after, end + before


def _overlaps(a: Interval, b: Interval) -> bool:
    return a[0] < b[1] and a[1] > b[0]


def occupied_places(bookings: Iterable[Booking], resource: Resource, slot: Interval) -> int:
    """Sum of participants of bookings whose blocked interval meets ``slot``."""
    return sum(
        booking.participant_count
        for booking in bookings
        if _overlaps(blocked_interval(booking, resource), slot)
    )


def peak_concurrent_load(
    bookings: Sequence[Booking], resource: Resource, interval: Interval
) -> int:
    """
    Largest number of places held at any instant inside ``interval``.

    Load only changes where a blocked interval begins, so it is enough to
    sample the start of ``interval`` and every blocked start inside it.
    """
    blocked = [
        (blocked_interval(booking, resource), booking.participant_count)
        for booking in bookings
    ]
    blocked = [(span, count) for span, count in blocked if _overlaps(span, interval)]
    if not blocked:
        return 0

    points = {interval[0]}
    points.update(span[0] for span, _ in blocked if interval[0] < span[0] < interval[1])
    return max(
        sum(count for span, count in blocked if span[0] <= point < span[1]) for point in points
    )


def is_blacked_out(resource: Resource, day: date) -> bool:
    return any(blackout.covers(day) for blackout in resource.blackouts)


def fits_operating_hours(resource: Resource, start_at: datetime, end_at: datetime) -> bool:
    """
    True when ``[start_at, end_at)`` lies inside one operating window of a
    single local day that is not blacked out.
    """
    tz = get_zone(resource.timezone)
    local_start = to_local(start_at, tz)
    local_end = to_local(end_at, tz)
    if local_start.date() != local_end.date():
        return False
    day = local_start.date()
    if is_blacked_out(resource, day):
        return False
    return any(
        window.open_time <= local_start.time() and local_end.time() <= window.close_time
        for window in resource.windows_for_weekday(day.weekday())
    )


class AvailabilityService(BaseService):
    """Read-only slot computation over the resource catalog and booking ledger."""

    def __init__(
        self,
        db: Session,
        resource_repository: Optional[ResourceRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
    ):
        super().__init__(db)
        self.resource_repository = (
            resource_repository or RepositoryFactory.create_resource_repository(db)
        )
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )

    def _to_local_date(self, value: DateLike, resource: Resource) -> date:
        if isinstance(value, datetime):
            return local_date_of(ensure_utc(value), get_zone(resource.timezone))
        return value

    def candidate_slots(self, resource: Resource, day: date) -> List[Interval]:
        """
        Slot grid for one local day as UTC intervals.

        Windows are localized once and tiled in UTC, so every slot lasts
        exactly ``slot_minutes`` even across a DST change. A trailing piece
        shorter than ``slot_minutes`` is not offered.
        """
        if is_blacked_out(resource, day):
            return []

        tz = get_zone(resource.timezone)
        step = timedelta(minutes=resource.slot_minutes or settings.default_slot_minutes)
        slots: List[Interval] = []
        for window in resource.windows_for_weekday(day.weekday()):
            cursor = local_to_utc(day, window.open_time, tz)
            close = local_to_utc(day, window.close_time, tz)
            while cursor + step <= close:
                slots.append((cursor, cursor + step))
                cursor += step
        return slots

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(
        self,
        tenant: TenantContext,
        resource_id: str,
        range_start: DateLike,
        range_end: DateLike,
        now: Optional[datetime] = None,
    ) -> List[AvailableSlot]:
        """
        Open slots for a resource over an inclusive range of local dates.

        Args:
            tenant: Organization the request runs in
            resource_id: Resource to inspect
            range_start: First day (datetimes are reduced to the resource-local date)
            range_end: Last day, inclusive; ``D..D`` is a single day
            now: Reference instant; slots starting before it are omitted

        Returns:
            Slots in chronological order; an empty list when fully booked

        Raises:
            ResourceNotFoundException: If the resource is not bookable in this organization
            InvalidTimeRangeException: If the range is inverted or too long
        """
        resource = self._load_resource(tenant, resource_id)
        return self._resolve_slots(resource, range_start, range_end, now)

    @BaseService.measure_operation("get_availability")
    def get_availability(
        self,
        tenant: TenantContext,
        resource_id: str,
        range_start: DateLike,
        range_end: DateLike,
        now: Optional[datetime] = None,
    ) -> AvailabilityResponse:
        """Slots plus the resource timezone and granularity they were computed in."""
        resource = self._load_resource(tenant, resource_id)
        return AvailabilityResponse(
            resource_id=resource.id,
            timezone=resource.timezone,
            slot_minutes=resource.slot_minutes,
            slots=self._resolve_slots(resource, range_start, range_end, now),
        )

    def _load_resource(self, tenant: TenantContext, resource_id: str) -> Resource:
        resource = self.resource_repository.get_bookable_resource(
            tenant.organization_id, resource_id
        )
        if resource is None:
            raise ResourceNotFoundException(resource_id)
        return resource

    def _resolve_slots(
        self,
        resource: Resource,
        range_start: DateLike,
        range_end: DateLike,
        now: Optional[datetime],
    ) -> List[AvailableSlot]:
        first_day = self._to_local_date(range_start, resource)
        last_day = self._to_local_date(range_end, resource)
        if first_day > last_day:
            raise InvalidTimeRangeException(
                "range_start must not be after range_end",
                details={"range_start": first_day.isoformat(), "range_end": last_day.isoformat()},
            )
        span_days = (last_day - first_day).days + 1
        if span_days > settings.max_availability_days:
            raise InvalidTimeRangeException(
                f"Availability range cannot exceed {settings.max_availability_days} days",
                details={"days": span_days},
            )

        reference = ensure_utc(now) if now is not None else utc_now()

        days: List[Tuple[date, List[Interval]]] = []
        current = first_day
        while current <= last_day:
            day_slots = [
                slot for slot in self.candidate_slots(resource, current) if slot[0] >= reference
            ]
            if day_slots:
                days.append((current, day_slots))
            current += timedelta(days=1)

        if not days:
            return []

        window_start, window_end = search_window(resource, days[0][1][0][0], days[-1][1][-1][1])
        bookings = self.booking_repository.get_active_bookings_overlapping(
            resource.id, window_start, window_end
        )

        capacity = resource.capacity
        result: List[AvailableSlot] = []
        for _day, day_slots in days:
            listed = 0
            for slot in day_slots:
                if resource.max_slots_per_day and listed >= resource.max_slots_per_day:
                    break
                remaining = capacity - occupied_places(bookings, resource, slot)
                if remaining > 0:
                    result.append(
                        AvailableSlot(start=slot[0], end=slot[1], remaining_capacity=remaining)
                    )
                    listed += 1

        self.logger.debug(
            "Resolved %d slots for resource %s between %s and %s",
            len(result),
            resource.id,
            first_day,
            last_day,
        )
        return result
