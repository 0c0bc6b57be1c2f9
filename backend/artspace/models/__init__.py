"""
Database models for the Artspace booking core.

- Resource catalog: resources with pricing rules, weekly operating windows
  and blackout dates
- Booking ledger: bookings and their lifecycle
"""

from .booking import ACTIVE_STATUSES, ALLOWED_TRANSITIONS, Booking, BookingStatus
from .resource import (
    Resource,
    ResourceBlackout,
    ResourceOperatingWindow,
    ResourcePricingRule,
)
from .types import UTCDateTime

__all__ = [
    "ACTIVE_STATUSES",
    "ALLOWED_TRANSITIONS",
    "Booking",
    "BookingStatus",
    "Resource",
    "ResourceBlackout",
    "ResourceOperatingWindow",
    "ResourcePricingRule",
    "UTCDateTime",
]
