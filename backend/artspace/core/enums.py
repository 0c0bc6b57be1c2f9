# backend/artspace/core/enums.py
"""
Core enums for the Artspace booking core.

These enums give the booking ledger and resource catalog stable string
values. Roles are open-ended (organizations may define their own), so
``RoleName`` only lists the ones the platform ships with.
"""

from enum import Enum


class RoleName(str, Enum):
    """
    Standard membership roles supplied by the identity provider.

    Pricing rules and free-access lists may reference any role string;
    these are the defaults every organization starts with.
    """

    PUBLIC = "public"
    MEMBER = "member"
    RESIDENT_ARTIST = "resident_artist"
    STAFF = "staff"
    ORG_ADMIN = "org_admin"
    SUPER_ADMIN = "super_admin"


class ResourceType(str, Enum):
    """Kinds of bookable things in the catalog."""

    WORKSHOP = "workshop"
    EQUIPMENT = "equipment"
    SPACE = "space"
    EVENT = "event"


class PaymentStatus(str, Enum):
    """Payment progress recorded on a booking."""

    NOT_REQUIRED = "not_required"
    AWAITING = "awaiting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
