# backend/artspace/models/resource.py
"""
Resource catalog models.

A Resource is anything an organization lets its members book: a studio, a
kiln, a gallery space or the seats of a workshop. The booking core only
reads these rows; administrators maintain them.

Pricing, weekly operating hours and blackout dates live in child tables so
they can be edited independently of the resource row.
"""

from datetime import date
from decimal import Decimal
import logging
from typing import Dict, List

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.constants import DEFAULT_CURRENCY, DEFAULT_SLOT_MINUTES
from ..core.enums import ResourceType
from ..core.timezone_utils import utc_now
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


class Resource(Base):
    """A bookable entity scoped to one organization."""

    __tablename__ = "resources"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(String(64), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False, default=ResourceType.SPACE.value)
    capacity = Column(Integer, nullable=False, default=1)

    # Pricing
    default_rate = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)
    free_for_roles = Column(JSON, nullable=False, default=list)

    # Scheduling
    timezone = Column(String(64), nullable=False, default="UTC")
    slot_minutes = Column(Integer, nullable=False, default=DEFAULT_SLOT_MINUTES)
    buffer_before_minutes = Column(Integer, nullable=False, default=0)
    buffer_after_minutes = Column(Integer, nullable=False, default=0)
    max_slots_per_day = Column(Integer, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_bookable = Column(Boolean, nullable=False, default=True)

    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=utc_now)

    pricing_rules = relationship(
        "ResourcePricingRule",
        back_populates="resource",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    operating_windows = relationship(
        "ResourceOperatingWindow",
        back_populates="resource",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ResourceOperatingWindow.open_time",
    )
    blackouts = relationship(
        "ResourceBlackout",
        back_populates="resource",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_resources_capacity_positive"),
        CheckConstraint("default_rate >= 0", name="ck_resources_default_rate_non_negative"),
        CheckConstraint("slot_minutes > 0", name="ck_resources_slot_minutes_positive"),
        CheckConstraint("buffer_before_minutes >= 0", name="ck_resources_buffer_before"),
        CheckConstraint("buffer_after_minutes >= 0", name="ck_resources_buffer_after"),
        CheckConstraint(
            "type IN ('workshop', 'equipment', 'space', 'event')",
            name="ck_resources_type",
        ),
    )

    def __repr__(self) -> str:
        return f"<Resource {self.id}: {self.title} ({self.type}) capacity={self.capacity}>"

    @property
    def pricing_map(self) -> Dict[str, Decimal]:
        """Role name to unit price."""
        return {rule.role: Decimal(rule.unit_price) for rule in self.pricing_rules}

    def windows_for_weekday(self, weekday: int) -> List["ResourceOperatingWindow"]:
        """Open windows on ``weekday`` (Monday == 0); zero-length windows are skipped."""
        return [
            window
            for window in self.operating_windows
            if window.weekday == weekday and window.close_time > window.open_time
        ]


class ResourcePricingRule(Base):
    """Unit price charged to one role for one resource."""

    __tablename__ = "resource_pricing_rules"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    resource_id = Column(
        String(26), ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role = Column(String(50), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)

    resource = relationship("Resource", back_populates="pricing_rules")

    __table_args__ = (
        UniqueConstraint("resource_id", "role", name="uq_resource_pricing_role"),
        CheckConstraint("unit_price >= 0", name="ck_pricing_unit_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<ResourcePricingRule {self.resource_id}:{self.role}={self.unit_price}>"


class ResourceOperatingWindow(Base):
    """
    Weekly opening hours in the resource's local timezone.

    A weekday can have several windows (e.g. a lunch break). A weekday with
    no window, or with ``open_time == close_time``, is closed.
    """

    __tablename__ = "resource_operating_windows"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    resource_id = Column(
        String(26), ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    weekday = Column(Integer, nullable=False)
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)

    resource = relationship("Resource", back_populates="operating_windows")

    __table_args__ = (
        CheckConstraint("weekday >= 0 AND weekday <= 6", name="ck_operating_window_weekday"),
        CheckConstraint("close_time >= open_time", name="ck_operating_window_order"),
    )


class ResourceBlackout(Base):
    """Inclusive range of local dates on which the resource cannot be booked."""

    __tablename__ = "resource_blackouts"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    resource_id = Column(
        String(26), ForeignKey("resources.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(String(255), nullable=True)

    resource = relationship("Resource", back_populates="blackouts")

    __table_args__ = (CheckConstraint("end_date >= start_date", name="ck_blackout_range"),)

    def covers(self, day: date) -> bool:
        return bool(self.start_date <= day <= self.end_date)
