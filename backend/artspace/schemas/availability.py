# backend/artspace/schemas/availability.py
"""Availability read schemas."""

from datetime import datetime
from typing import List

from .base import StandardizedModel


class AvailableSlot(StandardizedModel):
    """One open slot: a UTC interval and the places still free in it."""

    start: datetime
    end: datetime
    remaining_capacity: int


class AvailabilityResponse(StandardizedModel):
    resource_id: str
    timezone: str
    slot_minutes: int
    slots: List[AvailableSlot]
