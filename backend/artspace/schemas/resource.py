# backend/artspace/schemas/resource.py
"""Resource catalog schemas."""

from datetime import date, time
from typing import Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from ..core.constants import MAX_TITLE_LENGTH, MIN_SLOT_MINUTES
from ..core.context import normalize_role
from ..core.enums import ResourceType
from .base import Money, StandardizedModel, StrictModel


class OperatingWindowIn(StrictModel):
    weekday: int = Field(..., ge=0, le=6, description="Monday == 0")
    open_time: time
    close_time: time

    @model_validator(mode="after")
    def _check_order(self) -> "OperatingWindowIn":
        if self.close_time < self.open_time:
            raise ValueError("close_time must not be before open_time")
        return self


class BlackoutIn(StrictModel):
    start_date: date
    end_date: date
    reason: Optional[str] = Field(None, max_length=255)

    @model_validator(mode="after")
    def _check_range(self) -> "BlackoutIn":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ResourceCreate(StrictModel):
    """Administrator payload for adding a resource to the catalog."""

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = None
    type: ResourceType = ResourceType.SPACE
    capacity: int = Field(1, ge=1)
    default_rate: Money = Field(..., description="Unit price for roles without a rule")
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    free_for_roles: List[str] = Field(default_factory=list)
    pricing_rules: Dict[str, Money] = Field(
        default_factory=dict, description="Role name to unit price"
    )
    timezone: str = "UTC"
    slot_minutes: Optional[int] = Field(None, ge=MIN_SLOT_MINUTES, le=24 * 60)
    buffer_before_minutes: int = Field(0, ge=0)
    buffer_after_minutes: int = Field(0, ge=0)
    max_slots_per_day: Optional[int] = Field(None, ge=1)
    operating_windows: List[OperatingWindowIn] = Field(default_factory=list)
    blackouts: List[BlackoutIn] = Field(default_factory=list)

    @field_validator("default_rate")
    @classmethod
    def _non_negative_rate(cls, v: Money) -> Money:
        if v < 0:
            raise ValueError("default_rate must be non-negative")
        return v

    @field_validator("free_for_roles")
    @classmethod
    def _normalize_free_roles(cls, v: List[str]) -> List[str]:
        roles: List[str] = []
        for role in v:
            name = normalize_role(role)
            if not name:
                raise ValueError("free_for_roles entries must not be blank")
            if name not in roles:
                roles.append(name)
        return roles

    @field_validator("pricing_rules")
    @classmethod
    def _normalize_rules(cls, v: Dict[str, Money]) -> Dict[str, Money]:
        rules: Dict[str, Money] = {}
        for role, price in v.items():
            name = normalize_role(role)
            if not name:
                raise ValueError("pricing rule roles must not be blank")
            if name in rules:
                raise ValueError(f"duplicate pricing rule for role {name}")
            if price < 0:
                raise ValueError(f"price for role {name} must be non-negative")
            rules[name] = price
        return rules

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class OperatingWindowOut(StandardizedModel):
    weekday: int
    open_time: time
    close_time: time


class BlackoutOut(StandardizedModel):
    start_date: date
    end_date: date
    reason: Optional[str] = None


class ResourceResponse(StandardizedModel):
    id: str
    organization_id: str
    title: str
    description: Optional[str] = None
    type: str
    capacity: int
    default_rate: Money
    currency: str
    free_for_roles: List[str]
    pricing_rules: Dict[str, Money]
    timezone: str
    slot_minutes: int
    buffer_before_minutes: int
    buffer_after_minutes: int
    max_slots_per_day: Optional[int] = None
    operating_windows: List[OperatingWindowOut]
    blackouts: List[BlackoutOut]
