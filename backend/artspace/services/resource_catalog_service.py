# backend/artspace/services/resource_catalog_service.py
"""
Resource Catalog Service.

Thin administrative surface used to seed and inspect bookable resources.
The booking core itself only ever reads the catalog.
"""

from decimal import Decimal
import logging
from typing import List, Optional

import pytz
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.context import Requester, TenantContext
from ..core.exceptions import ForbiddenException, ResourceNotFoundException, ValidationException
from ..core.timezone_utils import get_zone
from ..models.resource import (
    Resource,
    ResourceBlackout,
    ResourceOperatingWindow,
    ResourcePricingRule,
)
from ..repositories.factory import RepositoryFactory
from ..repositories.resource_repository import ResourceRepository
from ..schemas.resource import (
    BlackoutOut,
    OperatingWindowOut,
    ResourceCreate,
    ResourceResponse,
)
from .base import BaseService

logger = logging.getLogger(__name__)


class ResourceCatalogService(BaseService):
    def __init__(self, db: Session, resource_repository: Optional[ResourceRepository] = None):
        super().__init__(db)
        self.resource_repository = (
            resource_repository or RepositoryFactory.create_resource_repository(db)
        )

    @BaseService.measure_operation("create_resource")
    def create_resource(
        self, tenant: TenantContext, actor: Requester, data: ResourceCreate
    ) -> Resource:
        """
        Add a resource to the organization's catalog.

        Raises:
            ForbiddenException: Actor is not an administrator
            ValidationException: Unknown timezone
        """
        if not actor.is_admin():
            raise ForbiddenException(
                "Only an administrator can manage resources",
                code="RESOURCE_FORBIDDEN",
                details={"role": actor.role},
            )
        try:
            get_zone(data.timezone)
        except pytz.UnknownTimeZoneError as exc:
            raise ValidationException(
                f"Unknown timezone: {data.timezone}",
                code="INVALID_TIMEZONE",
                details={"timezone": data.timezone},
            ) from exc

        resource = Resource(
            organization_id=tenant.organization_id,
            title=data.title,
            description=data.description,
            type=data.type.value,
            capacity=data.capacity,
            default_rate=Decimal(data.default_rate),
            currency=data.currency or tenant.currency,
            free_for_roles=list(data.free_for_roles),
            timezone=data.timezone,
            slot_minutes=data.slot_minutes or settings.default_slot_minutes,
            buffer_before_minutes=data.buffer_before_minutes,
            buffer_after_minutes=data.buffer_after_minutes,
            max_slots_per_day=data.max_slots_per_day,
        )
        resource.pricing_rules = [
            ResourcePricingRule(role=role, unit_price=Decimal(price))
            for role, price in data.pricing_rules.items()
        ]
        resource.operating_windows = [
            ResourceOperatingWindow(
                weekday=window.weekday,
                open_time=window.open_time,
                close_time=window.close_time,
            )
            for window in data.operating_windows
        ]
        resource.blackouts = [
            ResourceBlackout(
                start_date=blackout.start_date,
                end_date=blackout.end_date,
                reason=blackout.reason,
            )
            for blackout in data.blackouts
        ]

        with self.transaction():
            self.resource_repository.add(resource)

        self.log_operation(
            "create_resource",
            organization_id=tenant.organization_id,
            resource_id=resource.id,
        )
        return resource

    def get_resource(self, tenant: TenantContext, resource_id: str) -> Resource:
        resource = self.resource_repository.get_bookable_resource(
            tenant.organization_id, resource_id
        )
        if resource is None:
            raise ResourceNotFoundException(resource_id)
        return resource

    def list_resources(self, tenant: TenantContext) -> List[Resource]:
        return self.resource_repository.list_for_organization(tenant.organization_id)

    @staticmethod
    def to_response(resource: Resource) -> ResourceResponse:
        return ResourceResponse(
            id=resource.id,
            organization_id=resource.organization_id,
            title=resource.title,
            description=resource.description,
            type=resource.type,
            capacity=resource.capacity,
            default_rate=resource.default_rate,
            currency=resource.currency,
            free_for_roles=list(resource.free_for_roles or []),
            pricing_rules=resource.pricing_map,
            timezone=resource.timezone,
            slot_minutes=resource.slot_minutes,
            buffer_before_minutes=resource.buffer_before_minutes,
            buffer_after_minutes=resource.buffer_after_minutes,
            max_slots_per_day=resource.max_slots_per_day,
            operating_windows=[
                OperatingWindowOut.model_validate(window) for window in resource.operating_windows
            ],
            blackouts=[BlackoutOut.model_validate(blackout) for blackout in resource.blackouts],
        )
