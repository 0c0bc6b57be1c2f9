# backend/artspace/services/pricing_service.py
"""
Pricing Service for the Artspace booking core.

Resolves what a requester pays for a resource:

1. Roles listed in ``free_for_roles`` pay nothing.
2. Roles with a pricing rule pay ``unit_price * participant_count``.
3. Everyone else pays ``default_rate * participant_count``.

A resource with no default rate is a catalog misconfiguration and is
reported as such; it is never treated as free.
"""

from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..core.constants import PRICE_QUANTUM
from ..core.context import TenantContext, normalize_role
from ..core.exceptions import (
    InvalidParticipantCountException,
    PricingConfigurationError,
    ResourceNotFoundException,
)
from ..models.resource import Resource
from ..repositories.factory import RepositoryFactory
from ..repositories.resource_repository import ResourceRepository
from ..schemas.pricing import PriceQuote
from .base import BaseService

logger = logging.getLogger(__name__)

_QUANTUM = Decimal(PRICE_QUANTUM)
ZERO = Decimal("0.00")


def _quantize(amount: Decimal) -> Decimal:
    return amount.quantize(_QUANTUM, rounding=ROUND_HALF_UP)


class PricingService(BaseService):
    """Role-based price resolution. ``compute_price`` is pure and does no I/O."""

    def __init__(self, db: Session, resource_repository: Optional[ResourceRepository] = None):
        super().__init__(db)
        self.resource_repository = (
            resource_repository or RepositoryFactory.create_resource_repository(db)
        )

    def resolve_unit_price(self, resource: Resource, requester_role: str) -> Tuple[Decimal, bool]:
        """
        Unit price for a role and whether the role has free access.

        Role names are compared in their canonical spelling on both sides, so
        catalog rows written with other casing still match.

        Raises:
            PricingConfigurationError: If the resource has no default rate
        """
        role = normalize_role(requester_role)
        if role in {normalize_role(name) for name in resource.free_for_roles or []}:
            return ZERO, True

        rules = {normalize_role(name): price for name, price in resource.pricing_map.items()}
        rule_price = rules.get(role)
        if rule_price is not None:
            return _quantize(Decimal(rule_price)), False

        if resource.default_rate is None:
            raise PricingConfigurationError(str(resource.id))
        return _quantize(Decimal(resource.default_rate)), False

    def compute_price(
        self, resource: Resource, requester_role: str, participant_count: int
    ) -> Decimal:
        """
        Total price for ``participant_count`` places, rounded to cents.

        Raises:
            InvalidParticipantCountException: If participant_count < 1
            PricingConfigurationError: If the resource has no default rate
        """
        if participant_count < 1:
            raise InvalidParticipantCountException(participant_count)
        unit_price, _ = self.resolve_unit_price(resource, requester_role)
        return _quantize(unit_price * participant_count)

    @BaseService.measure_operation("quote")
    def quote(
        self,
        tenant: TenantContext,
        resource_id: str,
        requester_role: str,
        participant_count: int = 1,
    ) -> PriceQuote:
        """
        Price a prospective booking without reserving anything.

        Raises:
            ResourceNotFoundException: If the resource is not bookable in this organization
            InvalidParticipantCountException: If participant_count is outside 1..capacity
        """
        resource = self.resource_repository.get_bookable_resource(
            tenant.organization_id, resource_id
        )
        if resource is None:
            raise ResourceNotFoundException(resource_id)
        if participant_count < 1 or participant_count > resource.capacity:
            raise InvalidParticipantCountException(participant_count, resource.capacity)

        amount = self.compute_price(resource, requester_role, participant_count)
        unit_price, free_access = self.resolve_unit_price(resource, requester_role)
        return PriceQuote(
            resource_id=str(resource.id),
            role=normalize_role(requester_role),
            participant_count=participant_count,
            unit_price=unit_price,
            amount=amount,
            currency=resource.currency,
            free_access=free_access,
        )
