"""Role-based price resolution, without a database."""

from decimal import Decimal
from typing import Dict, List, Optional
from unittest.mock import Mock

import pytest

from artspace.core.exceptions import (
    InvalidParticipantCountException,
    PricingConfigurationError,
)
from artspace.models.resource import Resource, ResourcePricingRule
from artspace.services.pricing_service import PricingService


def _resource(
    default_rate: Optional[Decimal] = Decimal("50.00"),
    rules: Optional[Dict[str, Decimal]] = None,
    free_for_roles: Optional[List[str]] = None,
) -> Resource:
    resource = Resource(
        id="01HRESOURCE0000000000000000",
        organization_id="org-1",
        title="Kiln",
        capacity=4,
        default_rate=default_rate,
        currency="USD",
        free_for_roles=free_for_roles if free_for_roles is not None else ["resident_artist"],
    )
    resource.pricing_rules = [
        ResourcePricingRule(role=role, unit_price=price)
        for role, price in (rules or {"member": Decimal("20.00")}).items()
    ]
    return resource


@pytest.fixture
def service() -> PricingService:
    return PricingService(Mock())


class TestComputePrice:
    def test_free_role_pays_nothing(self, service: PricingService) -> None:
        assert service.compute_price(_resource(), "resident_artist", 3) == Decimal("0.00")

    def test_default_rate_multiplies_by_participants(self, service: PricingService) -> None:
        assert service.compute_price(_resource(), "public", 3) == Decimal("150.00")

    def test_role_rule_overrides_default(self, service: PricingService) -> None:
        assert service.compute_price(_resource(), "member", 2) == Decimal("40.00")

    def test_unknown_role_falls_back_to_default(self, service: PricingService) -> None:
        assert service.compute_price(_resource(), "visiting_curator", 1) == Decimal("50.00")

    def test_free_access_beats_a_rule_for_the_same_role(self, service: PricingService) -> None:
        resource = _resource(rules={"member": Decimal("20.00")}, free_for_roles=["member"])
        assert service.compute_price(resource, "member", 5) == Decimal("0.00")

    def test_zero_default_rate_is_a_valid_free_resource(self, service: PricingService) -> None:
        assert service.compute_price(_resource(default_rate=Decimal("0")), "public", 2) == 0

    def test_unit_price_is_rounded_half_up_to_cents(self, service: PricingService) -> None:
        resource = _resource(rules={"member": Decimal("10.005")})
        assert service.compute_price(resource, "member", 3) == Decimal("30.03")

    def test_missing_default_rate_is_a_configuration_error(self, service: PricingService) -> None:
        with pytest.raises(PricingConfigurationError) as exc_info:
            service.compute_price(_resource(default_rate=None), "public", 1)
        assert exc_info.value.code == "PRICING_NOT_CONFIGURED"

    def test_missing_default_rate_does_not_affect_ruled_roles(
        self, service: PricingService
    ) -> None:
        resource = _resource(default_rate=None)
        assert service.compute_price(resource, "member", 1) == Decimal("20.00")
        assert service.compute_price(resource, "resident_artist", 1) == Decimal("0.00")

    @pytest.mark.parametrize("count", [0, -2])
    def test_participant_count_below_one_is_rejected(
        self, service: PricingService, count: int
    ) -> None:
        with pytest.raises(InvalidParticipantCountException):
            service.compute_price(_resource(), "public", count)

    def test_same_inputs_give_same_price(self, service: PricingService) -> None:
        resource = _resource()
        prices = {service.compute_price(resource, "member", 3) for _ in range(5)}
        assert prices == {Decimal("60.00")}


class TestResolveUnitPrice:
    def test_reports_free_access(self, service: PricingService) -> None:
        assert service.resolve_unit_price(_resource(), "resident_artist") == (
            Decimal("0.00"),
            True,
        )

    def test_reports_paid_unit(self, service: PricingService) -> None:
        assert service.resolve_unit_price(_resource(), "member") == (Decimal("20.00"), False)

    def test_catalog_roles_match_regardless_of_spelling(self, service: PricingService) -> None:
        resource = _resource(
            rules={"Member": Decimal("20.00")}, free_for_roles=["Resident_Artist"]
        )

        assert service.resolve_unit_price(resource, "resident_artist") == (
            Decimal("0.00"),
            True,
        )
        assert service.resolve_unit_price(resource, " MEMBER ") == (Decimal("20.00"), False)
