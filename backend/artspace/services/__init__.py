"""
Service layer for the Artspace booking core.

Services hold the business rules and own transactions; routes only
translate HTTP to service calls.
"""

from .availability_service import AvailabilityService
from .base import BaseService
from .booking_service import BookingService
from .payment_gateway import NullPaymentGateway, PaymentGateway
from .pricing_service import PricingService
from .resource_catalog_service import ResourceCatalogService

__all__ = [
    "AvailabilityService",
    "BaseService",
    "BookingService",
    "NullPaymentGateway",
    "PaymentGateway",
    "PricingService",
    "ResourceCatalogService",
]
