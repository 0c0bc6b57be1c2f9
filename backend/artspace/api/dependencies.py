# backend/artspace/api/dependencies.py
"""
FastAPI dependencies.

Tenant and requester are read from headers set by the identity gateway in
front of the API and turned into immutable values once per request.
Service factories build a fresh service around the request's session.
Payment callbacks carry no requester; they are trusted by signature only.
"""

import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import (
    ORGANIZATION_HEADER,
    ORGANIZATION_TIMEZONE_HEADER,
    PAYMENT_SIGNATURE_HEADER,
    REQUESTER_ID_HEADER,
    REQUESTER_ROLE_HEADER,
)
from ..core.context import Requester, TenantContext, normalize_role
from ..core.enums import RoleName
from ..database import get_db
from ..services.availability_service import AvailabilityService
from ..services.booking_service import BookingService
from ..services.payment_gateway import PaymentGateway, get_payment_gateway
from ..services.pricing_service import PricingService
from ..services.resource_catalog_service import ResourceCatalogService

logger = logging.getLogger(__name__)


def get_tenant_context(
    organization_id: str = Header(..., alias=ORGANIZATION_HEADER, min_length=1),
    organization_timezone: Optional[str] = Header(None, alias=ORGANIZATION_TIMEZONE_HEADER),
) -> TenantContext:
    return TenantContext(
        organization_id=organization_id,
        timezone=organization_timezone or "UTC",
        currency=settings.default_currency,
    )


def get_requester(
    requester_id: str = Header(..., alias=REQUESTER_ID_HEADER, min_length=1),
    requester_role: str = Header(RoleName.PUBLIC.value, alias=REQUESTER_ROLE_HEADER),
) -> Requester:
    return Requester(id=requester_id, role=normalize_role(requester_role))


def compute_payment_signature(secret: str, raw_body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


async def verify_payment_signature(request: Request) -> None:
    """Refuse payment callbacks that are not signed with the processor's shared secret."""
    provided = (request.headers.get(PAYMENT_SIGNATURE_HEADER) or "").strip()
    if provided.lower().startswith("sha256="):
        provided = provided.split("=", 1)[1].strip()
    if not provided:
        logger.warning("Payment callback received without signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    secret = settings.payment_webhook_secret
    if secret is None or not secret.get_secret_value():
        logger.error("Payment webhook secret is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Payment callback authentication not configured",
        )

    raw_body = await request.body()
    expected = compute_payment_signature(secret.get_secret_value(), raw_body)
    if not hmac.compare_digest(provided.lower(), expected):
        logger.warning(
            "Payment callback signature mismatch",
            extra={"path": request.url.path},
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def get_payment_gateway_dep() -> PaymentGateway:
    return get_payment_gateway()


def get_pricing_service(db: Session = Depends(get_db)) -> PricingService:
    return PricingService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway_dep),
) -> BookingService:
    return BookingService(db, payment_gateway=payment_gateway)


def get_resource_catalog_service(db: Session = Depends(get_db)) -> ResourceCatalogService:
    return ResourceCatalogService(db)
