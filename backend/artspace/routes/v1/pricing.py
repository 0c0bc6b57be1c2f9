# backend/artspace/routes/v1/pricing.py
"""
Pricing routes - API v1

Endpoints:
    GET /quote - Price a prospective booking for the calling requester's role
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_pricing_service, get_requester, get_tenant_context
from ...core.context import Requester, TenantContext
from ...core.exceptions import DomainException
from ...schemas.pricing import PriceQuote
from ...services.pricing_service import PricingService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pricing-v1"])


@router.get("/quote", response_model=PriceQuote)
async def get_price_quote(
    resource_id: str = Query(..., min_length=1),
    participant_count: int = Query(1),
    tenant: TenantContext = Depends(get_tenant_context),
    requester: Requester = Depends(get_requester),
    pricing_service: PricingService = Depends(get_pricing_service),
) -> PriceQuote:
    try:
        return await asyncio.to_thread(
            pricing_service.quote, tenant, resource_id, requester.role, participant_count
        )
    except DomainException as e:
        handle_domain_exception(e)
