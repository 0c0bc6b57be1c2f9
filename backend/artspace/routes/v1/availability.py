# backend/artspace/routes/v1/availability.py
"""
Availability routes - API v1

Endpoints:
    GET / - Open slots for a resource over an inclusive date range
"""

import asyncio
from datetime import date
import logging

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_availability_service, get_tenant_context
from ...core.context import TenantContext
from ...core.exceptions import DomainException
from ...schemas.availability import AvailabilityResponse
from ...services.availability_service import AvailabilityService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


@router.get("", response_model=AvailabilityResponse)
async def get_availability(
    resource_id: str = Query(..., min_length=1),
    start_date: date = Query(..., description="First day, resource-local"),
    end_date: date = Query(..., description="Last day, inclusive"),
    tenant: TenantContext = Depends(get_tenant_context),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    try:
        return await asyncio.to_thread(
            availability_service.get_availability,
            tenant,
            resource_id,
            start_date,
            end_date,
        )
    except DomainException as e:
        handle_domain_exception(e)
