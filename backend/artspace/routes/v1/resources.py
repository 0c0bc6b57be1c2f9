# backend/artspace/routes/v1/resources.py
"""
Resource catalog routes - API v1

Endpoints:
    GET / - Bookable resources of the organization
    POST / - Add a resource (administrators)
    GET /{resource_id} - Resource details
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Body, Depends, status

from ...api.dependencies import get_requester, get_resource_catalog_service, get_tenant_context
from ...core.context import Requester, TenantContext
from ...core.exceptions import DomainException
from ...schemas.resource import ResourceCreate, ResourceResponse
from ...services.resource_catalog_service import ResourceCatalogService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["resources-v1"])


@router.get("", response_model=List[ResourceResponse])
async def list_resources(
    tenant: TenantContext = Depends(get_tenant_context),
    catalog_service: ResourceCatalogService = Depends(get_resource_catalog_service),
) -> List[ResourceResponse]:
    resources = await asyncio.to_thread(catalog_service.list_resources, tenant)
    return [catalog_service.to_response(resource) for resource in resources]


@router.post("", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(
    payload: ResourceCreate = Body(...),
    tenant: TenantContext = Depends(get_tenant_context),
    requester: Requester = Depends(get_requester),
    catalog_service: ResourceCatalogService = Depends(get_resource_catalog_service),
) -> ResourceResponse:
    try:
        resource = await asyncio.to_thread(
            catalog_service.create_resource, tenant, requester, payload
        )
    except DomainException as e:
        handle_domain_exception(e)
    return catalog_service.to_response(resource)


@router.get("/{resource_id}", response_model=ResourceResponse)
async def get_resource(
    resource_id: str,
    tenant: TenantContext = Depends(get_tenant_context),
    catalog_service: ResourceCatalogService = Depends(get_resource_catalog_service),
) -> ResourceResponse:
    try:
        resource = await asyncio.to_thread(catalog_service.get_resource, tenant, resource_id)
    except DomainException as e:
        handle_domain_exception(e)
    return catalog_service.to_response(resource)
