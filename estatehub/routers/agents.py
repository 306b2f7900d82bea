"""
Agent workspace endpoints: property discovery, sent requests, invitations
and performance.
"""

from fastapi import APIRouter, Depends, Query
from decimal import Decimal
from typing import List, Optional

from estatehub.config import settings
from estatehub.models.agent_request import RequestStatus
from estatehub.models.property import PropertyType
from estatehub.models.user import User, UserRole
from estatehub.services.performance import PerformanceService
from estatehub.services.representation import RepresentationService
from estatehub.schemas.agent_request import (
    AgentRequestResponse,
    AgentRequestListResponse,
    AgentPerformanceResponse,
    DiscoveredProperty,
    DiscoveryResponse,
)
from estatehub.schemas.common import page_meta, page_offset
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import (
    get_performance_service,
    get_representation_service,
    require_roles,
)


router = APIRouter(prefix="/agents", tags=["Agents"])

AGENT_ERRORS = {k: ERROR_RESPONSES[k] for k in (401, 403)}


@router.get(
    "/discover",
    response_model=DiscoveryResponse,
    summary="Discover properties to represent",
    description="Active listings without an agent whose owners accept agents, with the caller's latest request status",
    responses=AGENT_ERRORS
)
async def discover_properties(
    property_type: Optional[PropertyType] = Query(None),
    city: Optional[str] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    min_bedrooms: Optional[int] = Query(None, ge=0),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_roles(UserRole.AGENT)),
    representation: RepresentationService = Depends(get_representation_service)
) -> DiscoveryResponse:
    rows, total = await representation.discover_properties(
        current_user,
        property_type=property_type,
        min_price=min_price,
        max_price=max_price,
        min_bedrooms=min_bedrooms,
        city=city,
        skip=page_offset(page, page_size),
        limit=page_size,
    )
    properties = [
        DiscoveredProperty.model_validate({**p.to_dict(include_people=True), "request_status": request_status})
        for p, request_status in rows
    ]
    return DiscoveryResponse(properties=properties, **page_meta(total, page, page_size))


@router.get(
    "/requests",
    response_model=AgentRequestListResponse,
    summary="Requests I sent",
    responses=AGENT_ERRORS
)
async def sent_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_roles(UserRole.AGENT)),
    representation: RepresentationService = Depends(get_representation_service)
) -> AgentRequestListResponse:
    requests, total = await representation.list_sent_requests(
        current_user, status=status_filter, skip=page_offset(page, page_size), limit=page_size
    )
    return AgentRequestListResponse(
        requests=[AgentRequestResponse.model_validate(r.to_dict()) for r in requests],
        **page_meta(total, page, page_size)
    )


@router.get(
    "/invitations",
    response_model=AgentRequestListResponse,
    summary="Invitations I received",
    responses=AGENT_ERRORS
)
async def invitations(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_roles(UserRole.AGENT)),
    representation: RepresentationService = Depends(get_representation_service)
) -> AgentRequestListResponse:
    requests, total = await representation.list_invitations(
        current_user, status=status_filter, skip=page_offset(page, page_size), limit=page_size
    )
    return AgentRequestListResponse(
        requests=[AgentRequestResponse.model_validate(r.to_dict()) for r in requests],
        **page_meta(total, page, page_size)
    )


@router.get(
    "/me/performance",
    response_model=AgentPerformanceResponse,
    summary="My performance",
    description="Recomputed on every call",
    responses=AGENT_ERRORS
)
async def my_performance(
    current_user: User = Depends(require_roles(UserRole.AGENT)),
    performance: PerformanceService = Depends(get_performance_service)
) -> AgentPerformanceResponse:
    return AgentPerformanceResponse.model_validate((await performance.get_for_agent(current_user)).to_dict())


@router.get(
    "/spotlight",
    response_model=List[AgentPerformanceResponse],
    summary="Agent spotlight"
)
async def spotlight(
    limit: int = Query(5, ge=1, le=20),
    performance: PerformanceService = Depends(get_performance_service)
) -> List[AgentPerformanceResponse]:
    return [AgentPerformanceResponse.model_validate(p.to_dict()) for p in await performance.spotlight(limit)]
