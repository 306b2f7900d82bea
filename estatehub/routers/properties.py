"""
Property listing API endpoints: search, CRUD, lifecycle and the
owner's side of agent representation.
"""

from fastapi import APIRouter, Depends, status, Query, Response
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from estatehub.config import settings
from estatehub.models.property import PropertyStatus, PropertyType
from estatehub.models.user import User, UserRole
from estatehub.services.booking import BookingService
from estatehub.services.property import PropertyService
from estatehub.services.representation import RepresentationService
from estatehub.schemas.agent_request import AgentInviteCreate, AgentRequestListResponse, AgentRequestResponse
from estatehub.schemas.common import page_meta, page_offset
from estatehub.schemas.engagement import BookingResponse
from estatehub.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyStatusUpdate,
    PropertyFeatureUpdate,
    PropertyResponse,
    PropertyDetailResponse,
    PropertyListResponse,
    PropertySearchParams,
    PropertyStatistics,
)
from estatehub.models.agent_request import RequestStatus
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import (
    get_booking_service,
    get_current_active_user,
    get_optional_current_user,
    get_property_service,
    get_representation_service,
    require_roles,
)


router = APIRouter(prefix="/properties", tags=["Properties"])

CRUD_ERRORS = {k: ERROR_RESPONSES[k] for k in (400, 401, 403, 404, 422)}


def _to_response(property_obj) -> PropertyResponse:
    return PropertyResponse.model_validate(property_obj.to_dict(include_people=True))


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="Search properties",
    description="Public search over active listings with filters, sorting and pagination",
    responses={422: ERROR_RESPONSES[422]}
)
async def search_properties(
    q: Optional[str] = Query(None, max_length=255, description="Text matched against title, description and address"),
    city: Optional[str] = Query(None, description="City filter"),
    property_type: Optional[PropertyType] = Query(None, description="Kind of property"),
    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum price"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum price"),
    min_bedrooms: Optional[int] = Query(None, ge=0, description="Minimum number of bedrooms"),
    min_bathrooms: Optional[int] = Query(None, ge=0, description="Minimum number of bathrooms"),
    amenities: Optional[List[str]] = Query(None, description="Required amenities"),
    sort_by: str = Query("created_at", description="price, created_at, bedrooms or area_sqft"),
    sort_order: str = Query("desc", description="asc or desc"),
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Listings per page"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    params = PropertySearchParams(
        q=q,
        city=city,
        property_type=property_type,
        min_price=min_price,
        max_price=max_price,
        min_bedrooms=min_bedrooms,
        min_bathrooms=min_bathrooms,
        amenities=amenities or [],
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )
    properties, total = await property_service.search_properties(params)
    return PropertyListResponse(
        properties=[_to_response(p) for p in properties],
        **page_meta(total, params.page, params.page_size)
    )


@router.get(
    "/featured",
    response_model=List[PropertyResponse],
    summary="Featured properties"
)
async def featured_properties(
    limit: Optional[int] = Query(None, ge=1, le=24),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    return [_to_response(p) for p in await property_service.get_featured(limit)]


@router.get(
    "/statistics",
    response_model=PropertyStatistics,
    summary="Listing statistics",
    description="Landlords get their own statistics; admins may scope to any landlord",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def property_statistics(
    landlord_id: Optional[UUID] = Query(None),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyStatistics:
    return PropertyStatistics(**await property_service.get_statistics(current_user, landlord_id))


@router.get(
    "/mine",
    response_model=PropertyListResponse,
    summary="My properties",
    description="Listings the caller owns (landlord) or represents (agent)",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def my_properties(
    status_filter: Optional[PropertyStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    properties, total = await property_service.list_my_properties(
        current_user, status=status_filter, skip=page_offset(page, page_size), limit=page_size
    )
    return PropertyListResponse(properties=[_to_response(p) for p in properties], **page_meta(total, page, page_size))


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create property",
    description="Create a listing as a draft, or publish it straight away. Requires landlord or admin role.",
    responses=CRUD_ERRORS
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    """
    Create a new property listing.

    Raises:
        InsufficientPermissionsError: If the caller is not a landlord or admin
        ValidationError: If property data is invalid
    """
    property_obj = await property_service.create_property(property_data, current_user)
    return _to_response(property_obj)


@router.get(
    "/{property_id}",
    response_model=PropertyDetailResponse,
    summary="Property details",
    description="Active listings are public; drafts and archived listings are visible to their landlord, agent and admins",
    responses={404: ERROR_RESPONSES[404]}
)
async def get_property(
    property_id: UUID,
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyDetailResponse:
    property_obj, is_saved = await property_service.get_property_details(property_id, current_user)
    return PropertyDetailResponse.model_validate({**property_obj.to_dict(include_people=True), "is_saved": is_saved})


@router.get(
    "/{property_id}/similar",
    response_model=List[PropertyResponse],
    summary="Similar properties",
    responses={404: ERROR_RESPONSES[404]}
)
async def similar_properties(
    property_id: UUID,
    limit: int = Query(4, ge=1, le=12),
    current_user: Optional[User] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    return [_to_response(p) for p in await property_service.get_similar(property_id, current_user, limit)]


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update property",
    responses=CRUD_ERRORS
)
async def update_property(
    property_id: UUID,
    property_data: PropertyUpdate,
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.update_property(property_id, property_data, current_user)
    return _to_response(property_obj)


@router.patch(
    "/{property_id}/status",
    response_model=PropertyResponse,
    summary="Change listing status",
    description="Publish, archive or re-draft a listing",
    responses={**CRUD_ERRORS, 409: ERROR_RESPONSES[409]}
)
async def change_property_status(
    property_id: UUID,
    status_data: PropertyStatusUpdate,
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.change_status(property_id, status_data.status, current_user)
    return _to_response(property_obj)


@router.patch(
    "/{property_id}/feature",
    response_model=PropertyResponse,
    summary="Feature a listing",
    description="Admins only",
    responses=CRUD_ERRORS
)
async def feature_property(
    property_id: UUID,
    feature_data: PropertyFeatureUpdate,
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.set_featured(property_id, feature_data.is_featured, current_user)
    return _to_response(property_obj)


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
    description="Delete a listing that has no recorded payments",
    responses=CRUD_ERRORS
)
async def delete_property(
    property_id: UUID,
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> Response:
    await property_service.delete_property(property_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{property_id}/my-booking",
    response_model=BookingResponse,
    summary="My latest booking on this property",
    responses={k: ERROR_RESPONSES[k] for k in (401, 404)}
)
async def my_booking(
    property_id: UUID,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    booking = await booking_service.get_my_booking(property_id, current_user)
    return BookingResponse.model_validate(booking.to_dict())


# Owner side of agent representation

@router.get(
    "/{property_id}/agent-requests",
    response_model=AgentRequestListResponse,
    summary="Agent requests on a property",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def property_agent_requests(
    property_id: UUID,
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    representation: RepresentationService = Depends(get_representation_service)
) -> AgentRequestListResponse:
    requests, total = await representation.list_incoming_requests(
        current_user, status=status_filter, property_id=property_id,
        skip=page_offset(page, page_size), limit=page_size
    )
    return AgentRequestListResponse(
        requests=[AgentRequestResponse.model_validate(r.to_dict(include_property=False)) for r in requests],
        **page_meta(total, page, page_size)
    )


@router.post(
    "/{property_id}/invite",
    response_model=AgentRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite an agent",
    description="The owner invites an agent to represent the listing; the agent accepts or rejects",
    responses={**CRUD_ERRORS, 409: ERROR_RESPONSES[409]}
)
async def invite_agent(
    property_id: UUID,
    invite_data: AgentInviteCreate,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    representation: RepresentationService = Depends(get_representation_service)
) -> AgentRequestResponse:
    request = await representation.invite_agent(
        current_user, property_id, invite_data.agent_id, invite_data.message, invite_data.commission_offer
    )
    return AgentRequestResponse.model_validate(request.to_dict())


@router.post(
    "/{property_id}/make-exclusive",
    response_model=PropertyResponse,
    summary="Make the assigned agent exclusive",
    responses={**CRUD_ERRORS, 409: ERROR_RESPONSES[409]}
)
async def make_exclusive(
    property_id: UUID,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    representation: RepresentationService = Depends(get_representation_service)
) -> PropertyResponse:
    return _to_response(await representation.make_exclusive(property_id, current_user))


@router.post(
    "/{property_id}/release-agent",
    response_model=PropertyResponse,
    summary="Release the assigned agent",
    responses={**CRUD_ERRORS, 409: ERROR_RESPONSES[409]}
)
async def release_agent(
    property_id: UUID,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    representation: RepresentationService = Depends(get_representation_service)
) -> PropertyResponse:
    return _to_response(await representation.release_agent(property_id, current_user))
