"""
Showing endpoints for scheduling and hosting viewings.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import Optional
from uuid import UUID

from estatehub.config import settings
from estatehub.models.showing import ShowingStatus
from estatehub.models.user import User, UserRole
from estatehub.services.showing import ShowingService
from estatehub.schemas.common import page_meta, page_offset
from estatehub.schemas.engagement import ShowingCreate, ShowingStatusUpdate, ShowingResponse, ShowingListResponse
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import get_current_active_user, get_showing_service, require_roles


router = APIRouter(prefix="/showings", tags=["Showings"])


@router.post(
    "",
    response_model=ShowingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule a showing",
    responses={k: ERROR_RESPONSES[k] for k in (400, 401, 403, 404, 422)}
)
async def schedule_showing(
    showing_data: ShowingCreate,
    current_user: User = Depends(require_roles(UserRole.STUDENT)),
    showing_service: ShowingService = Depends(get_showing_service)
) -> ShowingResponse:
    showing = await showing_service.schedule_showing(current_user, showing_data)
    return ShowingResponse.model_validate(showing.to_dict())


@router.get(
    "/mine",
    response_model=ShowingListResponse,
    summary="Showings I booked",
    responses={401: ERROR_RESPONSES[401]}
)
async def my_showings(
    status_filter: Optional[ShowingStatus] = Query(None, alias="status"),
    upcoming: bool = Query(False, description="Only open showings in the future"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_active_user),
    showing_service: ShowingService = Depends(get_showing_service)
) -> ShowingListResponse:
    showings, total = await showing_service.list_my_showings(
        current_user, status=status_filter, upcoming_only=upcoming,
        skip=page_offset(page, page_size), limit=page_size
    )
    return ShowingListResponse(
        showings=[ShowingResponse.model_validate(s.to_dict()) for s in showings],
        **page_meta(total, page, page_size)
    )


@router.get(
    "/hosted",
    response_model=ShowingListResponse,
    summary="Showings on my properties",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def hosted_showings(
    status_filter: Optional[ShowingStatus] = Query(None, alias="status"),
    upcoming: bool = Query(False, description="Only open showings in the future"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_active_user),
    showing_service: ShowingService = Depends(get_showing_service)
) -> ShowingListResponse:
    showings, total = await showing_service.list_hosted_showings(
        current_user, status=status_filter, upcoming_only=upcoming,
        skip=page_offset(page, page_size), limit=page_size
    )
    return ShowingListResponse(
        showings=[ShowingResponse.model_validate(s.to_dict()) for s in showings],
        **page_meta(total, page, page_size)
    )


@router.get(
    "/{showing_id}",
    response_model=ShowingResponse,
    summary="Get a showing",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403, 404)}
)
async def get_showing(
    showing_id: UUID,
    current_user: User = Depends(get_current_active_user),
    showing_service: ShowingService = Depends(get_showing_service)
) -> ShowingResponse:
    return ShowingResponse.model_validate((await showing_service.get_showing(showing_id, current_user)).to_dict())


@router.patch(
    "/{showing_id}/status",
    response_model=ShowingResponse,
    summary="Confirm, complete or cancel a showing",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403, 404, 409, 422)}
)
async def update_showing_status(
    showing_id: UUID,
    status_data: ShowingStatusUpdate,
    current_user: User = Depends(get_current_active_user),
    showing_service: ShowingService = Depends(get_showing_service)
) -> ShowingResponse:
    showing = await showing_service.update_status(showing_id, status_data.status, current_user)
    return ShowingResponse.model_validate(showing.to_dict())
