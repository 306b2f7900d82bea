"""
Booking endpoints: clients request and cancel, landlords approve, reject
and complete.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import Optional
from uuid import UUID

from estatehub.config import settings
from estatehub.models.booking import BookingStatus
from estatehub.models.user import User, UserRole
from estatehub.services.booking import BookingService
from estatehub.schemas.common import page_meta, page_offset
from estatehub.schemas.engagement import BookingCreate, BookingResponse, BookingListResponse
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import get_booking_service, get_current_active_user, require_roles


router = APIRouter(prefix="/bookings", tags=["Bookings"])

DECISION_ERRORS = {k: ERROR_RESPONSES[k] for k in (401, 403, 404, 409)}


def _to_response(booking) -> BookingResponse:
    return BookingResponse.model_validate(booking.to_dict())


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a booking",
    description="The amount is the monthly price times the number of months",
    responses={k: ERROR_RESPONSES[k] for k in (400, 401, 403, 404, 409, 422)}
)
async def create_booking(
    booking_data: BookingCreate,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    return _to_response(await booking_service.create_booking(current_user, booking_data))


@router.get(
    "/mine",
    response_model=BookingListResponse,
    summary="Bookings I made",
    responses={401: ERROR_RESPONSES[401]}
)
async def my_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingListResponse:
    bookings, total = await booking_service.list_client_bookings(
        current_user, status=status_filter, skip=page_offset(page, page_size), limit=page_size
    )
    return BookingListResponse(bookings=[_to_response(b) for b in bookings], **page_meta(total, page, page_size))


@router.get(
    "/received",
    response_model=BookingListResponse,
    summary="Bookings on my properties",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def received_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingListResponse:
    bookings, total = await booking_service.list_landlord_bookings(
        current_user, status=status_filter, skip=page_offset(page, page_size), limit=page_size
    )
    return BookingListResponse(bookings=[_to_response(b) for b in bookings], **page_meta(total, page, page_size))


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403, 404)}
)
async def get_booking(
    booking_id: UUID,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    return _to_response(await booking_service.get_booking(booking_id, current_user))


@router.post("/{booking_id}/cancel", response_model=BookingResponse, summary="Cancel a pending booking", responses=DECISION_ERRORS)
async def cancel_booking(
    booking_id: UUID,
    current_user: User = Depends(get_current_active_user),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    return _to_response(await booking_service.cancel_booking(booking_id, current_user))


@router.post(
    "/{booking_id}/approve",
    response_model=BookingResponse,
    summary="Approve a booking",
    description="Takes one unit off the listing",
    responses=DECISION_ERRORS
)
async def approve_booking(
    booking_id: UUID,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    return _to_response(await booking_service.approve_booking(booking_id, current_user))


@router.post("/{booking_id}/reject", response_model=BookingResponse, summary="Reject a booking", responses=DECISION_ERRORS)
async def reject_booking(
    booking_id: UUID,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    return _to_response(await booking_service.reject_booking(booking_id, current_user))


@router.post("/{booking_id}/complete", response_model=BookingResponse, summary="Complete a booking", responses=DECISION_ERRORS)
async def complete_booking(
    booking_id: UUID,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    booking_service: BookingService = Depends(get_booking_service)
) -> BookingResponse:
    return _to_response(await booking_service.complete_booking(booking_id, current_user))
