"""
Inquiry endpoints: message threads and the agent lead board.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import Optional
from uuid import UUID

from estatehub.config import settings
from estatehub.models.inquiry import LeadStatus
from estatehub.models.user import User, UserRole
from estatehub.services.inquiry import InquiryService
from estatehub.schemas.common import page_meta, page_offset
from estatehub.schemas.engagement import (
    InquiryCreate,
    InquiryMessageCreate,
    InquiryStatusUpdate,
    InquiryMessageResponse,
    InquiryResponse,
    InquiryListResponse,
    LeadBoardResponse,
)
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import get_current_active_user, get_inquiry_service, require_roles


router = APIRouter(prefix="/inquiries", tags=["Inquiries"])


def _to_response(inquiry, include_messages: bool = False) -> InquiryResponse:
    return InquiryResponse.model_validate(inquiry.to_dict(include_messages=include_messages))


@router.post(
    "",
    response_model=InquiryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send an inquiry",
    responses={k: ERROR_RESPONSES[k] for k in (400, 401, 403, 404, 422)}
)
async def create_inquiry(
    inquiry_data: InquiryCreate,
    current_user: User = Depends(require_roles(UserRole.STUDENT)),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquiryResponse:
    return _to_response(await inquiry_service.create_inquiry(current_user, inquiry_data))


@router.get(
    "/sent",
    response_model=InquiryListResponse,
    summary="Inquiries I sent",
    responses={401: ERROR_RESPONSES[401]}
)
async def sent_inquiries(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_active_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquiryListResponse:
    inquiries, total = await inquiry_service.list_sent(
        current_user, skip=page_offset(page, page_size), limit=page_size
    )
    return InquiryListResponse(inquiries=[_to_response(i) for i in inquiries], **page_meta(total, page, page_size))


@router.get(
    "/received",
    response_model=InquiryListResponse,
    summary="Inquiries on my properties",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def received_inquiries(
    status_filter: Optional[LeadStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_active_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquiryListResponse:
    inquiries, total = await inquiry_service.list_received(
        current_user, status=status_filter, skip=page_offset(page, page_size), limit=page_size
    )
    return InquiryListResponse(inquiries=[_to_response(i) for i in inquiries], **page_meta(total, page, page_size))


@router.get(
    "/leads",
    response_model=LeadBoardResponse,
    summary="Lead board",
    description="Received inquiries grouped into pipeline columns",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def lead_board(
    current_user: User = Depends(get_current_active_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> LeadBoardResponse:
    board = await inquiry_service.lead_board(current_user)
    return LeadBoardResponse(
        columns={column: [_to_response(i) for i in items] for column, items in board.items()},
        counts={column: len(items) for column, items in board.items()}
    )


@router.get(
    "/{inquiry_id}",
    response_model=InquiryResponse,
    summary="Get an inquiry thread",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403, 404)}
)
async def get_inquiry(
    inquiry_id: UUID,
    current_user: User = Depends(get_current_active_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquiryResponse:
    return _to_response(await inquiry_service.get_inquiry(inquiry_id, current_user), include_messages=True)


@router.post(
    "/{inquiry_id}/messages",
    response_model=InquiryMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply on an inquiry",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403, 404, 422)}
)
async def post_message(
    inquiry_id: UUID,
    message_data: InquiryMessageCreate,
    current_user: User = Depends(get_current_active_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquiryMessageResponse:
    message = await inquiry_service.post_message(inquiry_id, current_user, message_data.body)
    return InquiryMessageResponse.model_validate(message.to_dict())


@router.patch(
    "/{inquiry_id}/status",
    response_model=InquiryResponse,
    summary="Move a lead",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403, 404, 422)}
)
async def update_lead_status(
    inquiry_id: UUID,
    status_data: InquiryStatusUpdate,
    current_user: User = Depends(get_current_active_user),
    inquiry_service: InquiryService = Depends(get_inquiry_service)
) -> InquiryResponse:
    return _to_response(await inquiry_service.update_lead_status(inquiry_id, status_data.status, current_user))
