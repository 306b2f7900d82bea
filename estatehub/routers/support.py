"""
Support endpoints: tickets for every user, the inbox for admins.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import Optional
from uuid import UUID

from estatehub.config import settings
from estatehub.models.support import TicketStatus, TicketPriority
from estatehub.models.user import User
from estatehub.services.support import SupportService
from estatehub.schemas.common import page_meta, page_offset
from estatehub.schemas.support import (
    TicketCreate,
    TicketMessageCreate,
    TicketPriorityUpdate,
    TicketMessageResponse,
    TicketResponse,
    TicketListResponse,
)
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import get_current_active_user, get_current_admin_user, get_support_service


router = APIRouter(prefix="/support", tags=["Support"])

TICKET_ERRORS = {k: ERROR_RESPONSES[k] for k in (401, 403, 404, 409)}


def _to_response(ticket, include_messages: bool = False) -> TicketResponse:
    return TicketResponse.model_validate(ticket.to_dict(include_messages=include_messages))


@router.post(
    "/tickets",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a support ticket",
    responses={k: ERROR_RESPONSES[k] for k in (401, 422)}
)
async def create_ticket(
    ticket_data: TicketCreate,
    current_user: User = Depends(get_current_active_user),
    support_service: SupportService = Depends(get_support_service)
) -> TicketResponse:
    return _to_response(await support_service.create_ticket(current_user, ticket_data))


@router.get("/tickets/mine", response_model=TicketListResponse, summary="My tickets", responses={401: ERROR_RESPONSES[401]})
async def my_tickets(
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_active_user),
    support_service: SupportService = Depends(get_support_service)
) -> TicketListResponse:
    tickets, total = await support_service.list_my_tickets(
        current_user, status=status_filter, skip=page_offset(page, page_size), limit=page_size
    )
    return TicketListResponse(tickets=[_to_response(t) for t in tickets], **page_meta(total, page, page_size))


@router.get(
    "/tickets",
    response_model=TicketListResponse,
    summary="Support inbox",
    description="Every ticket, most recently active first",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def support_inbox(
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    priority: Optional[TicketPriority] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_admin_user),
    support_service: SupportService = Depends(get_support_service)
) -> TicketListResponse:
    tickets, total = await support_service.list_inbox(
        current_user, status=status_filter, priority=priority,
        skip=page_offset(page, page_size), limit=page_size
    )
    return TicketListResponse(tickets=[_to_response(t) for t in tickets], **page_meta(total, page, page_size))


@router.get(
    "/tickets/{ticket_id}",
    response_model=TicketResponse,
    summary="Get a ticket thread",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403, 404)}
)
async def get_ticket(
    ticket_id: UUID,
    current_user: User = Depends(get_current_active_user),
    support_service: SupportService = Depends(get_support_service)
) -> TicketResponse:
    return _to_response(await support_service.get_ticket(ticket_id, current_user), include_messages=True)


@router.post(
    "/tickets/{ticket_id}/messages",
    response_model=TicketMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply on a ticket",
    responses={**TICKET_ERRORS, 422: ERROR_RESPONSES[422]}
)
async def post_message(
    ticket_id: UUID,
    message_data: TicketMessageCreate,
    current_user: User = Depends(get_current_active_user),
    support_service: SupportService = Depends(get_support_service)
) -> TicketMessageResponse:
    message = await support_service.post_message(ticket_id, current_user, message_data.body)
    return TicketMessageResponse.model_validate(message.to_dict())


@router.post("/tickets/{ticket_id}/escalate", response_model=TicketResponse, summary="Escalate a ticket", responses=TICKET_ERRORS)
async def escalate_ticket(
    ticket_id: UUID,
    priority_data: Optional[TicketPriorityUpdate] = None,
    current_user: User = Depends(get_current_admin_user),
    support_service: SupportService = Depends(get_support_service)
) -> TicketResponse:
    priority = priority_data.priority if priority_data else TicketPriority.HIGH
    return _to_response(await support_service.set_priority(ticket_id, current_user, priority))


@router.post("/tickets/{ticket_id}/close", response_model=TicketResponse, summary="Close a ticket", responses=TICKET_ERRORS)
async def close_ticket(
    ticket_id: UUID,
    current_user: User = Depends(get_current_active_user),
    support_service: SupportService = Depends(get_support_service)
) -> TicketResponse:
    return _to_response(await support_service.close_ticket(ticket_id, current_user))
