"""
Agent representation request endpoints.

Agents open requests on listings, owners open invitations to agents, and the
counterparty of either accepts or rejects while the initiator may withdraw.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import Optional
from uuid import UUID

from estatehub.config import settings
from estatehub.models.agent_request import RequestStatus
from estatehub.models.user import User, UserRole
from estatehub.services.representation import RepresentationService
from estatehub.schemas.agent_request import (
    AgentRequestCreate,
    AgentRequestResponseNote,
    AgentRequestResponse,
    AgentRequestListResponse,
)
from estatehub.schemas.common import page_meta, page_offset
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import (
    get_current_active_user,
    get_representation_service,
    require_roles,
)


router = APIRouter(prefix="/agent-requests", tags=["Agent Requests"])

TRANSITION_ERRORS = {k: ERROR_RESPONSES[k] for k in (401, 403, 404, 409)}


def _to_response(request) -> AgentRequestResponse:
    return AgentRequestResponse.model_validate(request.to_dict())


@router.post(
    "",
    response_model=AgentRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request to represent a property",
    responses={k: ERROR_RESPONSES[k] for k in (400, 401, 403, 404, 409, 422)}
)
async def request_to_represent(
    request_data: AgentRequestCreate,
    current_user: User = Depends(require_roles(UserRole.AGENT)),
    representation: RepresentationService = Depends(get_representation_service)
) -> AgentRequestResponse:
    """
    Ask the owner of an active listing to be its agent.

    Raises:
        PropertyStatusError: If the listing is not active
        BusinessRuleViolationError: If the owner does not accept agents
        ConflictError: If the listing has an agent or a pending request from this agent
    """
    request = await representation.request_to_represent(
        current_user, request_data.property_id, request_data.message, request_data.commission_offer
    )
    return _to_response(request)


@router.get(
    "/incoming",
    response_model=AgentRequestListResponse,
    summary="Requests on my properties",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def incoming_requests(
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    representation: RepresentationService = Depends(get_representation_service)
) -> AgentRequestListResponse:
    requests, total = await representation.list_incoming_requests(
        current_user, status=status_filter, skip=page_offset(page, page_size), limit=page_size
    )
    return AgentRequestListResponse(requests=[_to_response(r) for r in requests], **page_meta(total, page, page_size))


@router.get(
    "/{request_id}",
    response_model=AgentRequestResponse,
    summary="Get an agent request",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403, 404)}
)
async def get_agent_request(
    request_id: UUID,
    current_user: User = Depends(get_current_active_user),
    representation: RepresentationService = Depends(get_representation_service)
) -> AgentRequestResponse:
    return _to_response(await representation.get_request(request_id, current_user))


@router.post(
    "/{request_id}/accept",
    response_model=AgentRequestResponse,
    summary="Accept a request or invitation",
    description="Assigns the agent to the property and closes the other pending requests on it",
    responses=TRANSITION_ERRORS
)
async def accept_request(
    request_id: UUID,
    note_data: Optional[AgentRequestResponseNote] = None,
    current_user: User = Depends(get_current_active_user),
    representation: RepresentationService = Depends(get_representation_service)
) -> AgentRequestResponse:
    note = note_data.note if note_data else None
    return _to_response(await representation.accept(request_id, current_user, note))


@router.post(
    "/{request_id}/reject",
    response_model=AgentRequestResponse,
    summary="Reject a request or invitation",
    responses=TRANSITION_ERRORS
)
async def reject_request(
    request_id: UUID,
    note_data: Optional[AgentRequestResponseNote] = None,
    current_user: User = Depends(get_current_active_user),
    representation: RepresentationService = Depends(get_representation_service)
) -> AgentRequestResponse:
    note = note_data.note if note_data else None
    return _to_response(await representation.reject(request_id, current_user, note))


@router.post(
    "/{request_id}/withdraw",
    response_model=AgentRequestResponse,
    summary="Withdraw a request or invitation",
    description="Only the party that opened the request may withdraw it",
    responses=TRANSITION_ERRORS
)
async def withdraw_request(
    request_id: UUID,
    note_data: Optional[AgentRequestResponseNote] = None,
    current_user: User = Depends(get_current_active_user),
    representation: RepresentationService = Depends(get_representation_service)
) -> AgentRequestResponse:
    note = note_data.note if note_data else None
    return _to_response(await representation.withdraw(request_id, current_user, note))
