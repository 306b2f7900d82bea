"""
Tenancy application endpoints.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import Optional
from uuid import UUID

from estatehub.config import settings
from estatehub.models.application import ApplicationStatus
from estatehub.models.user import User, UserRole
from estatehub.services.application import ApplicationService
from estatehub.schemas.common import page_meta, page_offset
from estatehub.schemas.engagement import ApplicationCreate, ApplicationResponse, ApplicationListResponse
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import get_application_service, get_current_active_user, require_roles


router = APIRouter(prefix="/applications", tags=["Applications"])

DECISION_ERRORS = {k: ERROR_RESPONSES[k] for k in (401, 403, 404, 409)}


def _to_response(application) -> ApplicationResponse:
    return ApplicationResponse.model_validate(application.to_dict())


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply for a property",
    responses={k: ERROR_RESPONSES[k] for k in (400, 401, 403, 404, 409, 422)}
)
async def submit_application(
    application_data: ApplicationCreate,
    current_user: User = Depends(get_current_active_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationResponse:
    return _to_response(await application_service.submit_application(current_user, application_data))


@router.get("/mine", response_model=ApplicationListResponse, summary="Applications I submitted")
async def my_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_active_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationListResponse:
    applications, total = await application_service.list_mine(
        current_user, status=status_filter, skip=page_offset(page, page_size), limit=page_size
    )
    return ApplicationListResponse(
        applications=[_to_response(a) for a in applications],
        **page_meta(total, page, page_size)
    )


@router.get(
    "/received",
    response_model=ApplicationListResponse,
    summary="Applications on my properties",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def received_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationListResponse:
    applications, total = await application_service.list_received(
        current_user, status=status_filter, skip=page_offset(page, page_size), limit=page_size
    )
    return ApplicationListResponse(
        applications=[_to_response(a) for a in applications],
        **page_meta(total, page, page_size)
    )


@router.post("/{application_id}/approve", response_model=ApplicationResponse, summary="Approve", responses=DECISION_ERRORS)
async def approve_application(
    application_id: UUID,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationResponse:
    return _to_response(await application_service.approve(application_id, current_user))


@router.post("/{application_id}/reject", response_model=ApplicationResponse, summary="Reject", responses=DECISION_ERRORS)
async def reject_application(
    application_id: UUID,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationResponse:
    return _to_response(await application_service.reject(application_id, current_user))


@router.post("/{application_id}/withdraw", response_model=ApplicationResponse, summary="Withdraw", responses=DECISION_ERRORS)
async def withdraw_application(
    application_id: UUID,
    current_user: User = Depends(get_current_active_user),
    application_service: ApplicationService = Depends(get_application_service)
) -> ApplicationResponse:
    return _to_response(await application_service.withdraw(application_id, current_user))
