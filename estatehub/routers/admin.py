"""
Admin endpoints: user management and the commission rate table.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from typing import Optional
from uuid import UUID

from estatehub.config import settings
from estatehub.models.user import User, UserRole
from estatehub.services.auth import AuthService
from estatehub.services.commission import CommissionRateService
from estatehub.schemas.common import page_meta, page_offset
from estatehub.schemas.payment import (
    CommissionRateCreate,
    CommissionRateUpdate,
    CommissionRateResponse,
    CommissionRateListResponse,
)
from estatehub.schemas.user import (
    UserResponse,
    UserListResponse,
    UserRoleUpdate,
    UserStatusUpdate,
    UserStatistics,
)
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import get_auth_service, get_commission_rate_service, get_current_admin_user


router = APIRouter(prefix="/admin", tags=["Admin"])

ADMIN_ERRORS = {k: ERROR_RESPONSES[k] for k in (401, 403, 404)}


@router.get("/users", response_model=UserListResponse, summary="List users", responses=ADMIN_ERRORS)
async def list_users(
    search: Optional[str] = Query(None, description="Matched against name and email"),
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_admin_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserListResponse:
    users, total = await auth_service.list_users(
        current_user, search=search, role=role, is_active=is_active,
        skip=page_offset(page, page_size), limit=page_size
    )
    return UserListResponse(
        users=[UserResponse.model_validate(u.to_dict()) for u in users],
        **page_meta(total, page, page_size)
    )


@router.get("/users/statistics", response_model=UserStatistics, summary="User statistics", responses=ADMIN_ERRORS)
async def user_statistics(
    current_user: User = Depends(get_current_admin_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserStatistics:
    return UserStatistics(**await auth_service.get_user_statistics(current_user))


@router.patch("/users/{user_id}/role", response_model=UserResponse, summary="Change a user's role", responses=ADMIN_ERRORS)
async def update_user_role(
    user_id: UUID,
    role_data: UserRoleUpdate,
    current_user: User = Depends(get_current_admin_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.update_user_role(current_user, user_id, role_data.role)
    return UserResponse.model_validate(user.to_dict())


@router.patch(
    "/users/{user_id}/status",
    response_model=UserResponse,
    summary="Activate or deactivate a user",
    responses=ADMIN_ERRORS
)
async def update_user_status(
    user_id: UUID,
    status_data: UserStatusUpdate,
    current_user: User = Depends(get_current_admin_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.update_user_status(current_user, user_id, status_data.is_active)
    return UserResponse.model_validate(user.to_dict())


# Commission rates

def _rate_response(rate) -> CommissionRateResponse:
    return CommissionRateResponse.model_validate(rate.to_dict())


@router.get(
    "/commission-rates",
    response_model=CommissionRateListResponse,
    summary="List commission rates",
    responses=ADMIN_ERRORS
)
async def list_commission_rates(
    role: Optional[UserRole] = Query(None),
    current_user: User = Depends(get_current_admin_user),
    rate_service: CommissionRateService = Depends(get_commission_rate_service)
) -> CommissionRateListResponse:
    rates = await rate_service.list_rates(current_user, role=role)
    return CommissionRateListResponse(rates=[_rate_response(r) for r in rates])


@router.post(
    "/commission-rates",
    response_model=CommissionRateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a commission rate",
    description="An active rate replaces the role's current active rate",
    responses={**ADMIN_ERRORS, 422: ERROR_RESPONSES[422]}
)
async def create_commission_rate(
    rate_data: CommissionRateCreate,
    current_user: User = Depends(get_current_admin_user),
    rate_service: CommissionRateService = Depends(get_commission_rate_service)
) -> CommissionRateResponse:
    return _rate_response(await rate_service.create_rate(current_user, rate_data))


@router.patch(
    "/commission-rates/{rate_id}",
    response_model=CommissionRateResponse,
    summary="Update a commission rate",
    responses={**ADMIN_ERRORS, 422: ERROR_RESPONSES[422]}
)
async def update_commission_rate(
    rate_id: UUID,
    rate_data: CommissionRateUpdate,
    current_user: User = Depends(get_current_admin_user),
    rate_service: CommissionRateService = Depends(get_commission_rate_service)
) -> CommissionRateResponse:
    return _rate_response(await rate_service.update_rate(current_user, rate_id, rate_data))


@router.delete(
    "/commission-rates/{rate_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a commission rate",
    responses=ADMIN_ERRORS
)
async def delete_commission_rate(
    rate_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    rate_service: CommissionRateService = Depends(get_commission_rate_service)
) -> Response:
    await rate_service.delete_rate(current_user, rate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
