"""
Role-routed dashboard endpoint.
"""

from fastapi import APIRouter, Depends

from estatehub.models.user import User
from estatehub.services.dashboard import DashboardService
from estatehub.schemas.dashboard import DashboardResponse
from estatehub.schemas.user import UserResponse
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import get_current_active_user, get_dashboard_service


router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get(
    "",
    response_model=DashboardResponse,
    summary="My dashboard",
    description="Resolves the caller's role to its dashboard and returns its summary tiles",
    responses={k: ERROR_RESPONSES[k] for k in (401, 403)}
)
async def get_dashboard(
    current_user: User = Depends(get_current_active_user),
    dashboard_service: DashboardService = Depends(get_dashboard_service)
) -> DashboardResponse:
    result = await dashboard_service.get_dashboard(current_user)
    return DashboardResponse(
        dashboard=result["dashboard"],
        user=UserResponse.model_validate(result["user"].to_dict()),
        summary=result["summary"]
    )
