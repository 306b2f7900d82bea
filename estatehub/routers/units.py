"""
Unit endpoints: the per-unit inventory of a listing.
"""

from fastapi import APIRouter, Depends, status, Query, Response
from typing import Optional
from uuid import UUID

from estatehub.models.user import User, UserRole
from estatehub.services.unit import UnitService
from estatehub.schemas.unit import UnitCreate, UnitUpdate, UnitResponse, UnitListResponse
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import get_optional_current_user, get_unit_service, require_roles


router = APIRouter(tags=["Units"])

UNIT_ERRORS = {k: ERROR_RESPONSES[k] for k in (401, 403, 404, 409, 422)}


def _to_response(unit) -> UnitResponse:
    return UnitResponse.model_validate(unit.to_dict())


@router.get(
    "/properties/{property_id}/units",
    response_model=UnitListResponse,
    summary="Units of a listing",
    responses={404: ERROR_RESPONSES[404]}
)
async def list_units(
    property_id: UUID,
    available_only: bool = Query(False, description="Only units that can still be booked"),
    current_user: Optional[User] = Depends(get_optional_current_user),
    unit_service: UnitService = Depends(get_unit_service)
) -> UnitListResponse:
    units = await unit_service.list_units(property_id, current_user, available_only=available_only)
    return UnitListResponse(
        units=[_to_response(u) for u in units],
        total=len(units),
        available=sum(1 for u in units if u.is_available)
    )


@router.post(
    "/properties/{property_id}/units",
    response_model=UnitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a unit",
    description="Once a listing has units, its unit counts follow them",
    responses=UNIT_ERRORS
)
async def create_unit(
    property_id: UUID,
    unit_data: UnitCreate,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    unit_service: UnitService = Depends(get_unit_service)
) -> UnitResponse:
    return _to_response(await unit_service.create_unit(property_id, unit_data, current_user))


@router.patch("/units/{unit_id}", response_model=UnitResponse, summary="Update a unit", responses=UNIT_ERRORS)
async def update_unit(
    unit_id: UUID,
    unit_data: UnitUpdate,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    unit_service: UnitService = Depends(get_unit_service)
) -> UnitResponse:
    return _to_response(await unit_service.update_unit(unit_id, unit_data, current_user))


@router.delete(
    "/units/{unit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a unit",
    description="Only available units without pending bookings can be deleted",
    responses=UNIT_ERRORS
)
async def delete_unit(
    unit_id: UUID,
    current_user: User = Depends(require_roles(UserRole.LANDLORD)),
    unit_service: UnitService = Depends(get_unit_service)
) -> Response:
    await unit_service.delete_unit(unit_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
