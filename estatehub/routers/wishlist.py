"""
Wishlist and recently viewed endpoints.
"""

from fastapi import APIRouter, Depends, status, Query, Response
from typing import Optional
from uuid import UUID

from estatehub.models.user import User
from estatehub.services.wishlist import WishlistService
from estatehub.schemas.wishlist import (
    SavePropertyRequest,
    SavedPropertyResponse,
    WishlistResponse,
    WishlistToggleResponse,
    RecentlyViewedItem,
    RecentlyViewedResponse,
)
from estatehub.services.error_handler import ERROR_RESPONSES
from estatehub.utils.dependencies import get_current_active_user, get_wishlist_service


router = APIRouter(prefix="/wishlist", tags=["Wishlist"])


@router.get("", response_model=WishlistResponse, summary="My saved properties", responses={401: ERROR_RESPONSES[401]})
async def list_wishlist(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    current_user: User = Depends(get_current_active_user),
    wishlist_service: WishlistService = Depends(get_wishlist_service)
) -> WishlistResponse:
    items, total = await wishlist_service.list_saved(current_user, skip=skip, limit=limit)
    return WishlistResponse(items=[SavedPropertyResponse.model_validate(i.to_dict()) for i in items], total=total)


@router.post(
    "",
    response_model=SavedPropertyResponse,
    summary="Save a property",
    description="Saving an already saved property returns the existing entry",
    responses={k: ERROR_RESPONSES[k] for k in (401, 404, 422)}
)
async def save_property(
    save_data: SavePropertyRequest,
    response: Response,
    current_user: User = Depends(get_current_active_user),
    wishlist_service: WishlistService = Depends(get_wishlist_service)
) -> SavedPropertyResponse:
    entry, created = await wishlist_service.save_property(current_user, save_data.property_id)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return SavedPropertyResponse.model_validate(entry.to_dict())


@router.post(
    "/toggle",
    response_model=WishlistToggleResponse,
    summary="Toggle a saved property",
    responses={k: ERROR_RESPONSES[k] for k in (401, 404, 422)}
)
async def toggle_saved(
    save_data: SavePropertyRequest,
    current_user: User = Depends(get_current_active_user),
    wishlist_service: WishlistService = Depends(get_wishlist_service)
) -> WishlistToggleResponse:
    saved, entry = await wishlist_service.toggle(current_user, save_data.property_id)
    return WishlistToggleResponse(
        property_id=str(save_data.property_id),
        saved=saved,
        saved_id=str(entry.id) if entry else None
    )


@router.get(
    "/recently-viewed",
    response_model=RecentlyViewedResponse,
    summary="Recently viewed properties",
    responses={401: ERROR_RESPONSES[401]}
)
async def recently_viewed(
    limit: Optional[int] = Query(None, ge=1),
    current_user: User = Depends(get_current_active_user),
    wishlist_service: WishlistService = Depends(get_wishlist_service)
) -> RecentlyViewedResponse:
    views = await wishlist_service.recently_viewed(current_user, limit)
    return RecentlyViewedResponse(items=[RecentlyViewedItem.model_validate(v.to_dict()) for v in views])


@router.delete(
    "/property/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unsave a property",
    responses={401: ERROR_RESPONSES[401]}
)
async def unsave_property(
    property_id: UUID,
    current_user: User = Depends(get_current_active_user),
    wishlist_service: WishlistService = Depends(get_wishlist_service)
) -> Response:
    await wishlist_service.unsave_property(current_user, property_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{saved_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a wishlist entry",
    responses={k: ERROR_RESPONSES[k] for k in (401, 404)}
)
async def remove_entry(
    saved_id: UUID,
    current_user: User = Depends(get_current_active_user),
    wishlist_service: WishlistService = Depends(get_wishlist_service)
) -> Response:
    await wishlist_service.remove_entry(current_user, saved_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
