"""
Schemas for the wishlist and recently viewed listings.
"""

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from estatehub.schemas.property import PropertyResponse
import uuid


class SavePropertyRequest(BaseModel):
    property_id: uuid.UUID


class SavedPropertyResponse(BaseModel):
    id: str
    property_id: str
    saved_at: Optional[datetime] = None
    property: Optional[PropertyResponse] = None


class WishlistResponse(BaseModel):
    items: List[SavedPropertyResponse]
    total: int


class WishlistToggleResponse(BaseModel):
    property_id: str
    saved: bool
    saved_id: Optional[str] = None


class RecentlyViewedItem(BaseModel):
    property_id: str
    viewed_at: datetime
    property: Optional[PropertyResponse] = None


class RecentlyViewedResponse(BaseModel):
    items: List[RecentlyViewedItem]
