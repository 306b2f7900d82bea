"""
Pydantic schemas for property requests and responses.
Handles listing creation, updates, search filters and validation.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Dict
from datetime import datetime
from decimal import Decimal
from estatehub.models.property import PropertyType, PropertyStatus, AgentStatus
from estatehub.repositories.property import SORTABLE_FIELDS
from estatehub.schemas.common import PageMeta
from estatehub.schemas.user import UserResponse
import uuid


def _clean_amenities(values: Optional[List[str]]) -> Optional[List[str]]:
    """Strip labels, drop blanks and duplicates while keeping order."""
    if values is None:
        return None
    cleaned: List[str] = []
    for value in values:
        label = value.strip()
        if label and label not in cleaned:
            cleaned.append(label)
    return cleaned


class PropertyBase(BaseModel):
    """Base property schema with common fields."""

    title: str = Field(..., min_length=3, max_length=255, description="Listing title", examples=["Sunny 2-bed near campus"])
    description: str = Field("", max_length=5000, description="Detailed property description")
    property_type: PropertyType = Field(..., description="Kind of property", examples=["Apartment"])
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Asking price or monthly rent", examples=[1500])
    bedrooms: int = Field(0, ge=0, le=50, description="Number of bedrooms")
    bathrooms: int = Field(0, ge=0, le=50, description="Number of bathrooms")
    area_sqft: Optional[int] = Field(None, gt=0, description="Floor area in square feet")
    address: str = Field(..., min_length=3, max_length=255, description="Street address")
    city: str = Field(..., min_length=2, max_length=120, description="City", examples=["Lagos"])
    state: Optional[str] = Field(None, max_length=120, description="State or region")
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90, description="Latitude in degrees")
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180, description="Longitude in degrees")
    amenities: List[str] = Field(default_factory=list, description="Amenity labels", examples=[["wifi", "parking"]])
    total_units: int = Field(1, ge=1, le=1000, description="Number of rentable units")
    available_units: Optional[int] = Field(None, ge=0, description="Units still available; defaults to total_units")
    allow_agents: bool = Field(True, description="Whether agents may request to represent this property")

    @field_validator("title", "address", "city")
    @classmethod
    def strip_required_text(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("amenities")
    @classmethod
    def clean_amenities(cls, v):
        return _clean_amenities(v)

    @model_validator(mode="after")
    def validate_units(self):
        if self.available_units is not None and self.available_units > self.total_units:
            raise ValueError("Available units cannot exceed total units")
        return self


class PropertyCreate(PropertyBase):
    """Schema for creating a new listing."""

    image_urls: List[str] = Field(default_factory=list, max_length=20, description="Image URLs; the first is the cover")
    publish: bool = Field(False, description="Publish immediately instead of saving as a draft")
    landlord_id: Optional[uuid.UUID] = Field(None, description="Owning landlord (admins only)")


class PropertyUpdate(BaseModel):
    """Partial update; omitted, null and blank fields are left unchanged."""

    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    property_type: Optional[PropertyType] = None
    price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[int] = Field(None, ge=0, le=50)
    area_sqft: Optional[int] = Field(None, gt=0)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=120)
    state: Optional[str] = Field(None, max_length=120)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)
    amenities: Optional[List[str]] = None
    total_units: Optional[int] = Field(None, ge=1, le=1000)
    available_units: Optional[int] = Field(None, ge=0)
    allow_agents: Optional[bool] = None
    image_urls: Optional[List[str]] = Field(None, max_length=20, description="Replaces the image set when given")

    @field_validator("amenities")
    @classmethod
    def clean_amenities(cls, v):
        return _clean_amenities(v)


class PropertyStatusUpdate(BaseModel):
    status: PropertyStatus = Field(..., description="Target lifecycle status", examples=["active"])


class PropertyFeatureUpdate(BaseModel):
    is_featured: bool


class PropertyImageResponse(BaseModel):
    id: str
    image_url: str
    is_primary: bool
    display_order: int


class PropertyResponse(BaseModel):
    """Schema for property response with additional metadata."""

    id: str
    title: str
    description: str
    property_type: PropertyType
    price: float
    bedrooms: int
    bathrooms: int
    area_sqft: Optional[int] = None
    address: str
    city: str
    state: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    amenities: List[str]
    total_units: int
    available_units: int
    status: PropertyStatus
    agent_status: AgentStatus
    allow_agents: bool
    is_featured: bool
    landlord_id: str
    agent_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    images: List[PropertyImageResponse] = Field(default_factory=list)
    primary_image_url: Optional[str] = None
    landlord: Optional[UserResponse] = None
    agent: Optional[UserResponse] = None


class PropertyDetailResponse(PropertyResponse):
    """Details page payload."""

    is_saved: bool = Field(False, description="Whether the caller has this listing on their wishlist")


class PropertyListResponse(PageMeta):
    """Schema for paginated property list response."""

    properties: List[PropertyResponse]


class PropertySearchParams(BaseModel):
    """Validated search query parameters."""

    q: Optional[str] = Field(None, max_length=255, description="Text matched against title, description and address")
    city: Optional[str] = Field(None, max_length=120)
    property_type: Optional[PropertyType] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    min_bedrooms: Optional[int] = Field(None, ge=0)
    min_bathrooms: Optional[int] = Field(None, ge=0)
    amenities: List[str] = Field(default_factory=list)
    sort_by: str = Field("created_at", description="price, created_at, bedrooms or area_sqft")
    sort_order: str = Field("desc", description="asc or desc")
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1)

    @field_validator("sort_by")
    @classmethod
    def validate_sort_by(cls, v):
        if v not in SORTABLE_FIELDS:
            raise ValueError(f"sort_by must be one of: {', '.join(SORTABLE_FIELDS)}")
        return v

    @field_validator("sort_order")
    @classmethod
    def validate_sort_order(cls, v):
        v = v.lower()
        if v not in ("asc", "desc"):
            raise ValueError("sort_order must be 'asc' or 'desc'")
        return v

    @field_validator("amenities")
    @classmethod
    def clean_amenities(cls, v):
        return _clean_amenities(v)

    @model_validator(mode="after")
    def validate_price_range(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price cannot be greater than max_price")
        return self


class PropertyStatistics(BaseModel):
    total_properties: int
    properties_by_status: Dict[str, int]
    properties_by_agent_status: Dict[str, int]
    average_active_price: float
