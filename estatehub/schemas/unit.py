"""
Schemas for the units inside a listing.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from estatehub.models.unit import UnitStatus
from estatehub.schemas.property import _clean_amenities


class UnitCreate(BaseModel):
    unit_name: str = Field(..., min_length=1, max_length=100, examples=["Room 2B"])
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Monthly rent for this unit")
    amenities: List[str] = Field(default_factory=list)

    @field_validator("unit_name")
    @classmethod
    def strip_name(cls, v):
        if not v.strip():
            raise ValueError("Unit name cannot be empty")
        return v.strip()

    @field_validator("amenities")
    @classmethod
    def clean_amenities(cls, v):
        return _clean_amenities(v)


class UnitUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    unit_name: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    amenities: Optional[List[str]] = None
    status: Optional[UnitStatus] = None

    @field_validator("unit_name")
    @classmethod
    def strip_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Unit name cannot be empty")
        return v.strip() if v else v

    @field_validator("amenities")
    @classmethod
    def clean_amenities(cls, v):
        return _clean_amenities(v)


class UnitResponse(BaseModel):
    id: str
    property_id: str
    unit_name: str
    price: float
    amenities: List[str]
    status: UnitStatus
    created_at: Optional[datetime] = None


class UnitListResponse(BaseModel):
    units: List[UnitResponse]
    total: int
    available: int
