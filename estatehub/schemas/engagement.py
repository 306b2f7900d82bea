"""
Schemas for showings, bookings, inquiries and applications.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime, date
from estatehub.models.showing import ShowingStatus
from estatehub.models.booking import BookingStatus
from estatehub.models.inquiry import LeadStatus
from estatehub.models.application import ApplicationStatus
from estatehub.schemas.common import PageMeta
import uuid


# Showings

class ShowingCreate(BaseModel):
    property_id: uuid.UUID
    scheduled_at: datetime = Field(..., description="Requested viewing time; must be in the future")
    notes: Optional[str] = Field(None, max_length=2000)


class ShowingStatusUpdate(BaseModel):
    status: ShowingStatus


class ShowingResponse(BaseModel):
    id: str
    property_id: str
    requester_id: str
    agent_id: Optional[str] = None
    scheduled_at: datetime
    notes: Optional[str] = None
    status: ShowingStatus
    property_title: Optional[str] = None
    requester_name: Optional[str] = None
    created_at: Optional[datetime] = None


class ShowingListResponse(PageMeta):
    showings: List[ShowingResponse]


# Bookings

class BookingCreate(BaseModel):
    property_id: uuid.UUID
    unit_id: Optional[uuid.UUID] = Field(None, description="Required when the listing is split into units")
    start_date: date
    duration_months: int = Field(..., ge=1, le=60, description="Length of stay in months")
    message: Optional[str] = Field(None, max_length=2000)


class BookingResponse(BaseModel):
    id: str
    property_id: str
    client_id: str
    unit_id: Optional[str] = None
    unit_name: Optional[str] = None
    start_date: date
    duration_months: int
    amount: float
    message: Optional[str] = None
    status: BookingStatus
    property_title: Optional[str] = None
    client_name: Optional[str] = None
    created_at: Optional[datetime] = None


class BookingListResponse(PageMeta):
    bookings: List[BookingResponse]


# Inquiries

class InquiryCreate(BaseModel):
    property_id: uuid.UUID
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("subject", "message")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class InquiryMessageCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)

    @field_validator("body")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v.strip()


class InquiryStatusUpdate(BaseModel):
    status: LeadStatus


class InquiryMessageResponse(BaseModel):
    id: str
    inquiry_id: str
    sender_id: str
    body: str
    created_at: Optional[datetime] = None


class InquiryResponse(BaseModel):
    id: str
    property_id: str
    sender_id: str
    agent_id: Optional[str] = None
    subject: str
    message: str
    status: LeadStatus
    property_title: Optional[str] = None
    sender_name: Optional[str] = None
    created_at: Optional[datetime] = None
    messages: Optional[List[InquiryMessageResponse]] = None


class InquiryListResponse(PageMeta):
    inquiries: List[InquiryResponse]


class LeadBoardResponse(BaseModel):
    """Inquiries grouped into pipeline columns."""

    columns: Dict[str, List[InquiryResponse]]
    counts: Dict[str, int]


# Applications

class ApplicationCreate(BaseModel):
    property_id: uuid.UUID
    message: Optional[str] = Field(None, max_length=2000)
    move_in_date: Optional[date] = None


class ApplicationResponse(BaseModel):
    id: str
    property_id: str
    applicant_id: str
    message: Optional[str] = None
    move_in_date: Optional[date] = None
    status: ApplicationStatus
    property_title: Optional[str] = None
    applicant_name: Optional[str] = None
    created_at: Optional[datetime] = None


class ApplicationListResponse(PageMeta):
    applications: List[ApplicationResponse]
