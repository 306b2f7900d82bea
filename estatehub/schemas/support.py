"""
Schemas for the support inbox.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from estatehub.models.support import TicketStatus, TicketPriority
from estatehub.schemas.common import PageMeta


class TicketCreate(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)
    priority: TicketPriority = TicketPriority.MEDIUM

    @field_validator("subject", "message")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class TicketMessageCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)

    @field_validator("body")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v.strip()


class TicketPriorityUpdate(BaseModel):
    priority: TicketPriority = TicketPriority.HIGH


class TicketMessageResponse(BaseModel):
    id: str
    ticket_id: str
    sender_id: str
    body: str
    created_at: Optional[datetime] = None


class TicketResponse(BaseModel):
    id: str
    user_id: str
    subject: str
    message: str
    status: TicketStatus
    priority: TicketPriority
    user_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    messages: Optional[List[TicketMessageResponse]] = None


class TicketListResponse(PageMeta):
    tickets: List[TicketResponse]
