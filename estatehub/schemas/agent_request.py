"""
Schemas for the agent representation workflow and agent performance.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from estatehub.models.agent_request import RequestStatus, RequestInitiator
from estatehub.schemas.common import PageMeta
from estatehub.schemas.property import PropertyResponse
from estatehub.schemas.user import UserResponse
import uuid


class AgentRequestCreate(BaseModel):
    """An agent asking to represent a property."""

    property_id: uuid.UUID
    message: Optional[str] = Field(None, max_length=2000)
    commission_offer: Optional[Decimal] = Field(None, ge=0, le=100, description="Proposed commission percentage")


class AgentInviteCreate(BaseModel):
    """An owner inviting an agent to represent a property."""

    agent_id: uuid.UUID
    message: Optional[str] = Field(None, max_length=2000)
    commission_offer: Optional[Decimal] = Field(None, ge=0, le=100, description="Proposed commission percentage")


class AgentRequestResponseNote(BaseModel):
    """Optional note attached when accepting, rejecting or withdrawing."""

    note: Optional[str] = Field(None, max_length=500)


class AgentRequestResponse(BaseModel):
    id: str
    property_id: str
    agent_id: str
    initiated_by: RequestInitiator
    status: RequestStatus
    commission_offer: Optional[float] = None
    message: Optional[str] = None
    requested_at: Optional[datetime] = None
    responded_by: Optional[str] = None
    responded_at: Optional[datetime] = None
    response_note: Optional[str] = None
    agent: Optional[UserResponse] = None
    property: Optional[PropertyResponse] = None


class AgentRequestListResponse(PageMeta):
    requests: List[AgentRequestResponse]


class DiscoveredProperty(PropertyResponse):
    """A listing open to representation, annotated with the caller's latest request."""

    request_status: str = Field("none", description="pending, accepted, rejected, withdrawn or none")


class DiscoveryResponse(PageMeta):
    properties: List[DiscoveredProperty]


class AgentPerformanceResponse(BaseModel):
    agent_id: str
    agent_name: Optional[str] = None
    properties_assigned: int
    requests_total: int
    requests_accepted: int
    acceptance_rate: float
    total_commission: float
    pending_commission: float
    last_calculated_at: Optional[datetime] = None
