"""
AgentRequest model for the agent-property representation workflow.
A row is either an agent asking to represent a property or an owner
inviting an agent; `initiated_by` records which.
"""

from sqlalchemy import String, Text, Numeric, ForeignKey, DateTime, Uuid, Enum as SQLEnum, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base, utcnow
from decimal import Decimal
from datetime import datetime
import enum
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.user import User
    from estatehub.models.property import Property


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class RequestInitiator(str, enum.Enum):
    """Party that opened the request; the other party is the counterparty."""
    AGENT = "agent"
    OWNER = "owner"


class AgentRequest(Base):
    """Representation request or invitation between a property owner and an agent."""

    __tablename__ = "agent_requests"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    initiated_by: Mapped[RequestInitiator] = mapped_column(
        SQLEnum(RequestInitiator),
        nullable=False,
        comment="Which side opened the request"
    )

    status: Mapped[RequestStatus] = mapped_column(
        SQLEnum(RequestStatus),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True
    )

    commission_offer: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=5, scale=2),
        nullable=True,
        comment="Proposed commission percentage"
    )

    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow
    )

    responded_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    response_note: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    listing: Mapped["Property"] = relationship("Property", lazy="selectin")
    agent: Mapped["User"] = relationship("User", foreign_keys=[agent_id], lazy="selectin")

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    @property
    def is_invitation(self) -> bool:
        return self.initiated_by == RequestInitiator.OWNER

    def to_dict(self, include_property: bool = True) -> dict:
        result = {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "agent_id": str(self.agent_id),
            "initiated_by": self.initiated_by.value,
            "status": self.status.value,
            "commission_offer": self.commission_offer,
            "message": self.message,
            "requested_at": self.requested_at,
            "responded_by": str(self.responded_by) if self.responded_by else None,
            "responded_at": self.responded_at,
            "response_note": self.response_note,
            "agent": self.agent.to_dict() if self.agent else None,
        }
        if include_property and self.listing is not None:
            result["property"] = self.listing.to_dict(include_images=False)
        return result


property_status_index = Index(
    'idx_agent_requests_property_status',
    AgentRequest.property_id,
    AgentRequest.status
)

agent_status_index = Index(
    'idx_agent_requests_agent_status',
    AgentRequest.agent_id,
    AgentRequest.status
)

# At most one open request per agent and property
pending_pair_index = Index(
    'uq_agent_requests_pending_pair',
    AgentRequest.property_id,
    AgentRequest.agent_id,
    unique=True,
    postgresql_where=AgentRequest.status == RequestStatus.PENDING,
    sqlite_where=AgentRequest.status == RequestStatus.PENDING
)
