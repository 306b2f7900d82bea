"""
Inquiry and message models.
An inquiry doubles as a lead on the agent's pipeline board.
"""

from sqlalchemy import String, Text, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.user import User
    from estatehub.models.property import Property


class LeadStatus(str, enum.Enum):
    """Pipeline columns; leads may move freely between them."""
    NEW = "new"
    CONTACTED = "contacted"
    SHOWING = "showing"
    CLOSED = "closed"


class Inquiry(Base):
    """Unscheduled message expressing interest in a property."""

    __tablename__ = "property_inquiries"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[LeadStatus] = mapped_column(
        SQLEnum(LeadStatus),
        nullable=False,
        default=LeadStatus.NEW,
        index=True
    )

    listing: Mapped["Property"] = relationship("Property", lazy="selectin")
    sender: Mapped["User"] = relationship("User", foreign_keys=[sender_id], lazy="selectin")
    messages: Mapped[List["InquiryMessage"]] = relationship(
        "InquiryMessage",
        back_populates="inquiry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InquiryMessage.created_at.asc()"
    )

    def participant_ids(self) -> set:
        """Users allowed to read and reply to this inquiry."""
        ids = {self.sender_id}
        if self.listing is not None:
            ids.add(self.listing.landlord_id)
            if self.listing.agent_id:
                ids.add(self.listing.agent_id)
        if self.agent_id:
            ids.add(self.agent_id)
        return ids

    def to_dict(self, include_messages: bool = False) -> dict:
        result = {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "sender_id": str(self.sender_id),
            "agent_id": str(self.agent_id) if self.agent_id else None,
            "subject": self.subject,
            "message": self.message,
            "status": self.status.value,
            "property_title": self.listing.title if self.listing else None,
            "sender_name": self.sender.full_name if self.sender else None,
            "created_at": self.created_at,
        }
        if include_messages:
            result["messages"] = [m.to_dict() for m in self.messages]
        return result


class InquiryMessage(Base):
    """A reply posted on an inquiry thread."""

    __tablename__ = "inquiry_messages"

    inquiry_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("property_inquiries.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    body: Mapped[str] = mapped_column(Text, nullable=False)

    inquiry: Mapped["Inquiry"] = relationship("Inquiry", back_populates="messages")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "inquiry_id": str(self.inquiry_id),
            "sender_id": str(self.sender_id),
            "body": self.body,
            "created_at": self.created_at,
        }
