"""
Support ticket and message models.
Tickets are threads between a user and the admin team.
"""

from sqlalchemy import String, Text, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base
import enum
import uuid
from typing import Dict, FrozenSet, List, TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.user import User


class TicketStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class TicketPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


TICKET_TRANSITIONS: Dict[TicketStatus, FrozenSet[TicketStatus]] = {
    TicketStatus.OPEN: frozenset({TicketStatus.IN_PROGRESS, TicketStatus.CLOSED}),
    TicketStatus.IN_PROGRESS: frozenset({TicketStatus.CLOSED}),
    TicketStatus.CLOSED: frozenset(),
}


class SupportTicket(Base):
    """A help request raised by any user."""

    __tablename__ = "support_tickets"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[TicketStatus] = mapped_column(
        SQLEnum(TicketStatus),
        nullable=False,
        default=TicketStatus.OPEN,
        index=True
    )

    priority: Mapped[TicketPriority] = mapped_column(
        SQLEnum(TicketPriority),
        nullable=False,
        default=TicketPriority.MEDIUM,
        index=True
    )

    user: Mapped["User"] = relationship("User", lazy="selectin")
    messages: Mapped[List["SupportMessage"]] = relationship(
        "SupportMessage",
        back_populates="ticket",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SupportMessage.created_at.asc()"
    )

    @property
    def is_closed(self) -> bool:
        return self.status == TicketStatus.CLOSED

    def can_transition_to(self, new_status: TicketStatus) -> bool:
        return new_status in TICKET_TRANSITIONS[self.status]

    def to_dict(self, include_messages: bool = False) -> dict:
        result = {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "subject": self.subject,
            "message": self.message,
            "status": self.status.value,
            "priority": self.priority.value,
            "user_name": self.user.full_name if self.user else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if include_messages:
            result["messages"] = [m.to_dict() for m in self.messages]
        return result


class SupportMessage(Base):
    """A reply posted on a support ticket."""

    __tablename__ = "support_messages"

    ticket_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("support_tickets.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    body: Mapped[str] = mapped_column(Text, nullable=False)

    ticket: Mapped["SupportTicket"] = relationship("SupportTicket", back_populates="messages")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "ticket_id": str(self.ticket_id),
            "sender_id": str(self.sender_id),
            "body": self.body,
            "created_at": self.created_at,
        }
