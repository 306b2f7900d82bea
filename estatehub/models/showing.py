"""
Showing model for scheduled property viewings.
"""

from sqlalchemy import Text, ForeignKey, DateTime, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base
from datetime import datetime
import enum
import uuid
from typing import Dict, FrozenSet, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.user import User
    from estatehub.models.property import Property


class ShowingStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


SHOWING_TRANSITIONS: Dict[ShowingStatus, FrozenSet[ShowingStatus]] = {
    ShowingStatus.SCHEDULED: frozenset({ShowingStatus.CONFIRMED, ShowingStatus.CANCELLED}),
    ShowingStatus.CONFIRMED: frozenset({ShowingStatus.COMPLETED, ShowingStatus.CANCELLED}),
    ShowingStatus.CANCELLED: frozenset(),
    ShowingStatus.COMPLETED: frozenset(),
}


class Showing(Base):
    """A viewing booked by a prospective tenant or buyer."""

    __tablename__ = "property_showings"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    agent_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Agent representing the property when the showing was booked"
    )

    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[ShowingStatus] = mapped_column(
        SQLEnum(ShowingStatus),
        nullable=False,
        default=ShowingStatus.SCHEDULED,
        index=True
    )

    listing: Mapped["Property"] = relationship("Property", lazy="selectin")
    requester: Mapped["User"] = relationship("User", foreign_keys=[requester_id], lazy="selectin")

    def can_transition_to(self, new_status: ShowingStatus) -> bool:
        return new_status in SHOWING_TRANSITIONS[self.status]

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "requester_id": str(self.requester_id),
            "agent_id": str(self.agent_id) if self.agent_id else None,
            "scheduled_at": self.scheduled_at,
            "notes": self.notes,
            "status": self.status.value,
            "property_title": self.listing.title if self.listing else None,
            "requester_name": self.requester.full_name if self.requester else None,
            "created_at": self.created_at,
        }
