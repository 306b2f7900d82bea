"""
Booking model for rental requests against a listing.
"""

from sqlalchemy import Text, Integer, Numeric, Date, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from estatehub.database import Base
from datetime import date
from decimal import Decimal
import enum
import uuid
from typing import Dict, FrozenSet, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from estatehub.models.user import User
    from estatehub.models.property import Property
    from estatehub.models.unit import Unit


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELLED}),
    BookingStatus.APPROVED: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}


class Booking(Base):
    """A client's request to rent a unit of a property for a number of months."""

    __tablename__ = "bookings"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    unit_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("units.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    duration_months: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Total rent for the booked duration"
    )

    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[BookingStatus] = mapped_column(
        SQLEnum(BookingStatus),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True
    )

    listing: Mapped["Property"] = relationship("Property", lazy="selectin")
    client: Mapped["User"] = relationship("User", lazy="selectin")
    unit: Mapped[Optional["Unit"]] = relationship("Unit", lazy="selectin")

    def can_transition_to(self, new_status: BookingStatus) -> bool:
        return new_status in BOOKING_TRANSITIONS[self.status]

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "client_id": str(self.client_id),
            "unit_id": str(self.unit_id) if self.unit_id else None,
            "unit_name": self.unit.unit_name if self.unit else None,
            "start_date": self.start_date,
            "duration_months": self.duration_months,
            "amount": self.amount,
            "message": self.message,
            "status": self.status.value,
            "property_title": self.listing.title if self.listing else None,
            "client_name": self.client.full_name if self.client else None,
            "created_at": self.created_at,
        }
